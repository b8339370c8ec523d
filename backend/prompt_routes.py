"""
Prompt API Routes

Endpoints for Veo3 prompt generation, chat, and image analysis.
Validation happens here before any provider is called; core failures
are mapped to a user-safe 500.
"""
import re

from flask import Blueprint, current_app, jsonify, request

from fallback_client import QuotaExceededError
from logging_config import get_request_logger, new_request_id, preview
from prompt_templates import (
    Character, PromptForm, PromptFormError,
    build_advanced_prompt, build_chat_style_prompt, build_context_prompt
)
from providers import AIServiceError, Attachment

prompt_bp = Blueprint('prompts', __name__, url_prefix='/api')

DATA_URL_PREFIX_RE = re.compile(r'^data:[\w/+.-]+;base64,')


def _get_service():
    return current_app.extensions['prompt_service']


def _strip_data_url(data: str) -> str:
    return DATA_URL_PREFIX_RE.sub('', data.strip())


def _ai_error_response(log, error: AIServiceError, user_message: str):
    """Log the provider detail, return only a safe message."""
    log.error(f"AI service error: {error}")
    if isinstance(error, QuotaExceededError):
        return jsonify({'error': str(error)}), 500
    return jsonify({'error': user_message}), 500


def _parse_attachments(items) -> list:
    """
    Convert [{'data': base64, 'mimeType': ...}] into Attachments.

    Raises:
        PromptFormError: malformed entry or invalid base64
    """
    if items is None:
        return []
    if not isinstance(items, list):
        raise PromptFormError('attachments must be a list')

    attachments = []
    for item in items:
        if not isinstance(item, dict) or not item.get('data') or not item.get('mimeType'):
            raise PromptFormError('Each attachment needs data and mimeType')
        attachment = Attachment(data=_strip_data_url(str(item['data'])), mime_type=str(item['mimeType']))
        try:
            attachment.as_bytes()
        except ValueError as e:
            raise PromptFormError(str(e))
        attachments.append(attachment)
    return attachments


@prompt_bp.route('/generate-veo3-prompt-json', methods=['POST'])
def generate_json_prompt():
    """
    Generate a structured JSON Veo3 prompt.

    Returns:
        JSON with jsonPrompt (serialized prompt object) and metadata
    """
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        form = PromptForm.from_json(request.get_json(silent=True))
        log.info(f"JSON prompt request: subject={preview(form.main_subject, 50)}")
        result = _get_service().generate_json_prompt(form, request_id=request_id)
        return jsonify({
            'success': True,
            'jsonPrompt': result.json_prompt,
            'metadata': result.metadata
        })
    except PromptFormError as e:
        log.warning(f"Validation failed: {e}")
        return jsonify({'error': str(e)}), 400
    except AIServiceError as e:
        return _ai_error_response(log, e, 'Failed to generate JSON prompt. Please try again.')
    except Exception as e:
        log.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500


@prompt_bp.route('/generate-veo3-prompt-paragraph', methods=['POST'])
def generate_paragraph_prompt():
    """Generate a single cinematic paragraph prompt."""
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        form = PromptForm.from_json(request.get_json(silent=True))
        log.info(f"Paragraph prompt request: subject={preview(form.main_subject, 50)}")
        result = _get_service().generate_paragraph_prompt(form, request_id=request_id)
        return jsonify({
            'success': True,
            'paragraphPrompt': result.paragraph_prompt,
            'metadata': result.metadata
        })
    except PromptFormError as e:
        log.warning(f"Validation failed: {e}")
        return jsonify({'error': str(e)}), 400
    except AIServiceError as e:
        return _ai_error_response(log, e, 'Failed to generate paragraph prompt. Please try again.')
    except Exception as e:
        log.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500


@prompt_bp.route('/generate-veo3-prompt-dual', methods=['POST'])
def generate_dual_prompt():
    """Generate JSON and paragraph formats from a single provider call."""
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        form = PromptForm.from_json(request.get_json(silent=True))
        log.info(f"Dual prompt request: subject={preview(form.main_subject, 50)}")
        result = _get_service().generate_dual_prompt(form, request_id=request_id)
        return jsonify({
            'success': True,
            'jsonPrompt': result.json_prompt,
            'paragraphPrompt': result.paragraph_prompt,
            'metadata': result.metadata
        })
    except PromptFormError as e:
        log.warning(f"Validation failed: {e}")
        return jsonify({'error': str(e)}), 400
    except AIServiceError as e:
        return _ai_error_response(log, e, 'Failed to generate prompt. Please try again.')
    except Exception as e:
        log.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500


@prompt_bp.route('/chat', methods=['POST'])
def chat():
    """
    Chat with the creative assistant.

    Body:
        message: user message (required)
        attachments: optional [{data, mimeType}] with base64 data
        history: optional [{role, content}] conversation turns
    """
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise PromptFormError('Request body must be a JSON object')

        message = payload.get('message')
        if not isinstance(message, str) or not message.strip():
            raise PromptFormError('Message is required')

        history = payload.get('history')
        if history is not None and not isinstance(history, list):
            raise PromptFormError('history must be a list')

        attachments = _parse_attachments(payload.get('attachments'))
        log.info(f"Chat request: {len(message)} chars, {len(attachments)} attachment(s)")

        result = _get_service().chat(message.strip(), attachments, history, request_id=request_id)
        body = {'success': True, 'metadata': result.metadata}
        body.update(result.reply.to_dict())
        return jsonify(body)
    except PromptFormError as e:
        log.warning(f"Validation failed: {e}")
        return jsonify({'error': str(e)}), 400
    except AIServiceError as e:
        return _ai_error_response(log, e, 'Failed to get a response. Please try again.')
    except Exception as e:
        log.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500


@prompt_bp.route('/analyze-image', methods=['POST'])
def analyze_image():
    """Analyze an uploaded image into JSON and paragraph descriptions."""
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or not payload.get('imageData'):
            raise PromptFormError('Missing image data')

        mime_type = payload.get('mimeType') or 'image/jpeg'
        attachment = _parse_attachments([{'data': payload['imageData'], 'mimeType': mime_type}])[0]
        log.info(f"Image analysis request: mime={mime_type}")

        result = _get_service().analyze_image(attachment.as_base64(), attachment.mime_type, request_id=request_id)
        return jsonify({
            'success': True,
            'jsonOutput': result.analysis.json_output,
            'paragraphOutput': result.analysis.paragraph_output,
            'fallbackUsed': result.metadata['fallbackUsed'],
            'metadata': result.metadata
        })
    except PromptFormError as e:
        log.warning(f"Validation failed: {e}")
        return jsonify({'error': str(e)}), 400
    except AIServiceError as e:
        return _ai_error_response(log, e, 'Failed to analyze image. Please try again.')
    except Exception as e:
        log.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500


# ===== Template-only endpoints (no provider call) =====

@prompt_bp.route('/generate-advanced-prompt', methods=['POST'])
def generate_advanced_prompt():
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        form = PromptForm.from_json(request.get_json(silent=True))
        return jsonify({'prompt': build_advanced_prompt(form)})
    except PromptFormError:
        log.warning("Validation failed: missing subject or action")
        return jsonify({'error': 'Main subject and scene action are required'}), 400
    except Exception as e:
        log.error(f"Error generating advanced prompt: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to generate prompt'}), 500


@prompt_bp.route('/generate-chat-prompt', methods=['POST'])
def generate_chat_prompt():
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        payload = request.get_json(silent=True)
        user_input = payload.get('input') if isinstance(payload, dict) else None
        if not isinstance(user_input, str) or not user_input.strip():
            log.warning("Validation failed: invalid input")
            return jsonify({'error': 'Invalid input provided'}), 400

        return jsonify({'prompt': build_chat_style_prompt(user_input.strip())})
    except Exception as e:
        log.error(f"Error generating chat prompt: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to generate prompt'}), 500


@prompt_bp.route('/generate-veo3-prompt', methods=['POST'])
def generate_context_prompt():
    """Template prompt from a scene context and optional characters."""
    request_id = new_request_id()
    log = get_request_logger('routes', request_id)

    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({'error': 'Context is required'}), 400

        context = payload.get('context')
        if not isinstance(context, str) or not context.strip():
            log.warning("Validation failed: missing context")
            return jsonify({'error': 'Context is required'}), 400

        raw_characters = payload.get('characters') or []
        if not isinstance(raw_characters, list):
            return jsonify({'error': 'characters must be a list'}), 400

        characters = [c for c in (Character.from_json(item) for item in raw_characters) if c]
        log.info(f"Context prompt request: {len(characters)} character(s)")
        return jsonify({'prompt': build_context_prompt(context.strip(), characters)})
    except Exception as e:
        log.error(f"Error generating Veo3 prompt: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to generate prompt'}), 500
