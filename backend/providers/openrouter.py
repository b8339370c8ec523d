"""
OpenRouter Provider
OpenAI-compatible chat-completions endpoint, used as the secondary provider
"""
import time

import requests

from logging_config import get_logger, preview
from .base import AdapterTransportError, GenerationRequest, TextProvider

logger = get_logger('openrouter')

MAX_TOKENS = 1200  # kept low to stay inside free-tier credit limits
TEMPERATURE = 0.7


class OpenRouterProvider(TextProvider):
    """Secondary provider: bearer-token chat completions with data-URL images"""
    name = 'OpenRouter'

    def __init__(
        self,
        api_key: str,
        model: str = 'google/gemini-2.5-flash',
        base_url: str = 'https://openrouter.ai/api/v1',
        site_url: str = 'http://localhost:3000',
        app_title: str = 'veo3promptgenerator',
        timeout: int = 120
    ):
        super().__init__(model)
        if not api_key:
            raise ValueError('OpenRouter API key is required')
        self._api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.site_url = site_url
        self.app_title = app_title
        self.timeout = timeout

    def _get_headers(self) -> dict:
        return {
            'Authorization': f'Bearer {self._api_key}',
            'Content-Type': 'application/json',
            'HTTP-Referer': self.site_url,
            'X-Title': self.app_title,
        }

    def build_payload(self, request: GenerationRequest) -> dict:
        """Translate a GenerationRequest into a chat-completions body."""
        if request.attachments:
            content = [{'type': 'text', 'text': request.prompt}]
            for attachment in request.attachments:
                content.append({
                    'type': 'image_url',
                    'image_url': {'url': f'data:{attachment.mime_type};base64,{attachment.as_base64()}'}
                })
        else:
            content = request.prompt

        return {
            'model': self.model,
            'messages': [{'role': 'user', 'content': content}],
            'max_tokens': MAX_TOKENS,
            'temperature': TEMPERATURE,
        }

    def generate(self, request: GenerationRequest) -> str:
        """
        Send one chat-completions call.

        Returns:
            choices[0].message.content, '' if absent

        Raises:
            AdapterTransportError: on non-2xx status or transport failure
        """
        url = f'{self.base_url}/chat/completions'
        payload = self.build_payload(request)

        logger.debug(f"OpenRouter request: model={self.model}, attachments={len(request.attachments)}")
        start_time = time.time()

        try:
            response = requests.post(url, headers=self._get_headers(), json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"OpenRouter request failed: {e}")
            raise AdapterTransportError(self.name, None, str(e))

        elapsed = time.time() - start_time
        logger.debug(f"OpenRouter response: status={response.status_code}, time={elapsed:.2f}s")

        if not response.ok:
            body = _error_body(response)
            logger.warning(f"OpenRouter API error: {response.status_code} - {preview(body)}")
            raise AdapterTransportError(self.name, response.status_code, body)

        try:
            data = response.json()
        except ValueError as e:
            raise AdapterTransportError(self.name, response.status_code, f'Invalid JSON response: {e}')

        return self._content_text(data, response.status_code)

    def _content_text(self, data, status_code) -> str:
        """
        choices[0].message.content as a string.

        Content given as a list of parts is joined from its text parts.

        Raises:
            AdapterTransportError: body is not the chat-completions shape
        """
        if not isinstance(data, dict):
            raise AdapterTransportError(self.name, status_code, f'Unexpected response shape: {type(data).__name__} body')

        choices = data.get('choices') or []
        if not choices:
            return ''
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            raise AdapterTransportError(self.name, status_code, 'Unexpected response shape: choices[0] is not an object')

        message = choices[0].get('message') or {}
        if not isinstance(message, dict):
            raise AdapterTransportError(self.name, status_code, 'Unexpected response shape: message is not an object')

        content = message.get('content')
        if content is None:
            return ''
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return ''.join(
                part['text'] for part in content
                if isinstance(part, dict) and isinstance(part.get('text'), str)
            )
        raise AdapterTransportError(
            self.name, status_code, f'Unexpected response shape: content is {type(content).__name__}'
        )


def _error_body(response) -> str:
    """Prefer the provider's error.message, fall back to the raw text."""
    text = response.text or ''
    try:
        data = response.json()
    except ValueError:
        return text
    if isinstance(data, dict):
        error = data.get('error')
        if isinstance(error, dict) and error.get('message'):
            return error['message']
    return text
