"""
AI Service
Prompt-generation operations built on the fallback client and the extractor.
Route handlers receive one PromptService instance from the app factory.
"""
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from fallback_client import FallbackClient, FallbackOutcome
from logging_config import get_request_logger, preview
from prompt_extractor import (
    AnalysisOutput, ChatReply, ExtractionResult,
    default_paragraph, extract_sections, extract_structured_prompt,
    parse_analysis, split_chat_sections
)
from prompt_templates import (
    IMAGE_ANALYSIS_PROMPT, PromptForm,
    build_chat_prompt, build_dual_format_prompt, build_json_prompt, build_paragraph_prompt
)
from providers import Attachment


@dataclass
class PromptResult:
    """Generated prompt(s) plus response metadata"""
    metadata: dict
    json_prompt: Optional[str] = None
    paragraph_prompt: Optional[str] = None
    extraction: Optional[ExtractionResult] = None


@dataclass
class ChatResult:
    reply: ChatReply
    metadata: dict = field(default_factory=dict)


@dataclass
class AnalysisResult:
    analysis: AnalysisOutput
    metadata: dict = field(default_factory=dict)


def _model_label(outcome: FallbackOutcome) -> str:
    """Fallback answers are labelled provider/model, without the model's vendor prefix."""
    if outcome.fallback_used:
        model = outcome.model.rsplit('/', 1)[-1]
        return f'{outcome.provider_name.lower()}/{model}'
    return outcome.model


def _metadata(outcome: FallbackOutcome, start_time: float, extraction: Optional[ExtractionResult] = None) -> dict:
    metadata = {
        'model': _model_label(outcome),
        'provider': outcome.provider_name,
        'processingTime': int((time.time() - start_time) * 1000),
        'fallbackUsed': outcome.fallback_used,
    }
    if extraction is not None:
        metadata['extraction'] = extraction.stage.value
    return metadata


class PromptService:
    """Veo3 prompt operations over one FallbackClient"""

    def __init__(self, client: FallbackClient):
        self.client = client

    def providers_status(self) -> dict:
        return {
            'configured': self.client.configured,
            'providers': self.client.provider_names,
        }

    def generate_json_prompt(self, form: PromptForm, request_id: Optional[str] = None) -> PromptResult:
        """
        Ask for a JSON-only Veo3 prompt and coerce the answer into the schema.

        Raises:
            AIServiceError: every provider failed or none is configured
        """
        log = get_request_logger('ai_service', request_id)
        start_time = time.time()

        outcome = self.client.generate_text(build_json_prompt(form), request_id=request_id)
        extraction = extract_structured_prompt(outcome.text, form)
        if extraction.degraded:
            log.warning(f"JSON prompt fell back to template: {extraction.reason}")
        else:
            log.info(f"JSON prompt extracted ({extraction.stage.value})")

        return PromptResult(
            json_prompt=extraction.prompt.to_json(),
            extraction=extraction,
            metadata=_metadata(outcome, start_time, extraction)
        )

    def generate_paragraph_prompt(self, form: PromptForm, request_id: Optional[str] = None) -> PromptResult:
        log = get_request_logger('ai_service', request_id)
        start_time = time.time()

        outcome = self.client.generate_text(build_paragraph_prompt(form), request_id=request_id)
        paragraph = outcome.text.strip()
        if not paragraph:
            log.warning("Empty paragraph from provider, using template paragraph")
            paragraph = default_paragraph(form)

        return PromptResult(paragraph_prompt=paragraph, metadata=_metadata(outcome, start_time))

    def generate_dual_prompt(self, form: PromptForm, request_id: Optional[str] = None) -> PromptResult:
        """Both formats from one call, split on the section markers."""
        log = get_request_logger('ai_service', request_id)
        start_time = time.time()

        outcome = self.client.generate_text(build_dual_format_prompt(form), request_id=request_id)
        sections = extract_sections(outcome.text, form)
        log.info(
            f"Dual prompt: json={sections.structured.stage.value}, "
            f"paragraph={'section' if sections.paragraph_found else 'full response'}"
        )

        return PromptResult(
            json_prompt=sections.structured.prompt.to_json(),
            paragraph_prompt=sections.paragraph,
            extraction=sections.structured,
            metadata=_metadata(outcome, start_time, sections.structured)
        )

    def chat(
        self,
        message: str,
        attachments: Optional[Sequence[Attachment]] = None,
        history: Optional[Sequence[dict]] = None,
        request_id: Optional[str] = None
    ) -> ChatResult:
        start_time = time.time()
        outcome = self.client.generate_text(
            build_chat_prompt(message, history),
            attachments=attachments,
            request_id=request_id
        )
        reply = split_chat_sections(outcome.text)
        get_request_logger('ai_service', request_id).info(f"Chat reply: type={reply.type}, {preview(outcome.text, 80)}")
        return ChatResult(reply=reply, metadata=_metadata(outcome, start_time))

    def analyze_image(self, image_base64: str, mime_type: str, request_id: Optional[str] = None) -> AnalysisResult:
        start_time = time.time()
        outcome = self.client.generate_text(
            IMAGE_ANALYSIS_PROMPT,
            attachments=[Attachment(data=image_base64, mime_type=mime_type)],
            request_id=request_id
        )
        return AnalysisResult(analysis=parse_analysis(outcome.text), metadata=_metadata(outcome, start_time))
