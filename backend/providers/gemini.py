"""
Gemini Provider
Direct Gemini text generation through the google-genai SDK
"""
import time

from google import genai
from google.genai import errors, types

from logging_config import get_logger
from .base import AdapterTransportError, GenerationRequest, TextProvider

logger = get_logger('gemini')

# Generation settings
TEMPERATURE = 0.7
TOP_K = 40
TOP_P = 0.95
MAX_OUTPUT_TOKENS = 1500


class GeminiProvider(TextProvider):
    """Primary provider: Gemini generateContent with inline attachments"""
    name = 'Gemini'

    def __init__(self, api_key: str, model: str = 'gemini-2.5-flash', timeout: int = 120):
        super().__init__(model)
        if not api_key:
            raise ValueError('Gemini API key is required')
        self._api_key = api_key
        self.timeout = timeout
        self._client = None

    def _get_client(self):
        """Create the SDK client on first use."""
        if self._client is None:
            self._client = genai.Client(
                api_key=self._api_key,
                http_options={'timeout': self.timeout * 1000}  # milliseconds
            )
        return self._client

    def _build_contents(self, request: GenerationRequest) -> list:
        contents = [request.prompt]
        for attachment in request.attachments:
            contents.append(types.Part.from_bytes(
                data=attachment.as_bytes(),
                mime_type=attachment.mime_type
            ))
        return contents

    def generate(self, request: GenerationRequest) -> str:
        """
        Send one generateContent call.

        Args:
            request: Prompt and attachments

        Returns:
            First text part of the first candidate, '' if the model returned none

        Raises:
            AdapterTransportError: on any API or transport failure
        """
        start_time = time.time()
        logger.debug(f"Calling {self.model} with {len(request.attachments)} attachment(s)")

        try:
            contents = self._build_contents(request)
            response = self._get_client().models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    temperature=TEMPERATURE,
                    top_k=TOP_K,
                    top_p=TOP_P,
                    max_output_tokens=MAX_OUTPUT_TOKENS
                )
            )
        except errors.APIError as e:
            logger.warning(f"Gemini API error: code={e.code}, message={e.message}")
            raise AdapterTransportError(self.name, e.code, e.message or str(e))
        except Exception as e:
            logger.warning(f"Gemini request failed: {e}")
            raise AdapterTransportError(self.name, None, str(e))

        elapsed = time.time() - start_time
        text = _first_text(response)
        logger.debug(f"Gemini response in {elapsed:.1f}s, length={len(text)}")
        return text


def _first_text(response) -> str:
    candidates = getattr(response, 'candidates', None) or []
    if not candidates:
        return ''
    content = getattr(candidates[0], 'content', None)
    for part in getattr(content, 'parts', None) or []:
        text = getattr(part, 'text', None)
        if text:
            return text
    return ''
