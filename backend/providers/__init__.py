"""
Provider Package

Adapters between a generic text-generation call and one external
provider's wire format (Gemini SDK, OpenRouter chat completions).
"""

from .base import (
    AIServiceError, AdapterTransportError, Attachment, GenerationRequest, TextProvider
)
from .gemini import GeminiProvider
from .openrouter import OpenRouterProvider

__all__ = [
    'AIServiceError', 'AdapterTransportError', 'Attachment', 'GenerationRequest',
    'TextProvider', 'GeminiProvider', 'OpenRouterProvider'
]
