"""
Provider base types: generation requests, attachments and transport errors
"""
import base64
import binascii
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union


class AIServiceError(Exception):
    """Base exception for every AI provider / fallback failure"""
    pass


class AdapterTransportError(AIServiceError):
    """HTTP or transport failure from a single provider"""

    def __init__(self, provider: str, status_code: Optional[int] = None, body: str = ''):
        self.provider = provider
        self.status_code = status_code
        self.body = body or ''
        if status_code is not None:
            message = f'{provider} API error: {status_code} - {self.body}'
        else:
            message = f'{provider} request failed: {self.body}'
        super().__init__(message)


@dataclass(frozen=True)
class Attachment:
    """Binary attachment sent alongside a prompt (raw bytes or base64 text)"""
    data: Union[bytes, str]
    mime_type: str

    def as_base64(self) -> str:
        if isinstance(self.data, bytes):
            return base64.b64encode(self.data).decode('ascii')
        return self.data

    def as_bytes(self) -> bytes:
        if isinstance(self.data, bytes):
            return self.data
        try:
            return base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f'Attachment is not valid base64: {e}')


@dataclass(frozen=True)
class GenerationRequest:
    """A prompt plus ordered attachments. Immutable once built."""
    prompt: str
    attachments: Tuple[Attachment, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept lists from callers, store a tuple
        object.__setattr__(self, 'attachments', tuple(self.attachments))

    @classmethod
    def with_attachments(cls, prompt: str, attachments: Optional[Sequence[Attachment]] = None):
        return cls(prompt=prompt, attachments=tuple(attachments or ()))


class TextProvider:
    """
    One external text-generation backend.

    Subclasses translate a GenerationRequest into their wire format and
    return the first text span of the response ('' when there is none).
    Failures must be raised as AdapterTransportError. No retries here.
    """
    name = 'provider'

    def __init__(self, model: str):
        self.model = model

    def generate(self, request: GenerationRequest) -> str:
        raise NotImplementedError

    def __repr__(self):
        return f'{self.__class__.__name__}(model={self.model!r})'
