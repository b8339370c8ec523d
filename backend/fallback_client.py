"""
Provider Fallback Client
Tries text providers in order (Gemini first, OpenRouter second) and
returns the first success. Strictly sequential, one attempt per provider.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from config import Settings
from logging_config import get_logger, get_request_logger
from providers import (
    AIServiceError, AdapterTransportError, Attachment, GenerationRequest,
    GeminiProvider, OpenRouterProvider, TextProvider
)

logger = get_logger('fallback')

UPGRADE_MESSAGE = (
    'OpenRouter API requires more credits. '
    'Please upgrade your account at https://openrouter.ai/settings/credits'
)

# Substrings in a provider failure that mean "out of credits / payment required"
QUOTA_MARKERS = ('credits', '402')


@dataclass
class ProviderAttempt:
    """Outcome of one provider call: text on success, error on failure"""
    provider_name: str
    text: Optional[str] = None
    error: Optional[AdapterTransportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FallbackOutcome:
    """Winning text of a fallback chain and which provider produced it"""
    text: str
    provider_name: str
    provider_index: int
    model: str
    fallback_used: bool
    attempts: List[ProviderAttempt] = field(default_factory=list)


class ProvidersNotConfiguredError(AIServiceError):
    """No provider keys configured; nothing to call"""

    def __init__(self):
        super().__init__('No AI providers configured. Set GEMINI_API_KEY and/or OPENROUTER_API_KEY.')


class AllProvidersFailedError(AIServiceError):
    """Every configured provider failed"""

    def __init__(self, failures: Sequence[AdapterTransportError], message: Optional[str] = None):
        self.failures = list(failures)
        super().__init__(message or _describe_failures(self.failures))


class QuotaExceededError(AllProvidersFailedError):
    """Last provider in the chain reported a billing / credits condition"""

    def __init__(self, failures: Sequence[AdapterTransportError]):
        super().__init__(failures, UPGRADE_MESSAGE)


def _describe_failures(failures: Sequence[AdapterTransportError]) -> str:
    if len(failures) == 2:
        return f'Both APIs failed. Primary: {failures[0]}. Fallback: {failures[1]}'
    details = '; '.join(f'{i + 1}. {failure}' for i, failure in enumerate(failures))
    return f'All {len(failures)} APIs failed: {details}'


def is_quota_error(error: AdapterTransportError) -> bool:
    """True when a provider failure looks like an exhausted credit balance."""
    if error.status_code == 402:
        return True
    message = str(error)
    return any(marker in message for marker in QUOTA_MARKERS)


class FallbackClient:
    """
    Ordered provider chain behind a single generate() call.

    The first provider is primary. Later providers are only called after
    every earlier one has failed, never concurrently.
    """

    def __init__(self, providers: Optional[Sequence[TextProvider]] = None):
        self.providers = list(providers or [])

    @property
    def configured(self) -> bool:
        return bool(self.providers)

    @property
    def provider_names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    def generate(self, request: GenerationRequest, request_id: Optional[str] = None) -> FallbackOutcome:
        """
        Run the request through the provider chain.

        Args:
            request: Prompt and attachments
            request_id: Optional request ID for log correlation

        Returns:
            FallbackOutcome for the first provider that succeeded

        Raises:
            ProvidersNotConfiguredError: zero providers configured
            QuotaExceededError: all failed and the last failure is a credits problem
            AdapterTransportError: the only configured provider failed otherwise
            AllProvidersFailedError: all configured providers failed
        """
        log = get_request_logger('fallback', request_id)

        if not self.providers:
            log.error("Generation requested but no providers are configured")
            raise ProvidersNotConfiguredError()

        attempts = []
        failures = []
        for index, provider in enumerate(self.providers):
            label = 'primary' if index == 0 else 'fallback'
            log.info(f"Attempting {label} provider {provider.name} ({provider.model})")
            try:
                text = provider.generate(request)
            except AdapterTransportError as e:
                log.warning(f"{provider.name} failed: {e}")
                attempts.append(ProviderAttempt(provider.name, error=e))
                failures.append(e)
                continue

            attempts.append(ProviderAttempt(provider.name, text=text))
            log.info(f"{provider.name} succeeded, response length={len(text)}")
            return FallbackOutcome(
                text=text,
                provider_name=provider.name,
                provider_index=index,
                model=provider.model,
                fallback_used=index > 0,
                attempts=attempts
            )

        if is_quota_error(failures[-1]):
            log.error(f"Last provider out of credits: {failures[-1]}")
            raise QuotaExceededError(failures)

        if len(failures) == 1:
            raise failures[0]

        error = AllProvidersFailedError(failures)
        log.error(str(error))
        raise error

    def generate_text(
        self,
        prompt: str,
        attachments: Optional[Sequence[Attachment]] = None,
        request_id: Optional[str] = None
    ) -> FallbackOutcome:
        return self.generate(GenerationRequest.with_attachments(prompt, attachments), request_id=request_id)


def build_fallback_client(settings: Settings) -> FallbackClient:
    """
    Build the provider chain from whichever API keys are configured.

    Gemini is primary when present; OpenRouter is secondary (or the only
    provider when Gemini has no key).
    """
    providers = []
    if settings.has_gemini:
        providers.append(GeminiProvider(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.request_timeout
        ))
    if settings.has_openrouter:
        providers.append(OpenRouterProvider(
            api_key=settings.openrouter_api_key,
            model=settings.openrouter_model,
            base_url=settings.openrouter_base_url,
            site_url=settings.site_url,
            app_title=settings.app_title,
            timeout=settings.request_timeout
        ))

    logger.info(
        f"AI providers: GEMINI_API_KEY={'set' if settings.has_gemini else 'missing'}, "
        f"OPENROUTER_API_KEY={'set' if settings.has_openrouter else 'missing'}"
    )
    if not providers:
        logger.warning("No API keys configured. AI generation endpoints will fail.")

    return FallbackClient(providers)
