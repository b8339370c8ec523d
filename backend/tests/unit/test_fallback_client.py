"""
Unit tests for fallback_client module.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from config import Settings
from fallback_client import (
    AllProvidersFailedError, FallbackClient, ProvidersNotConfiguredError,
    QuotaExceededError, build_fallback_client, is_quota_error
)
from providers import (
    AdapterTransportError, Attachment, GeminiProvider, GenerationRequest, OpenRouterProvider
)


@pytest.fixture
def request_obj():
    return GenerationRequest(prompt='Write a Veo3 prompt about a robot')


class TestPrimarySuccess:
    """Primary provider succeeds."""

    def test_returns_primary_text(self, make_provider, request_obj):
        """Outcome text should be the primary's text with fallback_used False."""
        primary = make_provider(name='Gemini', text='primary text')
        secondary = make_provider(name='OpenRouter', text='secondary text')
        outcome = FallbackClient([primary, secondary]).generate(request_obj)

        assert outcome.text == 'primary text'
        assert outcome.fallback_used is False
        assert outcome.provider_name == 'Gemini'
        assert outcome.provider_index == 0

    def test_secondary_not_called(self, make_provider, request_obj):
        """Secondary must not be invoked when primary succeeds."""
        primary = make_provider(name='Gemini', text='ok')
        secondary = make_provider(name='OpenRouter', text='unused')
        FallbackClient([primary, secondary]).generate(request_obj)

        assert len(primary.calls) == 1
        assert secondary.calls == []

    def test_primary_only(self, make_provider, request_obj):
        """Works without a secondary provider."""
        outcome = FallbackClient([make_provider(text='solo')]).generate(request_obj)
        assert outcome.text == 'solo'
        assert outcome.fallback_used is False

    def test_empty_text_is_success(self, make_provider, request_obj):
        """An empty response is still a success, not a fallback trigger."""
        secondary = make_provider(name='OpenRouter', text='unused')
        outcome = FallbackClient([make_provider(text=''), secondary]).generate(request_obj)
        assert outcome.text == ''
        assert secondary.calls == []


class TestFallback:
    """Primary fails, secondary configured."""

    def test_secondary_success(self, make_provider, transport_error, request_obj):
        """Outcome should be the secondary's text with fallback_used True."""
        primary = make_provider(name='Gemini', error=transport_error('Gemini', 503, 'overloaded'))
        secondary = make_provider(name='OpenRouter', text='fallback text', model='google/gemini-2.5-flash')
        outcome = FallbackClient([primary, secondary]).generate(request_obj)

        assert outcome.text == 'fallback text'
        assert outcome.fallback_used is True
        assert outcome.provider_name == 'OpenRouter'
        assert outcome.provider_index == 1
        assert outcome.model == 'google/gemini-2.5-flash'

    def test_attempts_recorded(self, make_provider, transport_error, request_obj):
        """Both attempts should be recorded in order."""
        primary = make_provider(name='Gemini', error=transport_error())
        secondary = make_provider(name='OpenRouter', text='ok')
        outcome = FallbackClient([primary, secondary]).generate(request_obj)

        assert [a.provider_name for a in outcome.attempts] == ['Gemini', 'OpenRouter']
        assert outcome.attempts[0].ok is False
        assert outcome.attempts[1].ok is True

    def test_sequential_order(self, make_provider, transport_error, request_obj):
        """Secondary is only called after the primary has failed."""
        call_log = []
        primary = make_provider(name='Gemini', error=transport_error(), call_log=call_log)
        secondary = make_provider(name='OpenRouter', text='ok', call_log=call_log)
        FallbackClient([primary, secondary]).generate(request_obj)

        assert call_log == ['Gemini', 'OpenRouter']

    def test_same_request_forwarded(self, make_provider, transport_error):
        """Both providers receive the identical request."""
        request = GenerationRequest('prompt', [Attachment(b'\x89PNG', 'image/png')])
        primary = make_provider(name='Gemini', error=transport_error())
        secondary = make_provider(name='OpenRouter', text='ok')
        FallbackClient([primary, secondary]).generate(request)

        assert primary.calls[0] is request
        assert secondary.calls[0] is request


class TestAllFailed:
    """Every configured provider fails."""

    def test_both_fail_mentions_both(self, make_provider, transport_error, request_obj):
        """Error message should embed both underlying failures."""
        primary = make_provider(name='Gemini', error=transport_error('Gemini', 500, 'primary exploded'))
        secondary = make_provider(name='OpenRouter', error=transport_error('OpenRouter', 503, 'secondary down'))

        with pytest.raises(AllProvidersFailedError) as exc_info:
            FallbackClient([primary, secondary]).generate(request_obj)

        message = str(exc_info.value)
        assert 'primary exploded' in message
        assert 'secondary down' in message
        assert not isinstance(exc_info.value, QuotaExceededError)
        assert len(exc_info.value.failures) == 2

    def test_quota_402_rewritten(self, make_provider, transport_error, request_obj):
        """A 402 from the secondary becomes an upgrade-required message."""
        primary = make_provider(name='Gemini', error=transport_error('Gemini', 500, 'boom'))
        secondary = make_provider(name='OpenRouter', error=transport_error('OpenRouter', 402, 'Payment required'))

        with pytest.raises(QuotaExceededError) as exc_info:
            FallbackClient([primary, secondary]).generate(request_obj)

        message = str(exc_info.value)
        assert 'credits' in message
        assert 'Both APIs failed' not in message

    def test_quota_credits_text_rewritten(self, make_provider, transport_error, request_obj):
        """'credits' in the secondary message also means quota."""
        primary = make_provider(name='Gemini', error=transport_error('Gemini', 500, 'boom'))
        secondary = make_provider(
            name='OpenRouter',
            error=transport_error('OpenRouter', 403, 'This request requires more credits')
        )

        with pytest.raises(QuotaExceededError):
            FallbackClient([primary, secondary]).generate(request_obj)

    def test_quota_on_primary_only_not_rewritten(self, make_provider, transport_error, request_obj):
        """Only the fallback failure is checked for quota markers."""
        primary = make_provider(name='Gemini', error=transport_error('Gemini', 402, 'no credits'))
        secondary = make_provider(name='OpenRouter', error=transport_error('OpenRouter', 500, 'down'))

        with pytest.raises(AllProvidersFailedError) as exc_info:
            FallbackClient([primary, secondary]).generate(request_obj)
        assert not isinstance(exc_info.value, QuotaExceededError)

    def test_quota_error_is_all_failed(self):
        """QuotaExceededError specializes AllProvidersFailedError."""
        assert issubclass(QuotaExceededError, AllProvidersFailedError)

    def test_single_provider_failure_propagates(self, make_provider, transport_error, request_obj):
        """Without a secondary the primary's error propagates unchanged."""
        error = transport_error('Gemini', 500, 'only provider failed')
        with pytest.raises(AdapterTransportError) as exc_info:
            FallbackClient([make_provider(error=error)]).generate(request_obj)
        assert exc_info.value is error

    def test_single_provider_quota_rewritten(self, make_provider, transport_error, request_obj):
        """A lone OpenRouter provider out of credits still gets the upgrade message."""
        error = transport_error('OpenRouter', 402, 'Insufficient credits')
        with pytest.raises(QuotaExceededError) as exc_info:
            FallbackClient([make_provider(name='OpenRouter', error=error)]).generate(request_obj)

        assert exc_info.value.failures == [error]
        assert 'openrouter.ai/settings/credits' in str(exc_info.value)


class TestNotConfigured:
    """Zero providers configured."""

    def test_fails_immediately(self, request_obj):
        with pytest.raises(ProvidersNotConfiguredError):
            FallbackClient([]).generate(request_obj)

    def test_no_network_attempt(self, monkeypatch, request_obj):
        """Built from empty settings, no HTTP call is made."""
        import requests

        def fail_post(*args, **kwargs):
            raise AssertionError('network should not be touched')

        monkeypatch.setattr(requests, 'post', fail_post)
        client = build_fallback_client(Settings())

        assert client.configured is False
        with pytest.raises(ProvidersNotConfiguredError):
            client.generate(request_obj)


class TestBuildFallbackClient:
    """Tests for build_fallback_client()."""

    def test_both_keys_gemini_first(self):
        client = build_fallback_client(Settings(gemini_api_key='g-key', openrouter_api_key='o-key'))
        assert isinstance(client.providers[0], GeminiProvider)
        assert isinstance(client.providers[1], OpenRouterProvider)
        assert client.provider_names == ['Gemini', 'OpenRouter']

    def test_openrouter_only(self):
        client = build_fallback_client(Settings(openrouter_api_key='o-key'))
        assert len(client.providers) == 1
        assert isinstance(client.providers[0], OpenRouterProvider)

    def test_models_from_settings(self):
        client = build_fallback_client(Settings(
            gemini_api_key='g-key', gemini_model='gemini-test',
            openrouter_api_key='o-key', openrouter_model='vendor/model'
        ))
        assert [p.model for p in client.providers] == ['gemini-test', 'vendor/model']


class TestIsQuotaError:
    """Tests for is_quota_error()."""

    def test_status_402(self):
        assert is_quota_error(AdapterTransportError('OpenRouter', 402, 'Payment required'))

    def test_credits_in_body(self):
        assert is_quota_error(AdapterTransportError('OpenRouter', 400, 'Insufficient credits'))

    def test_plain_server_error(self):
        assert not is_quota_error(AdapterTransportError('OpenRouter', 500, 'Server error'))

    def test_transport_error_without_status(self):
        assert not is_quota_error(AdapterTransportError('OpenRouter', None, 'Connection reset'))


class TestGenerateText:
    """Tests for generate_text() convenience wrapper."""

    def test_builds_request_with_attachments(self, make_provider):
        provider = make_provider(text='ok')
        attachment = Attachment('aGVsbG8=', 'image/jpeg')
        FallbackClient([provider]).generate_text('describe', attachments=[attachment])

        sent = provider.calls[0]
        assert sent.prompt == 'describe'
        assert sent.attachments == (attachment,)
