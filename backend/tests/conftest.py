"""
Shared pytest fixtures for Veo3 Prompt Generator tests.
"""
import json
import os
import sys
import tempfile

import pytest

# Add backend directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep test logs out of the source tree (read at logging_config import)
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='veo3-test-logs-'))

from providers import AdapterTransportError, TextProvider


class FakeProvider(TextProvider):
    """In-memory provider: returns fixed text or raises a fixed error."""

    def __init__(self, name='Fake', text='', error=None, model='fake-model', call_log=None):
        super().__init__(model)
        self.name = name
        self.text = text
        self.error = error
        self.calls = []
        self.call_log = call_log

    def generate(self, request):
        self.calls.append(request)
        if self.call_log is not None:
            self.call_log.append(self.name)
        if self.error is not None:
            raise self.error
        return self.text


SAMPLE_PROMPT = {
    "scene": "A sunlit greenhouse full of ferns",
    "subject": "A small silver robot with round eyes",
    "action": "The robot carefully waters a single red flower",
    "camera": "Slow dolly-in from a low angle",
    "lighting": "Warm morning light through glass panels",
    "audio": "Soft piano with dripping water",
    "technical": {
        "duration": "15-60 seconds",
        "quality": "4K, 30fps",
        "aspect_ratio": "16:9",
        "style": "cinematic"
    }
}


@pytest.fixture
def sample_prompt():
    """A well-formed structured prompt as a dict."""
    return json.loads(json.dumps(SAMPLE_PROMPT))


@pytest.fixture
def sample_form_data():
    """Valid form body for the prompt endpoints."""
    return {
        'mainSubject': '  a robot  ',
        'sceneAction': 'waters a flower',
        'dialogue': '',
        'cameraMovement': 'slow pan',
    }


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def transport_error():
    """Factory for AdapterTransportError instances."""
    def _make(provider='Gemini', status_code=500, body='Internal error'):
        return AdapterTransportError(provider, status_code, body)
    return _make


@pytest.fixture
def make_client():
    """Build a Flask test client around the given providers."""
    from app import create_app
    from ai_service import PromptService
    from fallback_client import FallbackClient

    def _make(providers):
        flask_app = create_app(prompt_service=PromptService(FallbackClient(providers)))
        flask_app.config['TESTING'] = True
        return flask_app.test_client()

    return _make


@pytest.fixture
def app():
    """Flask application with a single healthy fake provider."""
    from app import create_app
    from ai_service import PromptService
    from fallback_client import FallbackClient

    provider = FakeProvider(name='Gemini', text=json.dumps(SAMPLE_PROMPT), model='gemini-2.5-flash')
    flask_app = create_app(prompt_service=PromptService(FallbackClient([provider])))
    flask_app.config['TESTING'] = True

    yield flask_app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
