"""
Configuration Module
Reads provider keys and runtime settings from the environment (.env supported)
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_GEMINI_MODEL = 'gemini-2.5-flash'
DEFAULT_OPENROUTER_MODEL = 'google/gemini-2.5-flash'
DEFAULT_OPENROUTER_BASE_URL = 'https://openrouter.ai/api/v1'
DEFAULT_SITE_URL = 'http://localhost:3000'
DEFAULT_APP_TITLE = 'veo3promptgenerator'
REQUEST_TIMEOUT = 120  # seconds per provider call
DEFAULT_PORT = 5001

# Values shipped in .env templates; treated as "not configured"
PLACEHOLDER_KEYS = {
    'your_gemini_api_key_here',
    'your_openrouter_api_key_here',
}


@dataclass(frozen=True)
class Settings:
    """Runtime settings consumed by the provider layer and the Flask app."""
    gemini_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    openrouter_model: str = DEFAULT_OPENROUTER_MODEL
    openrouter_base_url: str = DEFAULT_OPENROUTER_BASE_URL
    site_url: str = DEFAULT_SITE_URL
    app_title: str = DEFAULT_APP_TITLE
    request_timeout: int = REQUEST_TIMEOUT
    port: int = DEFAULT_PORT

    @property
    def has_gemini(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_openrouter(self) -> bool:
        return bool(self.openrouter_api_key)


def _read_key(name: str) -> Optional[str]:
    value = (os.getenv(name) or '').strip()
    if not value or value in PLACEHOLDER_KEYS:
        return None
    return value


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f'{name} must be an integer, got {raw!r}')


def load_settings() -> Settings:
    """
    Build Settings from the current environment.

    Keys are read at call time so a restarted worker picks up a new .env.

    Returns:
        Settings instance
    """
    return Settings(
        gemini_api_key=_read_key('GEMINI_API_KEY'),
        openrouter_api_key=_read_key('OPENROUTER_API_KEY'),
        gemini_model=os.getenv('GEMINI_MODEL', DEFAULT_GEMINI_MODEL),
        openrouter_model=os.getenv('OPENROUTER_MODEL', DEFAULT_OPENROUTER_MODEL),
        openrouter_base_url=os.getenv('OPENROUTER_BASE_URL', DEFAULT_OPENROUTER_BASE_URL).rstrip('/'),
        site_url=os.getenv('SITE_URL', DEFAULT_SITE_URL),
        app_title=os.getenv('APP_TITLE', DEFAULT_APP_TITLE),
        request_timeout=_read_int('REQUEST_TIMEOUT', REQUEST_TIMEOUT),
        port=_read_int('PORT', DEFAULT_PORT),
    )
