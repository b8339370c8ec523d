"""
Logging Configuration Module
Request-scoped logging for the Veo3 Prompt Generator backend.

Every HTTP request gets a short request ID; route handlers, the fallback
client and the service layer log through a RequestAdapter carrying it, so
one prompt generation can be followed across primary and fallback calls.
"""
import os
import logging
import uuid
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_DIR = os.getenv('LOG_DIR', os.path.join(os.path.dirname(__file__), 'logs'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-25s | %(request_id)-10s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

APP_LOGGER = 'veo3'
SYSTEM_REQUEST_ID = 'system'
REQUEST_ID_LENGTH = 8
LOG_BACKUP_DAYS = 7


class RequestIdFilter(logging.Filter):
    """Records logged outside a request are tagged 'system'"""
    def filter(self, record):
        if not hasattr(record, 'request_id'):
            record.request_id = SYSTEM_REQUEST_ID
        return True


class RequestAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        kwargs.setdefault('extra', {})['request_id'] = self.extra.get('request_id', SYSTEM_REQUEST_ID)
        return msg, kwargs


def new_request_id() -> str:
    return uuid.uuid4().hex[:REQUEST_ID_LENGTH]


def preview(text: Optional[str], limit: int = 200) -> str:
    """Single-line, length-capped rendering of user or provider text for log lines."""
    if not text:
        return ''
    flat = ' '.join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[:limit] + '...'


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.DEBUG


def _build_handlers(app_name: str) -> list:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    request_filter = RequestIdFilter()

    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    file_handler = TimedRotatingFileHandler(
        filename=os.path.join(LOG_DIR, f'{app_name}.log'),
        when='midnight',
        interval=1,
        backupCount=LOG_BACKUP_DAYS,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)

    # Provider payload timings stay in the file; console gets INFO and up
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)

    handlers = [file_handler, console_handler]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)
    return handlers


def setup_logging(app_name: str = APP_LOGGER) -> logging.Logger:
    """
    Install file + console handlers on the application logger.

    Safe to call more than once; handlers are only attached the first time.

    Args:
        app_name: Logger name and log file base name

    Returns:
        The application logger
    """
    logger = logging.getLogger(app_name)
    if logger.handlers:
        return logger

    logger.setLevel(_resolve_level(LOG_LEVEL))
    for handler in _build_handlers(app_name):
        logger.addHandler(handler)
    logger.propagate = False

    logger.info(f"Logging initialized: level={LOG_LEVEL}, dir={LOG_DIR}")
    return logger


def get_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Args:
        module_name: Name of the module (e.g., 'gemini', 'openrouter', 'routes')

    Returns:
        Logger instance for the module
    """
    return logging.getLogger(f'{APP_LOGGER}.{module_name}')


def get_request_logger(module_name: str, request_id: Optional[str] = None):
    """
    Logger for one request; falls back to the plain module logger without an ID.

    Returns:
        RequestAdapter when request_id is given, otherwise the module Logger
    """
    logger = get_logger(module_name)
    if not request_id:
        return logger
    return RequestAdapter(logger, {'request_id': request_id})
