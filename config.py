"""
Configuration and logging setup for the Model Manager client
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None):
    """
    Configure root logging once for the whole process.
    Level comes from LOG_LEVEL unless given explicitly.
    """
    level = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def _get_timeout():
    """Gateway timeout in seconds, or None to rely on transport defaults"""
    value = os.getenv('MODEL_MANAGER_TIMEOUT', '').strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring invalid MODEL_MANAGER_TIMEOUT: {value!r}")
        return None


# Model Registry Gateway, reverse-proxied under /modelmanager/api
GATEWAY_BASE_URL = os.getenv('MODEL_MANAGER_API_URL', 'http://localhost/modelmanager/api').rstrip('/')
GATEWAY_TIMEOUT = _get_timeout()

# Theme preference persistence
PREFERENCES_PATH = os.path.expanduser(
    os.getenv('MODEL_MANAGER_PREFERENCES', '~/.modelmanager/preferences.json')
)
AMBIENT_COLOR_SCHEME = os.getenv('MODEL_MANAGER_COLOR_SCHEME', '')

# Server configuration
SERVER_HOST = os.getenv('SERVER_HOST', '0.0.0.0')
SERVER_PORT = int(os.getenv('SERVER_PORT', '8080'))
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() in ('1', 'true', 'yes')
