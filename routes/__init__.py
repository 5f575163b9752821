"""
Routes package for the Model Manager client
"""

from .ui import ui_bp
from .api import api_bp
from .health import health_bp

__all__ = [
    'ui_bp',
    'api_bp',
    'health_bp',
]
