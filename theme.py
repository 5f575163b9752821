"""
Theme preference persistence
"""
import json
import logging
import os
from typing import Optional

from config import PREFERENCES_PATH, AMBIENT_COLOR_SCHEME

logger = logging.getLogger(__name__)

LIGHT = 'light'
DARK = 'dark'
THEMES = (LIGHT, DARK)
THEME_KEY = 'theme'


class PreferenceStore:
    """Small JSON file holding the user's persisted preferences"""

    def __init__(self, path: str = PREFERENCES_PATH):
        self.path = path

    def _read(self) -> dict:
        try:
            with open(self.path, encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"[THEME] Could not read preferences from {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str):
        """Persist a value; raises OSError when the file cannot be written"""
        data = self._read()
        data[key] = value
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)


def normalize_theme(value) -> Optional[str]:
    """Map a stored value or color-scheme hint to a theme, or None"""
    if not value:
        return None
    value = str(value).strip().strip('"').lower()
    return value if value in THEMES else None


class ThemeManager:
    """
    Holds the active theme for this session.

    The in-memory value is authoritative: if the store cannot be written
    the toggle still takes effect, it just won't survive a restart.
    """

    def __init__(self, store: PreferenceStore, ambient: str = AMBIENT_COLOR_SCHEME):
        self.store = store
        self.ambient = ambient
        self.theme = None

    def load(self, ambient: str = None) -> str:
        """Pick the persisted theme, else the ambient preference, else light"""
        persisted = normalize_theme(self.store.get(THEME_KEY))
        if persisted:
            self.theme = persisted
        else:
            self.theme = normalize_theme(ambient) or normalize_theme(self.ambient) or LIGHT
            logger.debug(f"[THEME] No persisted theme, using {self.theme}")
        return self.theme

    def current(self, ambient: str = None) -> str:
        if self.theme is None:
            return self.load(ambient)
        return self.theme

    def toggle(self) -> str:
        self.theme = DARK if self.current() == LIGHT else LIGHT
        try:
            self.store.set(THEME_KEY, self.theme)
        except OSError as e:
            logger.warning(f"[THEME] Could not persist theme '{self.theme}': {e}")
        return self.theme
