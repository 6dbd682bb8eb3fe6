"""User settings with smart defaults.

Settings live in ``~/.httpmocker/config.json`` unless ``HTTPMOCKER_CONFIG``
points elsewhere. ``HTTPMOCKER_MODE`` overrides the configured mode, which
makes it easy to flip a test suite into RECORD or MIXED from CI.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError
from .modes import Mode

logger = logging.getLogger(__name__)

_settings = None
_settings_lock = threading.Lock()

DEFAULT_CONFIG_PATH = Path.home() / ".httpmocker" / "config.json"


def settings_path() -> Path:
    override = os.environ.get("HTTPMOCKER_CONFIG")
    return Path(override) if override else DEFAULT_CONFIG_PATH


def _apply_defaults(settings: dict) -> dict:
    settings.setdefault("mode", Mode.DISABLED.value)
    settings.setdefault("delay", 0)
    settings.setdefault("scenarios_path", None)
    settings.setdefault("record_path", None)
    settings.setdefault("format", "json")
    settings.setdefault("fail_on_recording_error", False)
    settings.setdefault("record_live_fallbacks", False)
    settings.setdefault("log_level", "INFO")

    env_mode = os.environ.get("HTTPMOCKER_MODE")
    if env_mode:
        settings["mode"] = env_mode
    try:
        settings["mode"] = Mode.parse(settings["mode"]).value
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    return settings


def read_settings(path: Optional[Path] = None) -> dict:
    """Read settings from ``path`` (or the default location) without caching."""

    path = Path(path) if path else settings_path()
    settings = {}
    if path.exists():
        try:
            settings = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read settings from {path}: {e}") from e
        if not isinstance(settings, dict):
            raise ConfigurationError(f"Settings in {path} must be a JSON object")
    else:
        logger.debug(f"No settings file at {path}, using defaults")
    return _apply_defaults(settings)


def load_settings() -> dict:
    """Load settings once per process"""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = read_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next load re-reads them"""
    global _settings
    with _settings_lock:
        _settings = None
