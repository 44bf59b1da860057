"""Layered settings for the quiz service.

Values come from four layers, later ones winning:

    defaults < env / .env < config file < pushed overrides

The config file (YAML or JSON) may be flat (``store_backend: sql``) or grouped
by section::

    store:
      backend: sql
    database:
      url: postgresql+asyncpg://...
    hearts:
      max: 5
      refill_hours: 24

A bad file or a bad override never replaces the last good Settings.
"""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from pydantic import ValidationError

logger = logging.getLogger(__name__)

_PARSERS: dict[str, Callable[[str], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.loads,
}

# Section keys that do not follow the "<section>_<key>" naming.
_SECTION_ALIASES = {
    "hearts": {"max": "max_hearts", "refill_hours": "heart_refill_hours"},
}


def _flatten(data: dict[str, Any]) -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if not isinstance(value, dict):
            flat[key] = value
            continue
        aliases = _SECTION_ALIASES.get(key, {})
        for sub_key, sub_value in value.items():
            flat[aliases.get(sub_key, f"{key}_{sub_key}")] = sub_value
    return flat


def load_config_file(path: Path) -> dict[str, Any]:
    """Parse a config file into flat settings keys; {} when missing or unreadable."""
    if not path.exists():
        logger.debug("No config file at %s; using env and defaults", path)
        return {}
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        logger.warning("Unsupported config file type %s (use .yaml, .yml or .json)", path)
        return {}
    try:
        data = parser(path.read_text())
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s must hold a mapping, got %s", path, type(data).__name__)
        return {}
    return _flatten(data)


class ConfigStore:
    """Thread-safe holder of the current Settings."""

    def __init__(self, settings_cls: type, config_file_path: Optional[str] = None):
        self._settings_cls = settings_cls
        self._file_path = Path(config_file_path).expanduser().resolve() if config_file_path else None
        self._overrides: dict[str, Any] = {}
        self._current: Optional[Any] = None
        self._lock = threading.RLock()

    def _known(self, values: dict[str, Any], source: str) -> dict[str, Any]:
        fields = self._settings_cls.model_fields
        unknown = sorted(k for k in values if k not in fields)
        if unknown:
            logger.warning("Ignoring unknown config keys from %s: %s", source, ", ".join(unknown))
        return {k: v for k, v in values.items() if k in fields}

    def _build(self, overrides: dict[str, Any]) -> Any:
        file_values = load_config_file(self._file_path) if self._file_path else {}
        merged = {
            **self._settings_cls().model_dump(),
            **self._known(file_values, str(self._file_path)),
            **self._known(overrides, "overrides"),
        }
        return self._settings_cls(**merged)

    def load_initial(self) -> None:
        """Build settings from all layers. Raises if env or defaults are invalid."""
        with self._lock:
            self._current = self._build(self._overrides)
            logger.info(
                "Settings loaded (store_backend=%s, auth_mode=%s)",
                self._current.store_backend,
                self._current.auth_mode,
            )

    def get_settings(self) -> Any:
        with self._lock:
            if self._current is None:
                self.load_initial()
            return self._current

    def _rebuild(self, overrides: dict[str, Any], action: str) -> bool:
        try:
            self._current = self._build(overrides)
        except ValidationError as e:
            logger.warning("Config %s rejected; keeping previous settings: %s", action, e)
            return False
        return True

    def update(self, overrides: dict[str, Any]) -> bool:
        """Push overrides on top of the file. Returns False and keeps the old settings when invalid."""
        with self._lock:
            candidate = {**self._overrides, **overrides}
            if not self._rebuild(candidate, "update"):
                return False
            self._overrides = candidate
            return True

    def reload_from_file(self) -> bool:
        with self._lock:
            return self._rebuild(self._overrides, "reload")

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides = {}
            self._rebuild(self._overrides, "reset")
