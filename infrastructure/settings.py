"""Settings access helpers for the JSON configuration file.

Keys are dotted paths into nested objects (``"sync.batch_size"``). Typed
getters fall back to the supplied default when a key is missing, null or
of the wrong type, so a partially edited file never stops the application.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


class JsonSettings:
    """Dotted-key reader over ``settings.json``."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_int(self, key: str, default: int) -> int:
        """Return `key` as int, falling back to `default` on missing/invalid values."""
        try:
            return int(self.get(key, default) or default)
        except (ValueError, TypeError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return default

    def get_path(self, key: str, default: str | Path | None = None) -> Path | None:
        """Return `key` as a path with ``~`` and environment variables expanded.

        Relative paths are resolved against the settings file's directory.
        """
        value = self.get(key) or default
        if not value:
            return None
        path = Path(os.path.expanduser(os.path.expandvars(str(value))))
        if not path.is_absolute():
            path = self._path.parent / path
        return path
