"""JSON-backed settings store with typed accessors for scan parameters."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from reclaim.core import duplicates
from reclaim.utils import home_dir, parse_size, xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "reclaim"
_SETTINGS_FILE = "settings.json"

DEFAULTS: dict[str, Any] = {
    "scan_root": None,
    "large_files": {"threshold": "100MB"},
    "duplicates": {"min_size": duplicates.MIN_SIZE, "max_size": duplicates.MAX_SIZE, "roots": None},
    "old_files": {"min_size": "10MB", "max_age_days": 180, "roots": None},
    "screenshots": {"max_age_days": 30, "roots": None},
    "build_artifacts": {"roots": None},
    "language_files": {"roots": None, "keep": []},
    "shred": {"passes": 3},
    "category_paths": [],
}


class Settings:
    """Persistent settings backed by a JSON file.

    Uses dot-notation keys for nested access:
        settings.get("duplicates.min_size")  # reads data["duplicates"]["min_size"]
        settings.set("shred.passes", 7)  # writes + saves

    Missing keys fall back to ``DEFAULTS``.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_path()
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def in_memory(cls, data: dict[str, Any] | None = None) -> Settings:
        """Build settings that are never read from or written to disk."""
        settings = cls.__new__(cls)
        settings._path = None
        settings._data = dict(data or {})
        return settings

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key."""
        for source in (self._data, DEFAULTS):
            found, value = _lookup(source, key)
            if found and value is not None:
                return value
        return default

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    # -- Typed accessors --

    def get_size(self, key: str) -> int:
        """Read a size value, accepting ints or strings like ``"100MB"``."""
        return parse_size(self.get(key, 0))

    def get_int(self, key: str) -> int:
        return int(self.get(key, 0))

    def get_paths(self, key: str, default: list[Path] | tuple[Path, ...] = ()) -> tuple[Path, ...]:
        """Read a list of paths, expanding ``~``; falls back to *default*."""
        raw = self.get(key)
        if not raw:
            return tuple(default)
        if isinstance(raw, str):
            raw = [raw]
        return tuple(Path(p).expanduser() for p in raw)

    def scan_root(self) -> Path:
        """Root directory for whole-tree categories, defaulting to home."""
        raw = self.get("scan_root")
        return Path(raw).expanduser() if raw else home_dir()

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if self._path is None or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Ignoring settings file %s: top level is not an object", self._path)
            return
        self._data = data

    def _save(self) -> None:
        """Persist settings to disk."""
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)


def default_path() -> Path:
    return xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE


def _lookup(data: dict[str, Any], key: str) -> tuple[bool, Any]:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return False, None
        node = node[part]
    return True, node
