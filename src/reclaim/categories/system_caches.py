"""Category for the generic user cache directory (~/.cache)."""

from __future__ import annotations

import logging
from pathlib import Path

from reclaim.core.walker import dir_info
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import xdg_cache_home

log = logging.getLogger(__name__)

# Directories commonly used by active applications that should not be cleaned
_EXCLUDE_DIRS = {
    "fontconfig",
    "icon-cache.kcache",
    "gstreamer-1.0",
    "babl",
    "gegl-0.4",
}

# Owned by the browser_caches and package_managers categories
OWNED_DIRS = frozenset({
    "mozilla",
    "chromium",
    "google-chrome",
    "BraveSoftware",
    "microsoft-edge",
    "vivaldi",
    "opera",
    "pip",
    "pipenv",
    "pypoetry",
    "uv",
    "yarn",
    "pnpm",
    "go-build",
})


def _is_excluded(name: str) -> bool:
    return name in _EXCLUDE_DIRS or name in OWNED_DIRS


class SystemCachesCategory(CleanCategory):
    """Top-level items of ~/.cache, excluding caches owned by other categories."""

    id = "system_caches"
    label = "System Caches"
    description = (
        "Cached files under ~/.cache. Font and media pipeline caches are kept; "
        "applications regenerate everything else as needed."
    )
    risk_level = "moderate"
    sort_order = 10

    def __init__(self, cache_dir: Path | None = None) -> None:
        self._cache_dir_override = cache_dir

    def _cache_dir(self) -> Path:
        return self._cache_dir_override or xdg_cache_home()

    @property
    def unavailable_reason(self) -> str | None:
        if not self._cache_dir().is_dir():
            return "User cache directory not found"
        return None

    def scan(self) -> ScanResult:
        cache_dir = self._cache_dir()
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []

        try:
            items = sorted(cache_dir.iterdir())
        except OSError as exc:
            log.debug("Cannot read cache directory %s: %s", cache_dir, exc)
            return self._result([], [ScanWarning.from_error(cache_dir, exc)])

        for item in items:
            if _is_excluded(item.name):
                continue
            try:
                if item.is_dir() and not item.is_symlink():
                    size, _count = dir_info(item, warnings)
                else:
                    size = item.lstat().st_size
            except OSError as exc:
                warnings.append(ScanWarning.from_error(item, exc))
                continue
            if size > 0:
                entries.append(self._entry(item, size, f"Cache: {item.name}"))

        return self._result(
            entries,
            warnings,
            summary=f"Found {len(entries)} cache directories",
        )
