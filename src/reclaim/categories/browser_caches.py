"""Category for web browser cache directories."""

from __future__ import annotations

from pathlib import Path

from reclaim.models.category import CacheDirsCategory
from reclaim.utils import xdg_cache_home

# Chromium-based browsers keep one cache tree per profile under ~/.cache/<vendor>
_CHROMIUM_VENDORS = (
    "chromium",
    "google-chrome",
    "BraveSoftware/Brave-Browser",
    "microsoft-edge",
    "vivaldi",
    "opera",
)

_CHROMIUM_CACHE_NAMES = ("Cache", "Code Cache", "GPUCache")


def _profile_dirs(base: Path) -> list[Path]:
    if not base.is_dir():
        return []
    try:
        return sorted(p for p in base.iterdir() if p.is_dir() and not p.is_symlink())
    except OSError:
        return []


class BrowserCachesCategory(CacheDirsCategory):
    """Per-profile HTTP caches of Firefox and Chromium-based browsers."""

    id = "browser_caches"
    label = "Browser Caches"
    description = "Cached web pages, scripts and media. Browsers re-download them on demand."
    sort_order = 20

    def __init__(self, cache_dir: Path | None = None) -> None:
        self._cache_dir_override = cache_dir

    @property
    def _cache_dirs(self) -> tuple[Path, ...]:
        cache = self._cache_dir_override or xdg_cache_home()
        dirs: list[Path] = []

        for profile in _profile_dirs(cache / "mozilla" / "firefox"):
            dirs.append(profile / "cache2")

        for vendor in _CHROMIUM_VENDORS:
            for profile in _profile_dirs(cache / vendor):
                dirs.extend(profile / name for name in _CHROMIUM_CACHE_NAMES)

        return tuple(d for d in dirs if d.is_dir())

    @property
    def unavailable_reason(self) -> str | None:
        if not self._cache_dirs:
            return "No browser caches found"
        return None
