"""Category for old screenshots and screen recordings."""

from __future__ import annotations

import time
from pathlib import Path

from reclaim.core.walker import iter_files
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import bytes_to_human, home_dir

DEFAULT_MAX_AGE_DAYS = 30

# GNOME uses "Screenshot from ...", KDE and macOS "Screenshot ..."
NAME_PREFIXES = ("Screenshot ", "Screenshot_", "Screen Recording ", "Screencast from ")
EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".tiff", ".gif", ".mov", ".mp4", ".webm"})


def is_screenshot(name: str) -> bool:
    return name.startswith(NAME_PREFIXES) and Path(name).suffix.lower() in EXTENSIONS


class ScreenshotsCategory(CleanCategory):
    """Screen captures not modified for ``max_age_days``.

    Only files directly inside the screenshot folders are considered;
    anything the user filed away into subfolders is left alone.
    """

    id = "screenshots"
    label = "Old Screenshots"
    description = "Screenshots and screen recordings older than a month."
    risk_level = "moderate"
    sort_order = 65

    def __init__(self, max_age_days: int = DEFAULT_MAX_AGE_DAYS, roots: tuple[Path, ...] | None = None) -> None:
        self.max_age_days = max_age_days
        self._roots = roots

    def _scan_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        home = home_dir()
        return (
            home / "Pictures" / "Screenshots",
            home / "Pictures",
            home / "Videos" / "Screencasts",
            home / "Desktop",
        )

    @property
    def unavailable_reason(self) -> str | None:
        if not any(root.is_dir() for root in self._scan_roots()):
            return "No screenshot folders found"
        return None

    def scan(self) -> ScanResult:
        warnings: list[ScanWarning] = []
        now = time.time()
        cutoff = now - self.max_age_days * 86400
        entries: list[ScanEntry] = []

        for path, st in iter_files(dict.fromkeys(self._scan_roots()), warnings, max_depth=1):
            if not is_screenshot(path.name) or st.st_mtime > cutoff:
                continue
            days = int((now - st.st_mtime) // 86400)
            entries.append(self._entry(path, st.st_size, f"Taken {days} days ago"))

        entries.sort(key=lambda e: (-e.size_bytes, str(e.path)))
        total = sum(e.size_bytes for e in entries)
        return self._result(
            entries,
            warnings,
            summary=f"Found {len(entries)} old screenshots ({bytes_to_human(total)})",
        )
