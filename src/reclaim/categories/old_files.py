"""Category for big files nobody has touched in months."""

from __future__ import annotations

import time
from pathlib import Path

from reclaim.core.walker import iter_files, should_skip_dir
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import home_dir

DEFAULT_MIN_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_AGE_DAYS = 180

_MAX_DEPTH = 8


class OldFilesCategory(CleanCategory):
    """Files above a minimum size not accessed or modified for a long time.

    A file may also be reported by the duplicates category; the two are
    evaluated independently.
    """

    id = "old_files"
    label = "Stale Files"
    description = "Large files in Downloads, Documents and Desktop unused for months."
    risk_level = "aggressive"
    sort_order = 70

    def __init__(
        self,
        min_size: int = DEFAULT_MIN_SIZE,
        max_age_days: int = DEFAULT_MAX_AGE_DAYS,
        roots: tuple[Path, ...] | None = None,
    ) -> None:
        self.min_size = min_size
        self.max_age_days = max_age_days
        self._roots = roots

    def _scan_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        home = home_dir()
        return (home / "Downloads", home / "Documents", home / "Desktop")

    def scan(self) -> ScanResult:
        warnings: list[ScanWarning] = []
        cutoff = time.time() - self.max_age_days * 86400
        entries: list[ScanEntry] = []

        for path, st in iter_files(self._scan_roots(), warnings, skip_dir=should_skip_dir, max_depth=_MAX_DEPTH):
            if st.st_size < self.min_size:
                continue
            last_used = max(st.st_atime, st.st_mtime)
            if last_used > cutoff:
                continue
            days = int((time.time() - last_used) // 86400)
            entries.append(self._entry(path, st.st_size, f"Unused for {days} days"))

        entries.sort(key=lambda e: (-e.size_bytes, str(e.path)))
        return self._result(entries, warnings, summary=f"Found {len(entries)} stale files")
