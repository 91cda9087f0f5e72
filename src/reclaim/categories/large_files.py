"""Category reporting oversized files for manual review."""

from __future__ import annotations

from pathlib import Path

from reclaim.core.walker import iter_files
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import bytes_to_human, home_dir

DEFAULT_THRESHOLD = 100 * 1024 * 1024

_SKIP_DIRS = frozenset({".git", "Trash", ".Trash", ".cargo", ".rustup", ".cache"})


class LargeFilesCategory(CleanCategory):
    """Files at or above a size threshold.

    Entries are ``report_only``: bulk selection never includes them, they
    are deleted only when picked one by one.
    """

    id = "large_files"
    label = "Large Files"
    description = "Files above the size threshold. Review them individually; nothing is selected by default."
    risk_level = "aggressive"
    sort_order = 80
    report_only = True

    def __init__(self, threshold: int = DEFAULT_THRESHOLD, root: Path | None = None) -> None:
        self.threshold = threshold
        self._root = root

    def _scan_root(self) -> Path:
        return self._root or home_dir()

    def scan(self) -> ScanResult:
        root = self._scan_root()
        warnings: list[ScanWarning] = []
        if not root.is_dir():
            return self._result([], warnings, summary=f"Path does not exist: {root}")

        entries: list[ScanEntry] = [
            self._entry(path, st.st_size, f"Large file ({bytes_to_human(st.st_size)})")
            for path, st in iter_files([root], warnings, skip_dir=_SKIP_DIRS.__contains__)
            if st.st_size >= self.threshold
        ]
        # Biggest files first
        entries.sort(key=lambda e: (-e.size_bytes, str(e.path)))
        return self._result(
            entries,
            warnings,
            summary=f"Found {len(entries)} files of {bytes_to_human(self.threshold)} or more",
        )
