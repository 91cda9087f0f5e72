"""Category for files with identical content."""

from __future__ import annotations

from pathlib import Path

from reclaim.core import duplicates
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanResult
from reclaim.utils import bytes_to_human, home_dir


class DuplicatesCategory(CleanCategory):
    """Finds byte-identical files and offers to remove all but one copy."""

    id = "duplicates"
    label = "Duplicate Files"
    description = "Files with identical content. One copy of each set is always kept."
    risk_level = "moderate"
    sort_order = 75

    def __init__(
        self,
        min_size: int = duplicates.MIN_SIZE,
        max_size: int = duplicates.MAX_SIZE,
        roots: tuple[Path, ...] | None = None,
    ) -> None:
        self.min_size = min_size
        self.max_size = max_size
        self._roots = roots

    def _scan_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        home = home_dir()
        return (home / "Documents", home / "Downloads", home / "Desktop", home / "Pictures")

    @property
    def unavailable_reason(self) -> str | None:
        if not any(root.is_dir() for root in self._scan_roots()):
            return "No directories to search for duplicates"
        return None

    def scan(self) -> ScanResult:
        found = duplicates.find_duplicates(
            self._scan_roots(),
            min_size=self.min_size,
            max_size=self.max_size,
            category_id=self.id,
            should_stop=self._stop_requested,
        )
        entries = found.removable
        reclaimable = sum(e.size_bytes for e in entries)
        return self._result(
            entries,
            found.warnings,
            summary=(
                f"Found {len(found.groups)} duplicate sets, "
                f"{len(entries)} removable copies ({bytes_to_human(reclaimable)})"
            ),
            groups=found.groups,
        )
