"""Category to empty the user's trash."""

from __future__ import annotations

import logging
from pathlib import Path

from reclaim.core.walker import dir_info
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import xdg_data_home

log = logging.getLogger(__name__)


class TrashCategory(CleanCategory):
    """Empties the user's trash directory (~/.local/share/Trash)."""

    id = "trash"
    label = "Trash"
    description = "Permanently deletes files in the trash. These files were already deleted by the user."
    sort_order = 5

    def _trash_dir(self) -> Path:
        return xdg_data_home() / "Trash"

    @property
    def unavailable_reason(self) -> str | None:
        if not self._trash_dir().is_dir():
            return "Trash directory not found"
        return None

    def scan(self) -> ScanResult:
        trash_dir = self._trash_dir()
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []

        for subdir in (trash_dir / "files", trash_dir / "info"):
            if not subdir.is_dir():
                continue
            try:
                items = sorted(subdir.iterdir())
            except OSError as exc:
                warnings.append(ScanWarning.from_error(subdir, exc))
                continue
            for item in items:
                try:
                    if item.is_dir() and not item.is_symlink():
                        size, _count = dir_info(item, warnings)
                    else:
                        size = item.lstat().st_size
                except OSError as exc:
                    log.debug("Cannot access: %s", item)
                    warnings.append(ScanWarning.from_error(item, exc))
                    continue
                entries.append(self._entry(item, size, f"Trash: {item.name}"))

        return self._result(entries, warnings, summary=f"Found {len(entries)} items in trash")
