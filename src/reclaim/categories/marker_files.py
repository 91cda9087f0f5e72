"""Category for folder metadata files left behind by other operating systems."""

from __future__ import annotations

from pathlib import Path

from reclaim.core.walker import iter_files, should_skip_dir
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import home_dir

_MARKER_NAMES = frozenset({".DS_Store", "Thumbs.db", "ehthumbs.db", "desktop.ini"})

_MAX_DEPTH = 8


def is_marker(name: str) -> bool:
    """Check for Finder/Explorer metadata, including AppleDouble ``._*`` files."""
    return name in _MARKER_NAMES or (name.startswith("._") and len(name) > 2)


class MarkerFilesCategory(CleanCategory):
    """.DS_Store, Thumbs.db, desktop.ini and AppleDouble files."""

    id = "marker_files"
    label = "Marker Files"
    description = "Folder metadata written by macOS and Windows when browsing shared drives."
    sort_order = 45

    def __init__(self, root: Path | None = None) -> None:
        self._root = root

    def _scan_root(self) -> Path:
        return self._root or home_dir()

    def scan(self) -> ScanResult:
        root = self._scan_root()
        warnings: list[ScanWarning] = []
        if not root.is_dir():
            return self._result([], warnings, summary=f"Path does not exist: {root}")

        entries: list[ScanEntry] = [
            self._entry(path, st.st_size, f"Marker: {path.name}")
            for path, st in iter_files([root], warnings, skip_dir=should_skip_dir, max_depth=_MAX_DEPTH)
            if is_marker(path.name)
        ]
        return self._result(entries, warnings, summary=f"Found {len(entries)} marker files")
