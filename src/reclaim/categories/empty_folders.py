"""Category for directories left behind by uninstalled applications."""

from __future__ import annotations

import os
from pathlib import Path

from reclaim.categories.marker_files import is_marker
from reclaim.core.walker import should_skip_dir, walk
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import xdg_cache_home, xdg_config_home, xdg_data_home

_MAX_DEPTH = 6

# Directories other tools expect to exist even when empty
_PROTECTED = frozenset({"autostart", "applications", "Trash", "keyrings", "systemd", "fonts", "icons"})


def _is_effectively_empty(path: str) -> bool:
    """True if *path* holds nothing, or only OS marker files."""
    try:
        with os.scandir(path) as it:
            for entry in it:
                if entry.is_dir(follow_symlinks=False) or not is_marker(entry.name):
                    return False
    except OSError:
        return False
    return True


class EmptyFoldersCategory(CleanCategory):
    """Empty directories inside the XDG config, data and cache trees.

    Only the deepest empty directories are reported; removing them may
    leave a parent empty for the next scan.
    """

    id = "empty_folders"
    label = "Empty Folders"
    description = "Empty directories left behind by removed applications."
    sort_order = 65

    def __init__(self, roots: tuple[Path, ...] | None = None) -> None:
        self._roots = roots

    def _scan_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        return (xdg_config_home(), xdg_data_home(), xdg_cache_home())

    def scan(self) -> ScanResult:
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []

        for root in self._scan_roots():
            if not root.is_dir():
                continue
            for entry in walk(root, warnings, skip_dir=should_skip_dir, max_depth=_MAX_DEPTH):
                if not entry.is_dir(follow_symlinks=False) or entry.name in _PROTECTED:
                    continue
                if _is_effectively_empty(entry.path):
                    entries.append(self._entry(Path(entry.path), 0, "Empty directory"))

        return self._result(entries, warnings, summary=f"Found {len(entries)} empty folders")
