"""Category for symbolic links whose target no longer exists."""

from __future__ import annotations

import os
from pathlib import Path

from reclaim.core.walker import should_skip_dir, walk
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import home_dir, xdg_config_home, xdg_data_home

_MAX_DEPTH = 5


class BrokenSymlinksCategory(CleanCategory):
    """Dangling links in launcher, autostart and personal bin directories."""

    id = "broken_symlinks"
    label = "Broken Symlinks"
    description = "Symbolic links pointing to files that were removed or moved."
    sort_order = 55

    def __init__(self, roots: tuple[Path, ...] | None = None) -> None:
        self._roots = roots

    def _scan_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        home = home_dir()
        return (
            home / ".local" / "bin",
            home / "bin",
            xdg_data_home() / "applications",
            xdg_config_home() / "autostart",
        )

    def scan(self) -> ScanResult:
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []

        for root in self._scan_roots():
            if not root.is_dir():
                continue
            for entry in walk(root, warnings, skip_dir=should_skip_dir, max_depth=_MAX_DEPTH):
                if not entry.is_symlink() or os.path.exists(entry.path):
                    continue
                try:
                    target = os.readlink(entry.path)
                    size = entry.stat(follow_symlinks=False).st_size
                except OSError as exc:
                    warnings.append(ScanWarning.from_error(entry.path, exc))
                    continue
                entries.append(self._entry(Path(entry.path), size, f"Broken link to {target}"))

        return self._result(entries, warnings, summary=f"Found {len(entries)} broken symlinks")
