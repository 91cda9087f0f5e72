"""Filesystem walking that records unreadable paths instead of failing.

Every walk is depth-first with entries visited in name order, so repeated
scans of an unchanged tree produce identical results. Symlinks are never
followed.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Iterator

from reclaim.models.scan_result import ScanWarning

log = logging.getLogger(__name__)

SkipDir = Callable[[str], bool]

# Tool-managed trees that whole-home walks never enter.
COMMON_SKIP_DIRS = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    ".tox",
    "target",
    ".cargo",
    ".rustup",
    ".npm",
    ".m2",
    ".gradle",
    "Trash",
    ".Trash",
})


def should_skip_dir(name: str) -> bool:
    """Default skip rule for walks over user data."""
    return name in COMMON_SKIP_DIRS or name.startswith(".Trash-")


def _sorted_scandir(path: str | Path) -> list[os.DirEntry]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def walk(
    root: Path,
    warnings: list[ScanWarning],
    *,
    skip_dir: SkipDir | None = None,
    max_depth: int | None = None,
    descend: Callable[[os.DirEntry], bool] | None = None,
) -> Iterator[os.DirEntry]:
    """Yield every entry below *root* (not *root* itself).

    Directories for which *skip_dir(name)* is true are neither yielded nor
    entered. *descend(entry)* may veto entering a yielded directory. A
    directory that cannot be listed produces exactly one warning and the
    walk continues with its siblings.
    """
    stack: list[tuple[str, int]] = [(str(root), 1)]
    while stack:
        current, depth = stack.pop()
        try:
            children = _sorted_scandir(current)
        except OSError as exc:
            log.debug("Cannot read %s: %s", current, exc)
            warnings.append(ScanWarning.from_error(current, exc))
            continue

        subdirs: list[str] = []
        for entry in children:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as exc:
                warnings.append(ScanWarning.from_error(entry.path, exc))
                continue
            if is_dir and skip_dir is not None and skip_dir(entry.name):
                continue
            yield entry
            if is_dir and (max_depth is None or depth < max_depth):
                if descend is None or descend(entry):
                    subdirs.append(entry.path)
        # Reversed so the stack pops them in name order.
        stack.extend((d, depth + 1) for d in reversed(subdirs))


def iter_files(
    roots: Iterable[Path],
    warnings: list[ScanWarning],
    *,
    skip_dir: SkipDir | None = None,
    max_depth: int | None = None,
) -> Iterator[tuple[Path, os.stat_result]]:
    """Yield ``(path, stat)`` for every regular file below the given roots."""
    for root in roots:
        if not root.is_dir():
            continue
        for entry in walk(root, warnings, skip_dir=skip_dir, max_depth=max_depth):
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                st = entry.stat(follow_symlinks=False)
            except OSError as exc:
                warnings.append(ScanWarning.from_error(entry.path, exc))
                continue
            yield Path(entry.path), st


def dir_info(path: Path, warnings: list[ScanWarning]) -> tuple[int, int]:
    """Calculate total size and file count of a directory tree.

    Returns:
        (total_bytes, file_count) tuple.
    """
    total = 0
    count = 0
    for entry in walk(path, warnings):
        try:
            if entry.is_file(follow_symlinks=False):
                total += entry.stat(follow_symlinks=False).st_size
                count += 1
        except OSError as exc:
            warnings.append(ScanWarning.from_error(entry.path, exc))
    return total, count


def entry_size(path: Path, warnings: list[ScanWarning]) -> int:
    """Size of a file, or the total size of a directory tree."""
    try:
        st = path.lstat()
    except OSError as exc:
        warnings.append(ScanWarning.from_error(path, exc))
        return 0
    if path.is_dir() and not path.is_symlink():
        return dir_info(path, warnings)[0]
    return st.st_size
