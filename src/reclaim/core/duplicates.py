"""Tiered duplicate file detection.

Candidates are narrowed in three passes so that most files are never read
in full:

1. exact size,
2. digest of the first ``partial_window`` bytes,
3. digest of the whole content.

Only files that agree at every tier end up in the same group.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from reclaim.core.errors import HashComputationError
from reclaim.core.walker import iter_files, should_skip_dir
from reclaim.models.duplicate import DuplicateGroup
from reclaim.models.scan_result import ScanEntry, ScanWarning

log = logging.getLogger(__name__)

MIN_SIZE = 1024 * 1024
MAX_SIZE = 500 * 1000 * 1000
PARTIAL_WINDOW = 4096
MAX_DEPTH = 8

_CHUNK_SIZE = 65_536  # 64 KB


@dataclass(slots=True)
class DuplicateScan:
    """Groups found by ``find_duplicates`` plus the paths it could not read."""

    groups: list[DuplicateGroup] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)

    @property
    def removable(self) -> list[ScanEntry]:
        return [e for g in self.groups for e in g.removable]


def partial_digest(path: Path, window: int = PARTIAL_WINDOW) -> str:
    """BLAKE2b of the first *window* bytes of *path*."""
    try:
        with path.open("rb") as f:
            return hashlib.blake2b(f.read(window)).hexdigest()
    except OSError as exc:
        raise HashComputationError(path, exc) from exc


def full_digest(path: Path) -> str:
    """SHA-256 of the whole file using chunked reads."""
    h = hashlib.sha256()
    try:
        with path.open("rb") as f:
            while chunk := f.read(_CHUNK_SIZE):
                h.update(chunk)
    except OSError as exc:
        raise HashComputationError(path, exc) from exc
    return h.hexdigest()


def _hash_warning(err: HashComputationError) -> ScanWarning:
    kind = ScanWarning.from_error(err.path, err.cause).kind
    return ScanWarning(path=err.path, reason=f"cannot hash: {err.cause.strerror or err.cause}", kind=kind)


def _split(
    paths: Iterable[Path],
    digest: Callable[[Path], str],
    warnings: list[ScanWarning],
    should_stop: Callable[[], bool] | None = None,
) -> dict[str, list[Path]]:
    """Partition *paths* by *digest*, dropping unreadable files and singletons.

    Returns ``{digest: paths}``. When *should_stop* turns true between two
    files nothing is returned.
    """
    buckets: dict[str, list[Path]] = {}
    for path in paths:
        if should_stop is not None and should_stop():
            return {}
        try:
            key = digest(path)
        except HashComputationError as err:
            log.debug("Cannot hash %s: %s", path, err.cause)
            warnings.append(_hash_warning(err))
            continue
        buckets.setdefault(key, []).append(path)
    return {key: group for key, group in buckets.items() if len(group) > 1}


def _size_buckets(
    roots: Iterable[Path],
    min_size: int,
    max_size: int,
    max_depth: int | None,
    warnings: list[ScanWarning],
    should_stop: Callable[[], bool] | None = None,
) -> dict[int, list[Path]]:
    by_size: dict[int, list[Path]] = {}
    seen_inodes: set[tuple[int, int]] = set()
    seen_paths: set[Path] = set()

    for path, st in iter_files(roots, warnings, skip_dir=should_skip_dir, max_depth=max_depth):
        if should_stop is not None and should_stop():
            return {}
        if not min_size <= st.st_size <= max_size:
            continue
        # Hard links share storage; deleting one frees nothing.
        inode = (st.st_dev, st.st_ino)
        if inode in seen_inodes or path in seen_paths:
            continue
        seen_inodes.add(inode)
        seen_paths.add(path)
        by_size.setdefault(st.st_size, []).append(path)

    return {size: paths for size, paths in by_size.items() if len(paths) > 1}


def find_duplicates(
    roots: Iterable[Path],
    *,
    min_size: int = MIN_SIZE,
    max_size: int = MAX_SIZE,
    partial_window: int = PARTIAL_WINDOW,
    max_depth: int | None = MAX_DEPTH,
    category_id: str = "duplicates",
    should_stop: Callable[[], bool] | None = None,
) -> DuplicateScan:
    """Find groups of byte-identical regular files below *roots*.

    The keeper of each group is the member with the lexicographically
    smallest path, so repeated runs over an unchanged tree choose the same
    file. Groups are ordered by reclaimable bytes, largest first, then by
    keeper path. Each group is keyed by the SHA-256 of its content.

    Args:
        roots: Directories to walk. Missing roots are ignored.
        min_size: Smallest file size considered, in bytes.
        max_size: Largest file size considered, in bytes.
        partial_window: Prefix length hashed by the partial tier.
        max_depth: Walk depth limit below each root.
        category_id: Category recorded on the produced entries.
        should_stop: Polled between files, never while one is being
            hashed; returning True ends the search with the groups
            completed so far.
    """
    scan = DuplicateScan()
    roots = list(dict.fromkeys(roots))

    by_size = _size_buckets(roots, min_size, max_size, max_depth, scan.warnings, should_stop)
    log.debug("Duplicate candidates: %d size buckets", len(by_size))

    for size in sorted(by_size, reverse=True):
        if should_stop is not None and should_stop():
            break
        paths = sorted(by_size[size], key=str)
        partial_groups = _split(paths, lambda p: partial_digest(p, partial_window), scan.warnings, should_stop)
        for partial_group in partial_groups.values():
            full_groups = _split(partial_group, full_digest, scan.warnings, should_stop)
            for digest, full_group in full_groups.items():
                scan.groups.append(_make_group(full_group, size, digest, category_id))

    if should_stop is not None and should_stop():
        log.info("Duplicate search stopped early with %d groups", len(scan.groups))

    scan.groups.sort(key=lambda g: (-g.reclaimable_bytes, str(g.keeper.path)))
    return scan


def _make_group(paths: list[Path], size: int, digest: str, category_id: str) -> DuplicateGroup:
    ordered = sorted(paths, key=str)
    keeper_path = ordered[0]

    keeper = ScanEntry(
        path=keeper_path,
        size_bytes=size,
        category=category_id,
        group_key=digest,
        description="Original (kept)",
    )
    removable = tuple(
        ScanEntry(
            path=p,
            size_bytes=size,
            category=category_id,
            group_key=digest,
            description=f"Duplicate of: {keeper_path.name}",
        )
        for p in ordered[1:]
    )
    return DuplicateGroup(key=digest, keeper=keeper, removable=removable)
