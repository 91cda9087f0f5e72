"""Multi-pass overwrite before deletion.

Each pass rewrites the whole file in place and is forced to storage with
``fsync`` before the next one starts. Odd passes write random bytes, even
passes write zeros.

Overwriting in place gives no guarantee on copy-on-write filesystems,
SSDs with wear levelling, or when snapshots exist.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Callable

from reclaim.core.errors import InvalidParameter, ShredError

log = logging.getLogger(__name__)

DEFAULT_PASSES = 3
CHUNK_SIZE = 65_536  # 64 KB

PassCallback = Callable[[int, int], None]  # (pass_number, passes)


def _check_passes(passes: int) -> None:
    if passes < 1:
        raise InvalidParameter(f"passes must be at least 1, got {passes}")


def _fill(pass_number: int, length: int) -> bytes:
    if pass_number % 2:
        return os.urandom(length)
    return bytes(length)


def _overwrite(path: Path, size: int, passes: int, on_pass: PassCallback | None, chunk_size: int) -> None:
    with path.open("r+b") as f:
        for pass_number in range(1, passes + 1):
            f.seek(0)
            remaining = size
            while remaining > 0:
                n = min(chunk_size, remaining)
                f.write(_fill(pass_number, n))
                remaining -= n
            f.flush()
            os.fsync(f.fileno())
            log.debug("Shred pass %d/%d done: %s", pass_number, passes, path)
            if on_pass is not None:
                on_pass(pass_number, passes)


def shred_file(
    path: Path | str,
    passes: int = DEFAULT_PASSES,
    *,
    on_pass: PassCallback | None = None,
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """Overwrite a regular file *passes* times, then unlink it.

    Returns the number of bytes in the file. On failure ``ShredError`` is
    raised and the file keeps its path and length.
    """
    _check_passes(passes)
    path = Path(path)
    try:
        st = path.lstat()
    except OSError as exc:
        raise ShredError(path, exc.strerror or str(exc), exc) from exc
    if stat.S_ISLNK(st.st_mode):
        raise ShredError(path, "refusing to shred a symbolic link")
    if not stat.S_ISREG(st.st_mode):
        raise ShredError(path, "not a regular file")

    size = st.st_size
    if size > 0:
        try:
            _overwrite(path, size, passes, on_pass, chunk_size)
        except OSError as exc:
            log.warning("Overwrite failed for %s: %s", path, exc)
            raise ShredError(path, f"overwrite failed: {exc.strerror or exc}", exc) from exc
    elif on_pass is not None:
        # Nothing to overwrite, but every pass is still reported.
        for pass_number in range(1, passes + 1):
            on_pass(pass_number, passes)

    try:
        path.unlink()
    except OSError as exc:
        raise ShredError(path, f"unlink failed: {exc.strerror or exc}", exc) from exc
    return size


def _unlink_link(path: Path) -> None:
    try:
        path.unlink()
    except OSError as exc:
        raise ShredError(path, f"cannot remove link: {exc.strerror or exc}", exc) from exc


def shred_path(
    path: Path | str,
    passes: int = DEFAULT_PASSES,
    *,
    on_pass: PassCallback | None = None,
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """Shred a file, or every file of a directory tree bottom-up.

    Symlinks inside the tree are unlinked without touching their targets.
    Returns the total bytes overwritten.
    """
    _check_passes(passes)
    path = Path(path)
    if path.is_symlink() or not path.is_dir():
        return shred_file(path, passes, on_pass=on_pass, chunk_size=chunk_size)

    total = 0
    for dirpath, dirnames, filenames in os.walk(path, topdown=False):
        current = Path(dirpath)
        for name in sorted(filenames):
            child = current / name
            if child.is_symlink():
                _unlink_link(child)
                continue
            try:
                total += shred_file(child, passes, on_pass=on_pass, chunk_size=chunk_size)
            except ShredError as exc:
                if not exc.vanished:
                    raise
                log.debug("Vanished during shred: %s", child)
        for name in dirnames:
            child = current / name
            # os.walk lists symlinks to directories under dirnames
            if child.is_symlink():
                _unlink_link(child)
        try:
            current.rmdir()
        except OSError as exc:
            raise ShredError(current, f"cannot remove directory: {exc.strerror or exc}", exc) from exc
    return total
