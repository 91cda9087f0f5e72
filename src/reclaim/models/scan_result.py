"""Scan result dataclasses."""

from __future__ import annotations

import errno
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from reclaim.models.duplicate import DuplicateGroup


class WarningKind(str, Enum):
    """Classification of a non-fatal per-path error."""

    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"


@dataclass(frozen=True, slots=True)
class ScanEntry:
    """Single file or directory that can be removed.

    Entries flagged ``report_only`` are never picked up by a bulk
    "select all" and are only deleted when selected individually.
    """

    path: Path
    size_bytes: int
    category: str
    group_key: str | None = None
    report_only: bool = False
    description: str = ""


@dataclass(frozen=True, slots=True)
class ScanWarning:
    """Path that could not be read or acted on, and why."""

    path: Path
    reason: str
    kind: WarningKind = WarningKind.IO_ERROR

    @classmethod
    def from_error(cls, path: Path | str, exc: OSError) -> ScanWarning:
        """Build a warning from an ``OSError``, classifying it."""
        if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
            kind = WarningKind.PERMISSION_DENIED
        elif isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
            kind = WarningKind.NOT_FOUND
        else:
            kind = WarningKind.IO_ERROR
        reason = exc.strerror or str(exc)
        return cls(path=Path(path), reason=reason, kind=kind)

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Result of scanning a single category."""

    category_id: str
    category_label: str
    entries: tuple[ScanEntry, ...] = ()
    total_bytes: int = 0
    warnings: tuple[ScanWarning, ...] = ()
    groups: tuple[DuplicateGroup, ...] = ()
    summary: str = ""

    @classmethod
    def build(
        cls,
        category_id: str,
        category_label: str,
        entries: Iterable[ScanEntry] = (),
        warnings: Iterable[ScanWarning] = (),
        groups: Iterable[DuplicateGroup] = (),
        summary: str = "",
    ) -> ScanResult:
        """Create a result, deriving ``total_bytes`` from the entries."""
        entries = tuple(entries)
        total = sum(e.size_bytes for e in entries)
        if not summary:
            summary = f"Found {len(entries)} items totaling {total} bytes"
        return cls(
            category_id=category_id,
            category_label=category_label,
            entries=entries,
            total_bytes=total,
            warnings=tuple(warnings),
            groups=tuple(groups),
            summary=summary,
        )
