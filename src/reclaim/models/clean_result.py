"""Cleaning result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from reclaim.models.scan_result import ScanEntry, ScanWarning


class EntryStatus(str, Enum):
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    NOT_SELECTED = "not_selected"
    CANCELLED = "cancelled"
    VANISHED = "vanished"
    NOT_OWNED = "not_owned"


@dataclass(frozen=True, slots=True)
class EntryOutcome:
    """Fate of a single entry in a clean operation."""

    entry: ScanEntry
    status: EntryStatus
    reason: str = ""
    skip_reason: SkipReason | None = None

    @classmethod
    def deleted(cls, entry: ScanEntry) -> EntryOutcome:
        return cls(entry=entry, status=EntryStatus.DELETED)

    @classmethod
    def skipped(cls, entry: ScanEntry, skip_reason: SkipReason, reason: str = "") -> EntryOutcome:
        return cls(entry=entry, status=EntryStatus.SKIPPED, reason=reason or skip_reason.value, skip_reason=skip_reason)

    @classmethod
    def failed(cls, entry: ScanEntry, reason: str) -> EntryOutcome:
        return cls(entry=entry, status=EntryStatus.FAILED, reason=reason)


def _count(outcomes: Iterable[EntryOutcome], status: EntryStatus) -> int:
    return sum(1 for o in outcomes if o.status is status)


@dataclass(slots=True)
class CleanOutcome:
    """Result of a category clean.

    For a dry run, ``deleted`` outcomes describe what *would* be removed
    and ``bytes_freed`` is the would-be figure.
    """

    category_id: str
    dry_run: bool = False
    outcomes: list[EntryOutcome] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)

    @property
    def deleted(self) -> int:
        return _count(self.outcomes, EntryStatus.DELETED)

    @property
    def skipped(self) -> int:
        return _count(self.outcomes, EntryStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return _count(self.outcomes, EntryStatus.FAILED)

    @property
    def bytes_freed(self) -> int:
        return sum(o.entry.size_bytes for o in self.outcomes if o.status is EntryStatus.DELETED)

    @property
    def errors(self) -> list[str]:
        return [f"{o.entry.path}: {o.reason}" for o in self.outcomes if o.status is EntryStatus.FAILED]

    def merge(self, other: CleanOutcome) -> None:
        """Append another outcome of the same category."""
        if other.category_id != self.category_id:
            raise ValueError(f"cannot merge {other.category_id!r} into {self.category_id!r}")
        self.outcomes.extend(other.outcomes)
        self.warnings.extend(other.warnings)


@dataclass(slots=True)
class DeletionReport:
    """Aggregate of the clean outcomes of several categories."""

    dry_run: bool
    outcomes: list[CleanOutcome] = field(default_factory=list)

    def _all(self) -> list[EntryOutcome]:
        return [o for outcome in self.outcomes for o in outcome.outcomes]

    @property
    def deleted(self) -> int:
        return _count(self._all(), EntryStatus.DELETED)

    @property
    def skipped(self) -> int:
        return _count(self._all(), EntryStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return _count(self._all(), EntryStatus.FAILED)

    @property
    def bytes_freed(self) -> int:
        return sum(o.bytes_freed for o in self.outcomes)

    @property
    def warnings(self) -> list[ScanWarning]:
        return [w for o in self.outcomes for w in o.warnings]

    @property
    def errors(self) -> list[str]:
        return [e for o in self.outcomes for e in o.errors]

    def get(self, category_id: str) -> CleanOutcome | None:
        for outcome in self.outcomes:
            if outcome.category_id == category_id:
                return outcome
        return None
