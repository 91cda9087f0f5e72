"""Progress events and operation summaries emitted by the task runner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from reclaim.models.clean_result import CleanOutcome
from reclaim.models.scan_result import ScanResult, ScanWarning


class OperationKind(str, Enum):
    SCAN = "scan"
    CLEAN = "clean"
    SHRED = "shred"


class EventKind(str, Enum):
    SCANNING = "scanning"
    CLEANING = "cleaning"
    SHREDDING = "shredding"
    WARNING = "warning"
    COMPLETED = "completed"
    FAILED = "failed"


_TERMINAL = frozenset({EventKind.COMPLETED, EventKind.FAILED})


@dataclass(slots=True)
class OperationSummary:
    """Final tally of a scan, clean or shred operation.

    ``skipped`` counts entries that were passed over for a regular reason
    (not selected, vanished); ``skipped_cancelled`` counts entries never
    attempted because the operation was cancelled.
    """

    kind: OperationKind
    dry_run: bool = False
    cancelled: bool = False
    completed: int = 0
    skipped: int = 0
    skipped_cancelled: int = 0
    failed: int = 0
    bytes_processed: int = 0
    warnings: list[ScanWarning] = field(default_factory=list)
    failures: list[tuple[Path, str]] = field(default_factory=list)
    scan_results: list[ScanResult] = field(default_factory=list)
    clean_outcomes: list[CleanOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.completed + self.skipped + self.skipped_cancelled + self.failed

    def describe(self) -> str:
        """One-line human readable summary."""
        parts = [
            f"{self.kind.value}: {self.completed} completed",
            f"{self.skipped} skipped",
        ]
        if self.skipped_cancelled:
            parts.append(f"{self.skipped_cancelled} skipped (cancelled)")
        parts.append(f"{self.failed} failed")
        parts.append(f"{len(self.warnings)} warnings")
        text = ", ".join(parts)
        if self.dry_run:
            text += " (dry run)"
        if self.cancelled:
            text += " (cancelled)"
        return text


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Single message on an operation's progress channel."""

    kind: EventKind
    operation_id: int
    sequence: int
    message: str = ""
    category_id: str | None = None
    path: Path | None = None
    pass_number: int | None = None
    passes: int | None = None
    warning: ScanWarning | None = None
    summary: OperationSummary | None = None
    reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in _TERMINAL
