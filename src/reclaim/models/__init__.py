"""Reclaim data models."""

from reclaim.models.category import CacheDirsCategory, CleanCategory
from reclaim.models.clean_result import CleanOutcome, DeletionReport, EntryOutcome, EntryStatus, SkipReason
from reclaim.models.duplicate import DuplicateGroup
from reclaim.models.progress import EventKind, OperationKind, OperationSummary, ProgressEvent
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning, WarningKind

__all__ = [
    "CacheDirsCategory",
    "CleanCategory",
    "CleanOutcome",
    "DeletionReport",
    "DuplicateGroup",
    "EntryOutcome",
    "EntryStatus",
    "EventKind",
    "OperationKind",
    "OperationSummary",
    "ProgressEvent",
    "ScanEntry",
    "ScanResult",
    "ScanWarning",
    "SkipReason",
    "WarningKind",
]
