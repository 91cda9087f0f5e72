"""Tests for the data models."""

from __future__ import annotations

import errno
from pathlib import Path

import pytest

from reclaim.models import (
    CleanOutcome,
    DeletionReport,
    DuplicateGroup,
    EntryOutcome,
    EventKind,
    OperationKind,
    OperationSummary,
    ProgressEvent,
    ScanEntry,
    ScanResult,
    ScanWarning,
    SkipReason,
    WarningKind,
)


def _entry(name: str, size: int = 10, category: str = "test") -> ScanEntry:
    return ScanEntry(path=Path("/data") / name, size_bytes=size, category=category)


class TestScanWarning:
    @pytest.mark.parametrize(
        "exc, kind",
        [
            (PermissionError(errno.EACCES, "Permission denied"), WarningKind.PERMISSION_DENIED),
            (OSError(errno.EPERM, "Operation not permitted"), WarningKind.PERMISSION_DENIED),
            (FileNotFoundError(errno.ENOENT, "No such file or directory"), WarningKind.NOT_FOUND),
            (OSError(errno.EIO, "Input/output error"), WarningKind.IO_ERROR),
        ],
    )
    def test_from_error_classifies(self, exc, kind):
        warning = ScanWarning.from_error("/x/y", exc)
        assert warning.kind is kind
        assert warning.path == Path("/x/y")
        assert warning.reason == exc.strerror

    def test_str(self):
        warning = ScanWarning(path=Path("/a"), reason="boom")
        assert str(warning) == "/a: boom"


class TestScanResult:
    def test_build_computes_total(self):
        result = ScanResult.build("test", "Test", [_entry("a", 5), _entry("b", 7)])
        assert result.total_bytes == 12
        assert len(result.entries) == 2
        assert "2 items" in result.summary

    def test_build_keeps_summary(self):
        result = ScanResult.build("test", "Test", [], summary="custom")
        assert result.summary == "custom"
        assert result.total_bytes == 0

    def test_entry_defaults(self):
        entry = _entry("a")
        assert entry.report_only is False
        assert entry.group_key is None


class TestDuplicateGroup:
    def test_properties(self):
        keeper = _entry("a", 100)
        group = DuplicateGroup(key="k", keeper=keeper, removable=(_entry("b", 100), _entry("c", 100)))
        assert len(group) == 3
        assert group.entries[0] is keeper
        assert group.size_bytes == 100
        assert group.total_bytes == 300
        assert group.reclaimable_bytes == 200

    def test_requires_two_members(self):
        with pytest.raises(ValueError):
            DuplicateGroup(key="k", keeper=_entry("a"), removable=())


class TestCleanOutcome:
    def test_counts_and_bytes(self):
        outcome = CleanOutcome(category_id="test")
        outcome.outcomes += [
            EntryOutcome.deleted(_entry("a", 10)),
            EntryOutcome.deleted(_entry("b", 20)),
            EntryOutcome.skipped(_entry("c", 40), SkipReason.VANISHED),
            EntryOutcome.failed(_entry("d", 80), "Permission denied"),
        ]
        assert (outcome.deleted, outcome.skipped, outcome.failed) == (2, 1, 1)
        assert outcome.bytes_freed == 30
        assert outcome.errors == ["/data/d: Permission denied"]

    def test_skipped_reason_defaults_to_value(self):
        item = EntryOutcome.skipped(_entry("a"), SkipReason.CANCELLED)
        assert item.reason == "cancelled"
        assert item.skip_reason is SkipReason.CANCELLED

    def test_merge(self):
        first = CleanOutcome(category_id="test", outcomes=[EntryOutcome.deleted(_entry("a"))])
        first.merge(CleanOutcome(category_id="test", outcomes=[EntryOutcome.deleted(_entry("b"))]))
        assert first.deleted == 2

    def test_merge_rejects_other_category(self):
        with pytest.raises(ValueError):
            CleanOutcome(category_id="one").merge(CleanOutcome(category_id="two"))


class TestDeletionReport:
    def test_aggregates(self):
        warning = ScanWarning(path=Path("/data/z"), reason="gone", kind=WarningKind.NOT_FOUND)
        report = DeletionReport(
            dry_run=False,
            outcomes=[
                CleanOutcome(category_id="one", outcomes=[EntryOutcome.deleted(_entry("a", 5, "one"))]),
                CleanOutcome(
                    category_id="two",
                    outcomes=[
                        EntryOutcome.deleted(_entry("b", 6, "two")),
                        EntryOutcome.failed(_entry("c", 7, "two"), "busy"),
                    ],
                    warnings=[warning],
                ),
            ],
        )
        assert report.deleted == 2
        assert report.failed == 1
        assert report.bytes_freed == 11
        assert report.warnings == [warning]
        assert report.get("two").failed == 1
        assert report.get("three") is None


class TestProgress:
    def test_summary_total_and_describe(self):
        summary = OperationSummary(kind=OperationKind.SHRED, completed=1, skipped_cancelled=2, cancelled=True)
        assert summary.total == 3
        text = summary.describe()
        assert text.startswith("shred: 1 completed")
        assert "2 skipped (cancelled)" in text
        assert text.endswith("(cancelled)")

    @pytest.mark.parametrize(
        "kind, terminal",
        [
            (EventKind.SCANNING, False),
            (EventKind.WARNING, False),
            (EventKind.COMPLETED, True),
            (EventKind.FAILED, True),
        ],
    )
    def test_terminal_events(self, kind, terminal):
        assert ProgressEvent(kind=kind, operation_id=1, sequence=1).is_terminal is terminal
