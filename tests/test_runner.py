"""Tests for the background task runner."""

from __future__ import annotations

import errno
import threading

import pytest
from conftest import DirCategory, make_files, snapshot

from reclaim.categories.duplicates import DuplicatesCategory
from reclaim.core import duplicates
from reclaim.core import runner as runner_module
from reclaim.core.errors import InvalidParameter, OperationInProgress, ShredError, UnknownCategory
from reclaim.core.registry import CategoryRegistry
from reclaim.core.runner import CleanRequest, ScanRequest, ShredRequest, TaskRunner
from reclaim.models.clean_result import SkipReason
from reclaim.models.progress import EventKind, OperationKind
from reclaim.models.scan_result import ScanEntry, WarningKind

TIMEOUT = 10


class ExplodingCategory(DirCategory):
    """Removal of ``a.bin`` fails with a non-OS error."""

    def _remove(self, entry):
        if entry.path.name == "a.bin":
            raise RuntimeError("unexpected")
        super()._remove(entry)


class BlockingCategory(DirCategory):
    """Scan waits until the test releases it."""

    def __init__(self, root, category_id="blocking"):
        super().__init__(root, category_id)
        self.started = threading.Event()
        self.release = threading.Event()

    def scan(self):
        self.started.set()
        self.release.wait(TIMEOUT)
        return super().scan()


@pytest.fixture
def runner(registry):
    with TaskRunner(registry) as task_runner:
        yield task_runner


def _check_stream(events):
    assert [e.sequence for e in events] == list(range(1, len(events) + 1))
    assert sum(e.is_terminal for e in events) == 1
    assert events[-1].is_terminal


class TestScan:
    def test_scan_events(self, runner):
        op = runner.submit(ScanRequest())
        events = list(op.events(timeout=TIMEOUT))

        _check_stream(events)
        assert [e.kind for e in events] == [EventKind.SCANNING, EventKind.COMPLETED]
        summary = events[-1].summary
        assert summary is op.wait(TIMEOUT)
        assert summary.kind is OperationKind.SCAN
        assert summary.completed == 1
        assert summary.scan_results[0].total_bytes == 600
        assert not runner.busy

    def test_unknown_category_rejected_synchronously(self, runner):
        with pytest.raises(UnknownCategory):
            runner.submit(ScanRequest("nope"))
        assert not runner.busy

    def test_crashing_category_is_counted(self, files):
        registry = CategoryRegistry([DirCategory(files, "bad", fail=True), DirCategory(files, "good")])
        with TaskRunner(registry) as task_runner:
            summary = task_runner.submit(ScanRequest()).wait(TIMEOUT)
        assert summary.failed == 1
        assert summary.completed == 1
        assert [r.category_id for r in summary.scan_results] == ["good"]

    def test_warnings_are_streamed(self, tmp_path, deny_scandir):
        from reclaim.categories.system_caches import SystemCachesCategory

        cache = tmp_path / "cache"
        make_files(cache, {"ok/a": 10, "locked/b": 10})
        deny_scandir(cache / "locked")
        with TaskRunner(CategoryRegistry([SystemCachesCategory(cache_dir=cache)])) as task_runner:
            op = task_runner.submit(ScanRequest("system_caches"))
            events = list(op.events(timeout=TIMEOUT))

        warnings = [e for e in events if e.kind is EventKind.WARNING]
        assert len(warnings) == 1
        assert warnings[0].path == cache / "locked"
        assert len(events[-1].summary.warnings) == 1

    def test_one_operation_at_a_time(self, tmp_path):
        blocking = BlockingCategory(tmp_path)
        with TaskRunner(CategoryRegistry([blocking])) as task_runner:
            op = task_runner.submit(ScanRequest())
            assert blocking.started.wait(TIMEOUT)
            assert task_runner.busy
            with pytest.raises(OperationInProgress):
                task_runner.submit(ScanRequest())
            blocking.release.set()
            op.wait(TIMEOUT)
            assert not task_runner.busy
            task_runner.submit(ScanRequest()).wait(TIMEOUT)

    def test_poll_never_blocks(self, tmp_path):
        blocking = BlockingCategory(tmp_path)
        with TaskRunner(CategoryRegistry([blocking])) as task_runner:
            op = task_runner.submit(ScanRequest())
            assert blocking.started.wait(TIMEOUT)
            early = op.poll()
            assert all(not e.is_terminal for e in early)
            assert not op.done
            blocking.release.set()
            op.wait(TIMEOUT)
            _check_stream(early + op.poll())

    def test_cancel_between_categories(self, tmp_path):
        blocking = BlockingCategory(tmp_path / "one", "first")
        (tmp_path / "one").mkdir()
        registry = CategoryRegistry([blocking, DirCategory(tmp_path / "one", "second")])
        with TaskRunner(registry) as task_runner:
            op = task_runner.submit(ScanRequest(("first", "second")))
            assert blocking.started.wait(TIMEOUT)
            op.cancel()
            blocking.release.set()
            summary = op.wait(TIMEOUT)
        assert summary.cancelled
        assert summary.completed == 1
        assert summary.skipped_cancelled == 1

    def test_cancel_during_duplicate_scan(self, tmp_path, monkeypatch):
        root = tmp_path / "dupes"
        make_files(root, {"a": b"d" * 4000, "b": b"d" * 4000, "c": b"d" * 4000})
        hashed = []
        real_full_digest = duplicates.full_digest
        registry = CategoryRegistry([DuplicatesCategory(min_size=1, roots=(root,))])

        with TaskRunner(registry) as task_runner:

            def digest_then_cancel(path):
                hashed.append(path)
                digest = real_full_digest(path)
                task_runner.cancel()
                return digest

            monkeypatch.setattr(duplicates, "full_digest", digest_then_cancel)
            summary = task_runner.submit(ScanRequest("duplicates")).wait(TIMEOUT)

        assert summary.cancelled
        assert len(hashed) == 1
        assert summary.scan_results[0].groups == ()
        assert summary.scan_results[0].entries == ()


class TestClean:
    def _entries(self, registry):
        return registry.get("dir_files").scan().entries

    def test_unconfirmed_clean_is_dry_run(self, runner, registry, files):
        entries = self._entries(registry)
        before = snapshot(files)

        summary = runner.submit(CleanRequest(selection=entries)).wait(TIMEOUT)

        assert summary.dry_run
        assert summary.completed == 3
        assert summary.bytes_processed == 600
        assert snapshot(files) == before

    def test_confirmed_clean(self, runner, registry, files):
        entries = self._entries(registry)
        op = runner.submit(CleanRequest(selection=entries[:2], confirmed=True))
        events = list(op.events(timeout=TIMEOUT))

        _check_stream(events)
        assert [e.kind for e in events[:-1]] == [EventKind.CLEANING] * 2
        summary = events[-1].summary
        assert not summary.dry_run
        assert summary.completed == 2
        assert summary.bytes_processed == 300
        assert summary.clean_outcomes[0].deleted == 2
        assert [p.name for p in files.iterdir()] == ["c.bin"]

    def test_explicit_dry_run_wins(self, runner, registry, files):
        entries = self._entries(registry)
        summary = runner.submit(CleanRequest(selection=entries, dry_run=True, confirmed=True)).wait(TIMEOUT)
        assert summary.dry_run
        assert len(list(files.iterdir())) == 3

    def test_from_selection_mapping(self, registry):
        entries = self._entries(registry)
        request = CleanRequest.from_selection({"dir_files": list(entries)}, confirmed=True)
        assert request.selection == tuple(entries)
        assert not request.effective_dry_run

    def test_validation(self, runner, tmp_path):
        with pytest.raises(InvalidParameter):
            runner.submit(CleanRequest(selection=()))
        stray = ScanEntry(path=tmp_path / "x", size_bytes=1, category="unknown")
        with pytest.raises(InvalidParameter):
            runner.submit(CleanRequest(selection=(stray,), confirmed=True))
        assert not runner.busy

    def test_cancel_skips_remaining_entries(self, runner, registry, files, monkeypatch):
        category = registry.get("dir_files")
        entries = category.scan().entries
        real_clean = type(category).clean

        def clean_then_cancel(self, selected, dry_run=False):
            outcome = real_clean(self, selected, dry_run)
            runner.cancel()
            return outcome

        monkeypatch.setattr(type(category), "clean", clean_then_cancel)
        summary = runner.submit(CleanRequest(selection=entries, confirmed=True)).wait(TIMEOUT)

        assert summary.cancelled
        assert summary.completed == 1
        assert summary.skipped_cancelled == 2
        skipped = [o for o in summary.clean_outcomes[0].outcomes if o.skip_reason is SkipReason.CANCELLED]
        assert len(skipped) == 2
        assert len(list(files.iterdir())) == 2

    def test_unexpected_category_error_fails_only_that_entry(self, files):
        registry = CategoryRegistry([ExplodingCategory(files)])
        entries = registry.get("dir_files").scan().entries

        with TaskRunner(registry) as task_runner:
            op = task_runner.submit(CleanRequest(selection=entries, confirmed=True))
            events = list(op.events(timeout=TIMEOUT))

        _check_stream(events)
        assert events[-1].kind is EventKind.COMPLETED
        summary = events[-1].summary
        assert summary.failed == 1
        assert summary.completed == 2
        assert summary.failures == [(files / "a.bin", "unexpected")]
        assert summary.clean_outcomes[0].failed == 1
        assert [p.name for p in files.iterdir()] == ["a.bin"]


class TestShred:
    def test_shred_emits_pass_events(self, runner, tmp_path):
        target = make_files(tmp_path, {"secret": 5000})["secret"]
        op = runner.submit(ShredRequest(paths=(target,), passes=3, confirmed=True))
        events = list(op.events(timeout=TIMEOUT))

        _check_stream(events)
        shredding = [e for e in events if e.kind is EventKind.SHREDDING]
        assert [(e.pass_number, e.passes) for e in shredding] == [(1, 3), (2, 3), (3, 3)]
        summary = events[-1].summary
        assert summary.completed == 1
        assert summary.bytes_processed == 5000
        assert not target.exists()

    def test_unconfirmed_shred_touches_nothing(self, runner, tmp_path):
        target = make_files(tmp_path, {"secret": b"keep me"})["secret"]
        summary = runner.submit(ShredRequest(paths=(target,))).wait(TIMEOUT)
        assert summary.dry_run
        assert target.read_bytes() == b"keep me"

    def test_failure_is_a_warning(self, runner, tmp_path):
        good = make_files(tmp_path, {"good": 10})["good"]
        link = tmp_path / "link"
        link.symlink_to(good)

        op = runner.submit(ShredRequest(paths=(link, good), passes=1, confirmed=True))
        events = list(op.events(timeout=TIMEOUT))

        assert [e.kind for e in events if e.kind is EventKind.WARNING] == [EventKind.WARNING]
        summary = events[-1].summary
        assert summary.failed == 1
        assert summary.completed == 1
        assert link.is_symlink()
        assert summary.failures[0][0] == link

    @pytest.mark.parametrize(
        "request_",
        [
            ShredRequest(paths=(), confirmed=True),
            ShredRequest(paths=("x",), passes=0, confirmed=True),
        ],
    )
    def test_validation(self, runner, request_):
        with pytest.raises(InvalidParameter):
            runner.submit(request_)

    def test_cancel_after_first_file(self, runner, tmp_path, monkeypatch):
        targets = [make_files(tmp_path, {name: 1000})[name] for name in ("one", "two", "three")]
        real_shred_path = runner_module.shred_path

        def shred_then_cancel(*args, **kwargs):
            size = real_shred_path(*args, **kwargs)
            runner.cancel()
            return size

        monkeypatch.setattr(runner_module, "shred_path", shred_then_cancel)
        op = runner.submit(ShredRequest(paths=tuple(targets), passes=3, confirmed=True))
        events = list(op.events(timeout=TIMEOUT))
        summary = events[-1].summary

        assert events[-1].kind is EventKind.COMPLETED
        assert summary.cancelled
        assert summary.completed == 1
        assert summary.skipped_cancelled == 2
        assert summary.failed == 0
        assert not targets[0].exists()
        assert targets[1].exists() and targets[2].exists()

    def test_empty_file_reports_every_pass(self, runner, tmp_path):
        target = make_files(tmp_path, {"empty": b""})["empty"]
        op = runner.submit(ShredRequest(paths=(target,), passes=3, confirmed=True))
        events = list(op.events(timeout=TIMEOUT))

        shredding = [e for e in events if e.kind is EventKind.SHREDDING]
        assert [(e.pass_number, e.passes) for e in shredding] == [(1, 3), (2, 3), (3, 3)]
        assert events[-1].summary.completed == 1
        assert not target.exists()

    def test_vanished_path_is_skipped(self, runner, tmp_path):
        gone = tmp_path / "gone"
        op = runner.submit(ShredRequest(paths=(gone,), passes=1, confirmed=True))
        events = list(op.events(timeout=TIMEOUT))

        summary = events[-1].summary
        assert (summary.completed, summary.skipped, summary.failed) == (0, 1, 0)
        assert summary.failures == []
        assert [w.kind for w in summary.warnings] == [WarningKind.NOT_FOUND]

    def test_permission_failure_is_classified(self, runner, tmp_path, monkeypatch):
        target = make_files(tmp_path, {"locked": 10})["locked"]

        def denied(path, *args, **kwargs):
            cause = PermissionError(errno.EACCES, "Permission denied")
            raise ShredError(path, "unlink failed: Permission denied", cause)

        monkeypatch.setattr(runner_module, "shred_path", denied)
        summary = runner.submit(ShredRequest(paths=(target,), passes=1, confirmed=True)).wait(TIMEOUT)

        assert summary.failed == 1
        assert [w.kind for w in summary.warnings] == [WarningKind.PERMISSION_DENIED]
        assert target.exists()


class TestFailedOperation:
    def test_unexpected_error_gives_failed_event(self, runner, registry, monkeypatch):
        def explode(self, op, summary, categories):
            raise RuntimeError("worker crashed")

        monkeypatch.setattr(TaskRunner, "_scan", explode)
        op = runner.submit(ScanRequest())
        events = list(op.events(timeout=TIMEOUT))

        assert events[-1].kind is EventKind.FAILED
        assert events[-1].reason == "worker crashed"
        assert op.error == "worker crashed"
        assert not runner.busy

    def test_wait_without_summary_raises(self):
        op = runner_module.Operation(1, OperationKind.SCAN)
        op._emit(EventKind.FAILED, reason="lost")
        with pytest.raises(RuntimeError, match="without a summary"):
            op.wait(TIMEOUT)
