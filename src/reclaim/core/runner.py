"""Background execution of scan, clean and shred operations.

Each submitted request runs on a single worker thread. Progress is
reported through a per-operation queue of ``ProgressEvent`` objects,
ordered by ``sequence`` and ending with exactly one terminal event
(``completed`` or ``failed``). Callers never block on the worker: they
drain the queue with ``Operation.poll()`` or iterate ``Operation.events()``.

Cancellation is cooperative. The worker checks the flag before each
category (scan) or entry (clean, shred), so the entry in progress always
finishes. Categories that walk many files, such as duplicates, also poll
it between files through ``CleanCategory.cancel_check``.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Union

from reclaim.core.errors import InvalidParameter, OperationInProgress, ShredError, UnknownCategory
from reclaim.core.registry import ALL, CategoryRegistry
from reclaim.core.shredder import DEFAULT_PASSES, shred_path
from reclaim.models.category import CleanCategory
from reclaim.models.clean_result import CleanOutcome, EntryOutcome, EntryStatus, SkipReason
from reclaim.models.progress import EventKind, OperationKind, OperationSummary, ProgressEvent
from reclaim.models.scan_result import ScanEntry, ScanWarning, WarningKind

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanRequest:
    category: str | tuple[str, ...] = ALL


@dataclass(frozen=True)
class CleanRequest:
    """Delete the given entries.

    Without ``confirmed`` the request is always executed as a dry run.
    """

    selection: tuple[ScanEntry, ...] = ()
    dry_run: bool = False
    confirmed: bool = False

    @classmethod
    def from_selection(
        cls,
        selection: Mapping[str, Iterable[ScanEntry]] | Iterable[ScanEntry],
        dry_run: bool = False,
        confirmed: bool = False,
    ) -> CleanRequest:
        """Build a request from a flat iterable or a ``{category: entries}`` mapping."""
        if isinstance(selection, Mapping):
            entries = tuple(e for group in selection.values() for e in group)
        else:
            entries = tuple(selection)
        return cls(selection=entries, dry_run=dry_run, confirmed=confirmed)

    @property
    def effective_dry_run(self) -> bool:
        return self.dry_run or not self.confirmed


@dataclass(frozen=True)
class ShredRequest:
    """Overwrite and delete the given paths.

    Without ``confirmed`` nothing is overwritten; the operation only
    reports what would be shredded.
    """

    paths: tuple[Path, ...] = ()
    passes: int = DEFAULT_PASSES
    confirmed: bool = False


Request = Union[ScanRequest, CleanRequest, ShredRequest]


class Operation:
    """Handle on a submitted request."""

    def __init__(self, op_id: int, kind: OperationKind) -> None:
        self.id = op_id
        self.kind = kind
        self._queue: queue.Queue[ProgressEvent] = queue.Queue()
        self._cancel = threading.Event()
        self._done = threading.Event()
        self._sequence = itertools.count(1)
        self._finished = False
        self.summary: OperationSummary | None = None
        self.error: str | None = None

    def __repr__(self) -> str:
        return f"<Operation id={self.id} kind={self.kind.value} done={self.done}>"

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Ask the worker to stop before the next entry."""
        if not self.done:
            log.info("Cancelling operation %d", self.id)
        self._cancel.set()

    def poll(self) -> list[ProgressEvent]:
        """Return every event queued so far without blocking."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def events(self, timeout: float | None = None) -> Iterator[ProgressEvent]:
        """Yield events until the terminal one.

        Raises ``TimeoutError`` when no event arrives within *timeout*
        seconds.
        """
        while True:
            try:
                event = self._queue.get(timeout=timeout)
            except queue.Empty:
                raise TimeoutError(f"no progress from operation {self.id} within {timeout}s") from None
            yield event
            if event.is_terminal:
                return

    def wait(self, timeout: float | None = None) -> OperationSummary:
        """Block until the operation ends and return its summary.

        Events stay queued for ``poll``/``events``.
        """
        if not self._done.wait(timeout):
            raise TimeoutError(f"operation {self.id} still running after {timeout}s")
        if self.summary is None:
            raise RuntimeError(f"operation {self.id} finished without a summary")
        return self.summary

    # -- worker side ------------------------------------------------------

    def _emit(self, kind: EventKind, **kwargs) -> None:
        if self._finished:
            raise RuntimeError(f"operation {self.id} already finished")
        event = ProgressEvent(kind=kind, operation_id=self.id, sequence=next(self._sequence), **kwargs)
        if event.is_terminal:
            self._finished = True
            self.summary = kwargs.get("summary")
            self.error = kwargs.get("reason")
        self._queue.put(event)
        if event.is_terminal:
            self._done.set()


class TaskRunner:
    """Runs at most one operation at a time on a background thread."""

    def __init__(self, registry: CategoryRegistry) -> None:
        self.registry = registry
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reclaim-worker")
        self._lock = threading.Lock()
        self._active: Operation | None = None
        self._ids = itertools.count(1)

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._active is not None

    @property
    def active(self) -> Operation | None:
        with self._lock:
            return self._active

    def cancel(self) -> None:
        """Cancel the active operation, if any."""
        op = self.active
        if op is not None:
            op.cancel()

    def shutdown(self, wait: bool = True) -> None:
        self.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> TaskRunner:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def submit(self, request: Request) -> Operation:
        """Validate *request* and start it in the background.

        Raises:
            UnknownCategory: a scan names an unregistered category.
            InvalidParameter: the request is malformed.
            OperationInProgress: another operation has not finished yet.
        """
        match request:
            case ScanRequest():
                categories = self.registry.resolve(request.category)
                kind, work = OperationKind.SCAN, lambda op, summary: self._scan(op, summary, categories)
            case CleanRequest():
                plan = self._plan_clean(request)
                dry_run = request.effective_dry_run
                kind, work = OperationKind.CLEAN, lambda op, summary: self._clean(op, summary, plan, dry_run)
            case ShredRequest():
                self._validate_shred(request)
                kind, work = OperationKind.SHRED, lambda op, summary: self._shred(op, summary, request)
            case _:
                raise InvalidParameter(f"unsupported request: {request!r}")

        with self._lock:
            if self._active is not None:
                raise OperationInProgress(f"operation {self._active.id} is still running")
            op = Operation(next(self._ids), kind)
            self._active = op

        log.debug("Submitting %s operation %d", kind.value, op.id)
        self._executor.submit(self._run, op, work)
        return op

    # -- validation -------------------------------------------------------

    def _plan_clean(self, request: CleanRequest) -> list[tuple[CleanCategory, ScanEntry]]:
        if not request.selection:
            raise InvalidParameter("clean request has an empty selection")
        plan = []
        for entry in request.selection:
            try:
                plan.append((self.registry.get(entry.category), entry))
            except UnknownCategory:
                raise InvalidParameter(f"{entry.path} belongs to unknown category {entry.category!r}") from None
        return plan

    @staticmethod
    def _validate_shred(request: ShredRequest) -> None:
        if request.passes < 1:
            raise InvalidParameter(f"passes must be at least 1, got {request.passes}")
        if not request.paths:
            raise InvalidParameter("shred request has no paths")

    # -- worker -----------------------------------------------------------

    def _run(self, op: Operation, work) -> None:
        summary = OperationSummary(kind=op.kind)
        try:
            work(op, summary)
        except Exception as exc:
            log.exception("Operation %d (%s) failed", op.id, op.kind.value)
            self._finish(op, EventKind.FAILED, summary, reason=str(exc) or type(exc).__name__)
        else:
            summary.cancelled = op.cancelled
            log.info("Operation %d finished: %s", op.id, summary.describe())
            self._finish(op, EventKind.COMPLETED, summary)

    def _finish(self, op: Operation, kind: EventKind, summary: OperationSummary, reason: str | None = None) -> None:
        with self._lock:
            if self._active is op:
                self._active = None
        op._emit(kind, message=summary.describe(), summary=summary, reason=reason)

    def _warn(self, op: Operation, summary: OperationSummary, warning: ScanWarning, category_id: str | None = None) -> None:
        summary.warnings.append(warning)
        op._emit(EventKind.WARNING, message=str(warning), category_id=category_id, path=warning.path, warning=warning)

    def _scan(self, op: Operation, summary: OperationSummary, categories: list[CleanCategory]) -> None:
        for index, category in enumerate(categories):
            if op.cancelled:
                summary.skipped_cancelled += len(categories) - index
                break
            op._emit(EventKind.SCANNING, message=f"Scanning {category.label}", category_id=category.id)
            try:
                with category.cancel_check(lambda: op.cancelled):
                    result = category.scan()
            except Exception as exc:
                log.exception("Category '%s' failed during scan", category.id)
                summary.failed += 1
                summary.failures.append((Path(category.id), str(exc)))
                continue
            for warning in result.warnings:
                self._warn(op, summary, warning, category.id)
            summary.scan_results.append(result)
            summary.completed += 1
            summary.bytes_processed += result.total_bytes

    def _clean(
        self,
        op: Operation,
        summary: OperationSummary,
        plan: list[tuple[CleanCategory, ScanEntry]],
        dry_run: bool,
    ) -> None:
        summary.dry_run = dry_run
        outcomes: dict[str, CleanOutcome] = {}

        def outcome_for(category_id: str) -> CleanOutcome:
            if category_id not in outcomes:
                outcomes[category_id] = CleanOutcome(category_id=category_id, dry_run=dry_run)
            return outcomes[category_id]

        for category, entry in plan:
            if op.cancelled:
                outcome_for(category.id).outcomes.append(EntryOutcome.skipped(entry, SkipReason.CANCELLED))
                summary.skipped_cancelled += 1
                continue

            try:
                result = category.clean([entry], dry_run=dry_run)
            except Exception as exc:
                log.exception("Category '%s' failed to clean %s", category.id, entry.path)
                result = CleanOutcome(
                    category_id=category.id,
                    dry_run=dry_run,
                    outcomes=[EntryOutcome.failed(entry, str(exc) or type(exc).__name__)],
                )
            outcome_for(category.id).merge(result)
            for warning in result.warnings:
                self._warn(op, summary, warning, category.id)
            for item in result.outcomes:
                if item.status is EntryStatus.DELETED:
                    summary.completed += 1
                    summary.bytes_processed += item.entry.size_bytes
                elif item.status is EntryStatus.FAILED:
                    summary.failed += 1
                    summary.failures.append((item.entry.path, item.reason))
                else:
                    summary.skipped += 1
            verb = "Would delete" if dry_run else "Deleted"
            op._emit(EventKind.CLEANING, message=f"{verb} {entry.path}", category_id=category.id, path=entry.path)

        summary.clean_outcomes.extend(outcomes.values())

    def _shred(self, op: Operation, summary: OperationSummary, request: ShredRequest) -> None:
        dry_run = not request.confirmed
        summary.dry_run = dry_run
        for index, raw in enumerate(request.paths):
            path = Path(raw)
            if op.cancelled:
                summary.skipped_cancelled += len(request.paths) - index
                break

            if dry_run:
                op._emit(EventKind.SHREDDING, message=f"Would shred {path}", path=path)
                if path.exists() or path.is_symlink():
                    summary.completed += 1
                else:
                    summary.skipped += 1
                continue

            def on_pass(pass_number: int, passes: int, path: Path = path) -> None:
                op._emit(
                    EventKind.SHREDDING,
                    message=f"Shredding {path} (pass {pass_number}/{passes})",
                    path=path,
                    pass_number=pass_number,
                    passes=passes,
                )

            try:
                size = shred_path(path, request.passes, on_pass=on_pass)
            except ShredError as exc:
                if exc.cause is not None:
                    kind = ScanWarning.from_error(exc.path, exc.cause).kind
                else:
                    kind = WarningKind.IO_ERROR
                if exc.vanished:
                    log.info("Nothing to shred, already gone: %s", exc.path)
                    summary.skipped += 1
                else:
                    log.warning("Shred failed: %s", exc)
                    summary.failed += 1
                    summary.failures.append((path, exc.reason))
                self._warn(op, summary, ScanWarning(path=exc.path, reason=exc.reason, kind=kind))
                continue
            summary.completed += 1
            summary.bytes_processed += size
