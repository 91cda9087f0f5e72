"""Scan, select, confirm, delete lifecycle.

The lifecycle is a small state machine. ``transition`` is a pure function
of (phase, event) so every legal and illegal move can be checked without
touching the filesystem. ``DeletionController`` drives it and holds the
latest scan results and the user's selection.

The filesystem is only mutated while the controller is in
``Phase.DELETING``, and only for selected entries.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable

from reclaim.core.errors import InvalidParameter, InvalidTransition
from reclaim.core.registry import ALL, CategoryRegistry
from reclaim.models.clean_result import CleanOutcome, DeletionReport, EntryOutcome, SkipReason
from reclaim.models.scan_result import ScanEntry, ScanResult

log = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SCANNED = "scanned"
    SELECTING = "selecting"
    PENDING_CONFIRMATION = "pending_confirmation"
    DELETING = "deleting"


class Event(str, Enum):
    SCAN_STARTED = "scan_started"
    SCAN_FINISHED = "scan_finished"
    SCAN_FAILED = "scan_failed"
    SELECTION_CHANGED = "selection_changed"
    DELETE_REQUESTED = "delete_requested"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    DELETE_FINISHED = "delete_finished"
    CANCELLED = "cancelled"


_TRANSITIONS: dict[Phase, dict[Event, Phase]] = {
    Phase.IDLE: {
        Event.SCAN_STARTED: Phase.SCANNING,
    },
    Phase.SCANNING: {
        Event.SCAN_FINISHED: Phase.SCANNED,
        Event.SCAN_FAILED: Phase.IDLE,
        Event.CANCELLED: Phase.IDLE,
    },
    Phase.SCANNED: {
        Event.SELECTION_CHANGED: Phase.SELECTING,
        Event.SCAN_STARTED: Phase.SCANNING,
    },
    Phase.SELECTING: {
        Event.SELECTION_CHANGED: Phase.SELECTING,
        Event.DELETE_REQUESTED: Phase.PENDING_CONFIRMATION,
        Event.SCAN_STARTED: Phase.SCANNING,
    },
    Phase.PENDING_CONFIRMATION: {
        Event.CONFIRMED: Phase.DELETING,
        Event.DECLINED: Phase.SELECTING,
        Event.CANCELLED: Phase.SELECTING,
    },
    Phase.DELETING: {
        Event.DELETE_FINISHED: Phase.IDLE,
        Event.CANCELLED: Phase.IDLE,
    },
}


def transition(phase: Phase, event: Event) -> Phase:
    """Return the phase that follows *event* in *phase*.

    Raises:
        InvalidTransition: *event* is not allowed in *phase*.
    """
    try:
        return _TRANSITIONS[phase][event]
    except KeyError:
        raise InvalidTransition(f"{event.value} is not allowed while {phase.value}") from None


def allowed_events(phase: Phase) -> frozenset[Event]:
    return frozenset(_TRANSITIONS[phase])


SelectionKey = tuple[str, Path]


def _key(entry: ScanEntry) -> SelectionKey:
    return entry.category, entry.path


class DeletionController:
    """Holds the lifecycle phase, the latest scan results and the selection."""

    def __init__(self, registry: CategoryRegistry) -> None:
        self.registry = registry
        self._phase = Phase.IDLE
        self._results: dict[str, ScanResult] = {}
        self._entries: dict[SelectionKey, ScanEntry] = {}
        self._selected: dict[SelectionKey, ScanEntry] = {}

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def results(self) -> list[ScanResult]:
        return list(self._results.values())

    @property
    def total_bytes(self) -> int:
        """Total size of all scanned entries."""
        return sum(r.total_bytes for r in self._results.values())

    @property
    def selected_bytes(self) -> int:
        return sum(e.size_bytes for e in self._selected.values())

    def _fire(self, event: Event) -> Phase:
        new = transition(self._phase, event)
        log.debug("Controller %s --%s--> %s", self._phase.value, event.value, new.value)
        self._phase = new
        return new

    # -- scanning ---------------------------------------------------------

    def begin_scan(self) -> None:
        self._fire(Event.SCAN_STARTED)
        self._results.clear()
        self._entries.clear()
        self._selected.clear()

    def complete_scan(self, results: Iterable[ScanResult]) -> None:
        self._fire(Event.SCAN_FINISHED)
        for result in results:
            self._results[result.category_id] = result
            for entry in result.entries:
                self._entries[_key(entry)] = entry

    def fail_scan(self) -> None:
        self._fire(Event.SCAN_FAILED)
        self._results.clear()
        self._entries.clear()

    def cancel(self) -> None:
        """Abort the current step: scans and deletions end, a prompt is declined."""
        self._fire(Event.CANCELLED)

    def scan(self, category: str | Iterable[str] = ALL) -> list[ScanResult]:
        """Run a full scan synchronously and store its results.

        A category whose scan raises is logged and left out of the results.
        """
        categories = self.registry.resolve(category)
        self.begin_scan()
        results: list[ScanResult] = []
        for cat in categories:
            try:
                results.append(cat.scan())
            except Exception:
                log.exception("Category '%s' failed during scan", cat.id)
        self.complete_scan(results)
        return results

    # -- selection --------------------------------------------------------

    def _known(self, entry: ScanEntry) -> ScanEntry:
        try:
            return self._entries[_key(entry)]
        except KeyError:
            raise InvalidParameter(f"{entry.path} is not part of the current scan results") from None

    def select_all(self, category: str | None = None) -> int:
        """Select every entry that is not ``report_only``.

        Returns the number of entries selected.
        """
        self._fire(Event.SELECTION_CHANGED)
        count = 0
        for key, entry in self._entries.items():
            if entry.report_only or (category is not None and entry.category != category):
                continue
            self._selected[key] = entry
            count += 1
        return count

    def select(self, entry: ScanEntry) -> None:
        """Select one entry, ``report_only`` entries included."""
        known = self._known(entry)
        self._fire(Event.SELECTION_CHANGED)
        self._selected[_key(known)] = known

    def deselect(self, entry: ScanEntry) -> None:
        self._fire(Event.SELECTION_CHANGED)
        self._selected.pop(_key(entry), None)

    def clear_selection(self) -> None:
        self._fire(Event.SELECTION_CHANGED)
        self._selected.clear()

    def is_selected(self, entry: ScanEntry) -> bool:
        return _key(entry) in self._selected

    def selected_entries(self) -> dict[str, list[ScanEntry]]:
        """Selected entries grouped by category id, in scan order."""
        grouped: dict[str, list[ScanEntry]] = {}
        for key, entry in self._entries.items():
            if key in self._selected:
                grouped.setdefault(entry.category, []).append(entry)
        return grouped

    # -- deletion ---------------------------------------------------------

    def request_deletion(self) -> None:
        if not self._selected:
            raise InvalidParameter("nothing is selected")
        self._fire(Event.DELETE_REQUESTED)

    def confirm(self) -> dict[str, list[ScanEntry]]:
        """Accept the pending deletion and return what is to be deleted."""
        self._fire(Event.CONFIRMED)
        return self.selected_entries()

    def decline(self) -> None:
        self._fire(Event.DECLINED)

    def preview(self) -> DeletionReport:
        """Dry-run report of the current selection. Nothing is touched."""
        outcomes = [
            self.registry.get(cid).clean(entries, dry_run=True)
            for cid, entries in self.selected_entries().items()
        ]
        return self._report(outcomes, dry_run=True)

    def complete_deletion(self, outcomes: Iterable[CleanOutcome]) -> DeletionReport:
        """Finish a deletion and build its report.

        Scan results are dropped afterwards since they no longer describe
        the filesystem.
        """
        self._fire(Event.DELETE_FINISHED)
        report = self._report(outcomes, dry_run=False)
        log.info(
            "Deletion finished: %d deleted, %d skipped, %d failed, %d bytes freed",
            report.deleted,
            report.skipped,
            report.failed,
            report.bytes_freed,
        )
        self._results.clear()
        self._entries.clear()
        self._selected.clear()
        return report

    def delete(self, confirmed: bool = False) -> DeletionReport:
        """Delete the selection synchronously.

        Without *confirmed* this only returns the dry-run report and goes
        back to selecting.
        """
        if self._phase is not Phase.PENDING_CONFIRMATION:
            self.request_deletion()
        if not confirmed:
            report = self.preview()
            self.decline()
            return report

        selection = self.confirm()
        outcomes: list[CleanOutcome] = []
        for cid, entries in selection.items():
            category = self.registry.get(cid)
            try:
                outcomes.append(category.clean(entries, dry_run=False))
            except Exception as exc:
                log.exception("Category '%s' failed during clean", cid)
                failed = CleanOutcome(category_id=cid)
                failed.outcomes.extend(EntryOutcome.failed(e, str(exc)) for e in entries)
                outcomes.append(failed)
        return self.complete_deletion(outcomes)

    def _report(self, outcomes: Iterable[CleanOutcome], dry_run: bool) -> DeletionReport:
        by_category: dict[str, CleanOutcome] = {}
        for outcome in outcomes:
            if outcome.category_id in by_category:
                by_category[outcome.category_id].merge(outcome)
            else:
                by_category[outcome.category_id] = CleanOutcome(
                    category_id=outcome.category_id,
                    dry_run=dry_run,
                    outcomes=list(outcome.outcomes),
                    warnings=list(outcome.warnings),
                )

        for key, entry in self._entries.items():
            outcome = by_category.get(entry.category)
            if outcome is None or key in self._selected:
                continue
            outcome.outcomes.append(EntryOutcome.skipped(entry, SkipReason.NOT_SELECTED))

        return DeletionReport(dry_run=dry_run, outcomes=list(by_category.values()))
