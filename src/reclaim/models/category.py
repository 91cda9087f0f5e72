"""Base category interface."""

from __future__ import annotations

import errno
import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator

from reclaim.models.clean_result import CleanOutcome, EntryOutcome, SkipReason
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning

log = logging.getLogger(__name__)


class CleanCategory(ABC):
    """Base class for all junk-source categories.

    Every category implements this interface to participate in scanning
    and cleaning. Categories are peers selected by id through the
    registry; none depends on another.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier, e.g. 'system_caches'."""

    @property
    @abstractmethod
    def label(self) -> str:
        """Human-readable name, e.g. 'System Caches'."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What this category cleans and why it's safe."""

    @property
    def risk_level(self) -> str:
        """Risk level: 'safe', 'moderate', or 'aggressive'."""
        return "safe"

    @property
    def sort_order(self) -> int:
        """Display order (lower = first). Default 50."""
        return 50

    @property
    def report_only(self) -> bool:
        """Whether entries are excluded from bulk selection."""
        return False

    _should_stop: Callable[[], bool] | None = None

    @abstractmethod
    def scan(self) -> ScanResult:
        """Scan for removable entries. MUST NOT modify the filesystem."""

    @contextmanager
    def cancel_check(self, should_stop: Callable[[], bool]) -> Iterator[CleanCategory]:
        """Make *should_stop* visible to ``scan`` for the duration of the block.

        Long scans poll it through ``_stop_requested()`` between files and
        return what they found so far once it is true.
        """
        self._should_stop = should_stop
        try:
            yield self
        finally:
            self._should_stop = None

    def _stop_requested(self) -> bool:
        return self._should_stop is not None and self._should_stop()

    def clean(self, selected: Iterable[ScanEntry], dry_run: bool = False) -> CleanOutcome:
        """Remove the selected entries, each independently.

        With ``dry_run`` nothing is touched and every owned entry that still
        exists is reported as deleted, so dry-run and real outcomes have the
        same shape. A failure on one entry never stops the others.
        """
        outcome = CleanOutcome(category_id=self.id, dry_run=dry_run)
        for entry in selected:
            if entry.category != self.id:
                outcome.outcomes.append(
                    EntryOutcome.skipped(entry, SkipReason.NOT_OWNED, f"belongs to {entry.category!r}")
                )
                continue
            if dry_run:
                if os.path.lexists(entry.path):
                    outcome.outcomes.append(EntryOutcome.deleted(entry))
                else:
                    missing = FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(entry.path))
                    self._vanished(outcome, entry, missing)
                continue
            try:
                self._remove(entry)
            except FileNotFoundError as exc:
                self._vanished(outcome, entry, exc)
            except OSError as exc:
                log.warning("Failed to remove %s: %s", entry.path, exc)
                warning = ScanWarning.from_error(entry.path, exc)
                outcome.warnings.append(warning)
                outcome.outcomes.append(EntryOutcome.failed(entry, warning.reason))
            else:
                outcome.outcomes.append(EntryOutcome.deleted(entry))
        return outcome

    @staticmethod
    def _vanished(outcome: CleanOutcome, entry: ScanEntry, exc: FileNotFoundError) -> None:
        log.debug("Already gone: %s", entry.path)
        outcome.warnings.append(ScanWarning.from_error(entry.path, exc))
        outcome.outcomes.append(EntryOutcome.skipped(entry, SkipReason.VANISHED, "no longer exists"))

    def _remove(self, entry: ScanEntry) -> None:
        """Delete a single entry. Override for custom removal logic."""
        from reclaim.utils import remove_path

        remove_path(entry.path)

    def _entry(self, path: Path, size: int, description: str = "", group_key: str | None = None) -> ScanEntry:
        return ScanEntry(
            path=path,
            size_bytes=size,
            category=self.id,
            group_key=group_key,
            report_only=self.report_only,
            description=description,
        )

    def _result(
        self,
        entries: Iterable[ScanEntry],
        warnings: Iterable[ScanWarning] = (),
        summary: str = "",
        **kwargs,
    ) -> ScanResult:
        return ScanResult.build(self.id, self.label, entries, warnings, summary=summary, **kwargs)

    @property
    def unavailable_reason(self) -> str | None:
        """Why this category cannot work on this system, or None if supported."""
        return None

    def is_available(self) -> bool:
        """Check if this category is applicable on the current system."""
        return self.unavailable_reason is None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"


class CacheDirsCategory(CleanCategory, ABC):
    """Base class for categories that report a fixed set of directories.

    Subclasses define metadata properties and ``_cache_dirs``. Each existing,
    non-empty directory becomes one entry.
    """

    @property
    @abstractmethod
    def _cache_dirs(self) -> tuple[Path, ...]:
        """Directories to report."""

    @property
    def _recreate_dirs(self) -> bool:
        """Whether to recreate directories after cleaning."""
        return False

    @property
    def unavailable_reason(self) -> str | None:
        if not any(d.is_dir() for d in self._cache_dirs):
            return f"{self.label} not found"
        return None

    def scan(self) -> ScanResult:
        from reclaim.core.walker import dir_info

        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []

        for cache_dir in sorted(set(self._cache_dirs)):
            if not cache_dir.is_dir() or cache_dir.is_symlink():
                continue
            size, _count = dir_info(cache_dir, warnings)
            if size > 0:
                entries.append(self._entry(cache_dir, size, f"{self.label}: {cache_dir.name}"))

        return self._result(entries, warnings)

    def _remove(self, entry: ScanEntry) -> None:
        super()._remove(entry)
        if self._recreate_dirs:
            entry.path.mkdir(parents=True, exist_ok=True)
