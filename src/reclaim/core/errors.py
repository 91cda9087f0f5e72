"""Exception hierarchy.

Request-level errors (``UnknownCategory``, ``InvalidParameter``,
``InvalidTransition``, ``OperationInProgress``) are raised synchronously
before any filesystem work starts. Entry-level errors
(``HashComputationError``, ``ShredError``) are caught by their callers and
recorded as warnings or failed outcomes for that entry only.
"""

from __future__ import annotations

from pathlib import Path


class ReclaimError(Exception):
    """Base class for all errors raised by the engine."""


class UnknownCategory(ReclaimError, KeyError):
    """Requested category id is not registered."""

    def __init__(self, category_id: str) -> None:
        super().__init__(category_id)
        self.category_id = category_id

    def __str__(self) -> str:
        return f"Unknown category: {self.category_id!r}"


class InvalidParameter(ReclaimError, ValueError):
    """Request parameter is malformed or out of range."""


class InvalidTransition(ReclaimError):
    """Lifecycle event is not allowed in the current phase."""


class OperationInProgress(ReclaimError):
    """Another operation is already running."""


class HashComputationError(ReclaimError):
    """File content could not be read for hashing."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"{path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class ShredError(ReclaimError):
    """Secure overwrite or removal of a file failed.

    ``cause`` holds the underlying ``OSError`` when there is one, so callers
    can tell a vanished file from a permission or I/O problem.
    """

    def __init__(self, path: Path, reason: str, cause: OSError | None = None) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
        self.cause = cause

    @property
    def vanished(self) -> bool:
        return isinstance(self.cause, FileNotFoundError)
