"""Duplicate group dataclass."""

from __future__ import annotations

from dataclasses import dataclass

from reclaim.models.scan_result import ScanEntry


@dataclass(frozen=True, slots=True)
class DuplicateGroup:
    """Set of files with identical content.

    Exactly one member, the ``keeper``, is retained. The others are
    ``removable`` and carry the group's ``key`` as their ``group_key``.
    """

    key: str
    keeper: ScanEntry
    removable: tuple[ScanEntry, ...]

    def __post_init__(self) -> None:
        if not self.removable:
            raise ValueError("a duplicate group needs at least two members")

    @property
    def entries(self) -> tuple[ScanEntry, ...]:
        """All members, keeper first."""
        return (self.keeper, *self.removable)

    @property
    def size_bytes(self) -> int:
        """Size of a single copy."""
        return self.keeper.size_bytes

    @property
    def total_bytes(self) -> int:
        return sum(e.size_bytes for e in self.entries)

    @property
    def reclaimable_bytes(self) -> int:
        return sum(e.size_bytes for e in self.removable)

    def __len__(self) -> int:
        return 1 + len(self.removable)
