"""Central category registry."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from reclaim.core.errors import UnknownCategory
from reclaim.models.category import CleanCategory

log = logging.getLogger(__name__)

ALL = "all"
SAFE = "safe"


class CategoryRegistry:
    """Stores and retrieves registered categories by id."""

    def __init__(self, categories: Iterable[CleanCategory] = ()) -> None:
        self._categories: dict[str, CleanCategory] = {}
        for category in categories:
            self.register(category)

    def register(self, category: CleanCategory) -> None:
        """Register a category instance."""
        if category.id in self._categories:
            log.warning("Category '%s' already registered, skipping duplicate", category.id)
            return
        self._categories[category.id] = category
        log.debug("Registered category: %s (%s)", category.id, category.label)

    def get(self, category_id: str) -> CleanCategory:
        """Get a category by its id, raising ``UnknownCategory`` if missing."""
        try:
            return self._categories[category_id]
        except KeyError:
            raise UnknownCategory(category_id) from None

    def find(self, category_id: str) -> CleanCategory | None:
        """Get a category by its id, or None."""
        return self._categories.get(category_id)

    def ids(self) -> list[str]:
        return list(self._categories)

    def labels(self) -> dict[str, str]:
        """Map of category id to human-readable label."""
        return {c.id: c.label for c in self._categories.values()}

    def get_all(self) -> list[CleanCategory]:
        """Get all registered categories in display order."""
        return sorted(self._categories.values(), key=lambda c: (c.sort_order, c.id))

    def get_available(self) -> list[CleanCategory]:
        """Get all categories that are available on this system."""
        available = []
        for category in self.get_all():
            try:
                if category.is_available():
                    available.append(category)
            except Exception:
                log.exception("Error checking availability for category '%s'", category.id)
        return available

    def resolve(self, selector: str | Iterable[str]) -> list[CleanCategory]:
        """Resolve ``"all"``, ``"safe"``, a single id, or several ids to categories.

        ``"all"`` means every available category. ``"safe"`` narrows that to
        the safe-risk categories whose entries are bulk-selectable. Any
        unknown id raises ``UnknownCategory`` before anything is returned.
        """
        if isinstance(selector, str):
            if selector == ALL:
                return self.get_available()
            if selector == SAFE:
                return [c for c in self.get_available() if c.risk_level == "safe" and not c.report_only]
            return [self.get(selector)]
        return [self.get(cid) for cid in dict.fromkeys(selector)]

    def __len__(self) -> int:
        return len(self._categories)

    def __iter__(self) -> Iterator[CleanCategory]:
        return iter(self.get_all())

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._categories
