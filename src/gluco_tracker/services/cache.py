"""Expiring cache of product search results."""

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from gluco_tracker.domain.estimation import ProductMatch


class SearchCache(Protocol):
    """Remembers product matches per normalized query and result limit."""

    def get(self, query: str, limit: int) -> list[ProductMatch] | None:
        """Return cached matches unless missing or expired."""

    def put(self, query: str, limit: int, matches: list[ProductMatch]) -> None:
        """Remember ``matches`` for ``query`` and ``limit``."""


def search_key(query: str, limit: int) -> tuple[str, int]:
    """Queries differing only in case or outer whitespace share a key."""
    return query.strip().lower(), limit


@dataclass
class InMemorySearchCache(SearchCache):
    """Process-local cache bounded by age and by number of queries.

    When full, the least recently stored query is evicted.
    """

    ttl_seconds: float = 3600
    max_queries: int = 256
    clock: Callable[[], float] = time.monotonic
    _results: OrderedDict[tuple[str, int], tuple[float, tuple[ProductMatch, ...]]] = (
        field(default_factory=OrderedDict)
    )

    def get(self, query: str, limit: int) -> list[ProductMatch] | None:
        key = search_key(query, limit)
        cached = self._results.get(key)
        if cached is None:
            return None
        stored_at, matches = cached
        if self.clock() - stored_at >= self.ttl_seconds:
            del self._results[key]
            return None
        return list(matches)

    def put(self, query: str, limit: int, matches: list[ProductMatch]) -> None:
        key = search_key(query, limit)
        self._results.pop(key, None)
        self._results[key] = (self.clock(), tuple(matches))
        while len(self._results) > self.max_queries:
            self._results.popitem(last=False)
