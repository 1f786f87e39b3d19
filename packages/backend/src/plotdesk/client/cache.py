"""Query cache the subscription client invalidates into.

Learn: The dashboard's cache is keyed by tuples such as
("/api/leads",) or ("/api/call-logs/lead", "lead-42"). Invalidating a key
marks every cached query whose key starts with it as stale, so
("/api/leads",) also covers ("/api/leads", "assigned"). Whoever renders
the data refetches stale entries on next read.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Optional, Protocol

QueryKey = tuple


class QueryCache(Protocol):
    """What the subscription client needs from a cache: one method."""

    def invalidate(self, key: QueryKey) -> int:
        """Mark queries under ``key`` stale. Returns how many matched."""
        ...


def _starts_with(key: QueryKey, prefix: QueryKey) -> bool:
    return len(key) >= len(prefix) and key[: len(prefix)] == prefix


class InMemoryQueryCache:
    """Minimal keyed cache with stale flags and prefix invalidation."""

    def __init__(self, on_invalidate: Optional[Callable[[QueryKey], None]] = None):
        self._entries: dict[QueryKey, Any] = {}
        self._stale: set[QueryKey] = set()
        self._on_invalidate = on_invalidate
        self.invalidations: list[QueryKey] = []

    def set(self, key: QueryKey, value: Any) -> None:
        """Store a fresh result for ``key``."""
        self._entries[key] = value
        self._stale.discard(key)

    def get(self, key: QueryKey, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def is_stale(self, key: QueryKey) -> bool:
        return key in self._stale

    def stale_keys(self) -> set[QueryKey]:
        return set(self._stale)

    def invalidate(self, key: QueryKey) -> int:
        self.invalidations.append(key)
        matched = [k for k in self._entries if _starts_with(k, key)]
        self._stale.update(matched)
        if self._on_invalidate is not None:
            self._on_invalidate(key)
        return len(matched)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
