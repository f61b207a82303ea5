"""
Thread safe key/value cache used for loaded fonts and rasterized glyphs.

Entries are immutable once inserted. With max_entries=None the cache is
unbounded and nothing is ever evicted, otherwise the least recently used
entry is dropped once the limit is exceeded.
"""

import logging
import threading
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Iterator, TypeVar

log = logging.getLogger(__name__)

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


class Cache(Generic[K, V]):
    """Get/insert map with an atomic get_or_insert per key."""

    def __init__(self, max_entries: int | None = None, name: str = 'cache') -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()
        self._max_entries = max_entries
        self._name = name
        self.hits = 0
        self.misses = 0

    @property
    def max_entries(self) -> int | None:
        return self._max_entries

    def get(self, key: K, default: V | None = None) -> V | None:
        with self._lock:
            try:
                value = self._entries[key]
            except KeyError:
                self.misses += 1
                return default
            self.hits += 1
            if self._max_entries is not None:
                self._entries.move_to_end(key)
            return value

    def insert(self, key: K, value: V) -> V:
        """Inserts value unless key is already present. Returns the stored value."""
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                return existing
            self._entries[key] = value
            self._evict()
            return value

    def put(self, key: K, value: V) -> V:
        """Stores value under key, replacing any existing value."""
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            self._evict()
            return value

    def get_or_insert(self, key: K, factory: Callable[[], V]) -> V:
        """Returns the cached value for key, creating it with factory on a miss.

        The factory runs outside the lock. When two threads race on the same
        key the first insert wins and both callers get that value.
        """
        value = self.get(key)
        if value is not None:
            return value
        return self.insert(key, factory())

    def values(self) -> list[V]:
        with self._lock:
            return list(self._entries.values())

    def keys(self) -> list[K]:
        with self._lock:
            return list(self._entries.keys())

    def items(self) -> list[tuple[K, V]]:
        with self._lock:
            return list(self._entries.items())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def _evict(self) -> None:
        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            key, _ = self._entries.popitem(last=False)
            log.debug(f"{self._name}: evicted {key!r}")

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())
