"""
Bounded least-recently-used cache.

Caps the number of live sessions so that a flood of initialize requests
cannot exhaust memory.
"""

from collections import OrderedDict
from typing import Callable, Generic, Iterator, Optional, Tuple, TypeVar

V = TypeVar("V")

EvictionHook = Callable[[str, V], None]


class LRUCache(Generic[V]):
    """
    Fixed-capacity map ordered from least to most recently used.

    Inserting a new key into a full cache evicts exactly one entry, the
    least recently used one, and hands it to ``on_evict`` before the new
    entry is admitted. Re-inserting an existing key only promotes it.
    """

    def __init__(self, max_size: int, on_evict: Optional[EvictionHook] = None):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries
            on_evict: Optional callback invoked with (key, value) on eviction
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._on_evict = on_evict
        self._entries: "OrderedDict[str, V]" = OrderedDict()

    def get(self, key: str) -> Optional[V]:
        """
        Get a value and mark it as most recently used.

        Returns:
            The cached value or None if absent
        """
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def has(self, key: str) -> bool:
        """Membership test. Does NOT update the access order."""
        return key in self._entries

    def set(self, key: str, value: V) -> None:
        """
        Insert or replace a value, promoting it to most recently used.

        Eviction only happens for keys not already present.
        """
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            oldest_key, oldest_value = self._entries.popitem(last=False)
            if self._on_evict is not None:
                self._on_evict(oldest_key, oldest_value)
        self._entries[key] = value

    def delete(self, key: str) -> bool:
        """
        Remove a key without invoking the eviction hook.

        Returns:
            True if the key was present
        """
        if key in self._entries:
            del self._entries[key]
            return True
        return False

    def entries(self) -> Iterator[Tuple[str, V]]:
        """Iterate (key, value) pairs from least to most recently used."""
        yield from self._entries.items()

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def clear(self) -> None:
        """Remove all entries. The eviction hook is not invoked."""
        self._entries.clear()
