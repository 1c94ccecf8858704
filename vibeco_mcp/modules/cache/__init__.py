"""
Cache Module - Black Box Interface

Purpose: Bounded, access-ordered key/value storage with eviction callback
Interface: LRUCache.get(), has(), set(), delete(), entries(), size, clear()
Hidden: Ordering structure, eviction mechanics

Performs no I/O; the eviction hook runs synchronously inside set().
"""

from .lru import EvictionHook, LRUCache

__all__ = ["LRUCache", "EvictionHook"]
