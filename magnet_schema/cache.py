# magnet_schema/cache.py
"""
Memoization of derived schemas, keyed by shape identity.

Purely an optimization: a hit must be indistinguishable from a fresh
derivation. Two rules keep it that way:

- A result whose derivation was cut short by a cycle that started *outside*
  it is never stored (a fresh derivation of that shape would expand one more
  level).
- Each entry records every shape identity its derivation visited; a lookup
  misses while any of those is being expanded higher up the current stack
  (in context, the builder would cut there instead).
"""

import copy
import logging
import threading
import weakref
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

SchemaDocument = dict[str, Any]


@dataclass(frozen=True)
class CacheEntry:
    schema: SchemaDocument
    visited: frozenset[int]


class SchemaCache:
    """Thread-safe cache shared by any number of concurrent derivations."""

    def __init__(self) -> None:
        self._entries: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, shape: object, active: set[int]) -> CacheEntry | None:
        """
        Look up ``shape``, ignoring entries that overlap the active stack.

        Args:
            shape: Shape being derived
            active: Identities currently being expanded by the caller

        Returns:
            A private copy of the entry, or None on a miss
        """
        with self._lock:
            entry = self._entries.get(shape)
            if entry is None or not entry.visited.isdisjoint(active):
                self.misses += 1
                return None
            self.hits += 1
        return CacheEntry(copy.deepcopy(entry.schema), entry.visited)

    def put(self, shape: object, schema: SchemaDocument, visited: frozenset[int]) -> None:
        with self._lock:
            self._entries[shape] = CacheEntry(copy.deepcopy(schema), visited)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
        logger.debug("Cleared schema cache")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
