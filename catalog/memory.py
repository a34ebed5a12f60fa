"""
In-memory repository for development and tests.
"""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager, nullcontext
from typing import Dict, Generic, Iterator, Optional

from catalog.repository import T, needs_generated_id


class InMemoryRepository(Generic[T]):
    """Simple dict-backed repository; nothing survives a restart.

    Related ids are stored as given. Unlike the SQL backend, unknown ids are
    kept and the other side of the relation is not updated.
    """

    def __init__(self, *, serialize_writes: bool = True):
        self.items: Dict[int, T] = {}
        self._next_id = 1
        self._lock: AbstractContextManager = (
            threading.RLock() if serialize_writes else nullcontext()
        )

    def add(self, item: T) -> None:
        with self._lock:
            if needs_generated_id(item):
                item.id = self._next_id
            self._next_id = max(self._next_id, item.id + 1)
            # Existing ids are overwritten.
            self.items[item.id] = item

    def delete(self, id: int) -> None:
        with self._lock:
            self.items.pop(id, None)

    def get(self, id: int) -> Optional[T]:
        return self.items.get(id)

    def get_all(self) -> Iterator[T]:
        with self._lock:
            snapshot = list(self.items.values())
        return iter(snapshot)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.items.clear()
            self._next_id = 1
