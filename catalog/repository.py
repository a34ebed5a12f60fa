"""
Repository interface shared by the in-memory and SQL backends.
"""

from __future__ import annotations

from typing import Iterator, Optional, Protocol, TypeVar


class HasId(Protocol):
    id: Optional[int]


T = TypeVar("T", bound=HasId)

# Ids must fit a signed 64-bit database integer.
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1


class DuplicateEntityError(Exception):
    """Raised when the store rejects an insert for an id that already exists."""

    def __init__(self, entity: str, entity_id: Optional[int]):
        super().__init__(f"{entity} with id {entity_id} already exists")
        self.entity = entity
        self.entity_id = entity_id


class Repository(Protocol[T]):
    """CRUD operations for one entity type."""

    def add(self, item: T) -> None:
        """Insert ``item``; a missing or zero id is generated and written back."""
        ...

    def delete(self, id: int) -> None:
        """Remove the entity with ``id``. Missing ids are ignored."""
        ...

    def get(self, id: int) -> Optional[T]:
        ...

    def get_all(self) -> Iterator[T]:
        ...


def needs_generated_id(item: HasId) -> bool:
    return not item.id
