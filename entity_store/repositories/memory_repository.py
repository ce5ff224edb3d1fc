"""
In-memory implementation of the repository pattern.

Dictionary-backed store with no durability. Serves as the reference
implementation and as the test double for anything that consumes the
Repository contract.
"""

from __future__ import annotations

from collections.abc import Callable
import threading
from uuid import UUID

import structlog

from entity_store.errors import InvalidArgumentError
from entity_store.repositories.base import (
    Repository,
    T,
    UpdateMissPolicy,
    is_unassigned,
    new_id,
    require_entity,
    require_predicate,
)

logger = structlog.get_logger(__name__)


class InMemoryRepository(Repository[T]):
    """
    Thread-safe in-memory repository.

    update() on an unknown identifier returns False.

    Example:
        >>> repo = InMemoryRepository[Movie]()
        >>> movie = repo.add(Movie(title="Inception", year=2010))
        >>> repo.get_by_id(movie.id).title
        'Inception'
    """

    update_miss_policy = UpdateMissPolicy.RETURN_FALSE

    def __init__(self):
        self._items: dict[UUID, T] = {}
        # Single lock per instance; never shared across repositories
        self._lock = threading.RLock()

    def add(self, entity: T) -> T:
        require_entity(entity)

        with self._lock:
            if is_unassigned(entity.id):
                entity.id = new_id()
            elif entity.id in self._items:
                raise InvalidArgumentError(f"Entity {entity.id} already exists")

            self._items[entity.id] = entity
            logger.debug("Entity added", entity_id=str(entity.id))
            return entity

    def get_by_id(self, entity_id: UUID) -> T | None:
        with self._lock:
            return self._items.get(entity_id)

    def list(self) -> list[T]:
        with self._lock:
            return list(self._items.values())

    def find(self, predicate: Callable[[T], bool]) -> list[T]:
        require_predicate(predicate)
        return [entity for entity in self.list() if predicate(entity)]

    def update(self, entity: T) -> bool:
        require_entity(entity)

        with self._lock:
            if is_unassigned(entity.id) or entity.id not in self._items:
                return False

            self._items[entity.id] = entity
            logger.debug("Entity updated", entity_id=str(entity.id))
            return True

    def delete(self, entity_id: UUID) -> bool:
        with self._lock:
            if entity_id in self._items:
                del self._items[entity_id]
                logger.debug("Entity deleted", entity_id=str(entity_id))
                return True
            return False
