"""
Abstract repository interfaces for the repository pattern.

Defines the entity contract and the operation set every storage backend
(in-memory, delimited-text file, structured-markup file) implements, so
callers depend on the contract only and never on a concrete backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from entity_store.errors import InvalidArgumentError

# Zero-value identifier reserved for "not yet assigned"
EMPTY_ID = UUID(int=0)


class Identifiable(Protocol):
    """Anything stored in a repository: exposes a read/write unique id."""

    id: UUID


class Entity(BaseModel):
    """Base model for domain records; starts out with the unassigned sentinel."""

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default=EMPTY_ID, description="Unique identifier")


T = TypeVar("T", bound=Identifiable)


class UpdateMissPolicy(str, Enum):
    """What update() does when no record has the entity's identifier."""

    RETURN_FALSE = "return_false"
    RAISE = "raise"


def is_unassigned(entity_id: UUID | None) -> bool:
    """True when the identifier is the sentinel (or missing altogether)."""
    return entity_id is None or entity_id == EMPTY_ID


def new_id() -> UUID:
    """Generate a fresh random identifier."""
    return uuid4()


def require_entity(entity: Any) -> None:
    if entity is None:
        raise InvalidArgumentError("entity must not be None")


def require_predicate(predicate: Any) -> None:
    if predicate is None:
        raise InvalidArgumentError("predicate must not be None")
    if not callable(predicate):
        raise InvalidArgumentError(
            f"predicate must be callable, got {type(predicate).__name__}"
        )


class Repository(ABC, Generic[T]):
    """
    Abstract repository over entities of one type, keyed by identifier.

    Backends declare how update() treats a missing identifier through
    update_miss_policy and apply it on every call.
    """

    update_miss_policy: UpdateMissPolicy = UpdateMissPolicy.RETURN_FALSE

    @abstractmethod
    def add(self, entity: T) -> T:
        """Store an entity, assigning an identifier if it has none."""
        pass

    @abstractmethod
    def get_by_id(self, entity_id: UUID) -> T | None:
        """Get an entity by identifier, None if absent."""
        pass

    @abstractmethod
    def list(self) -> list[T]:
        """Return a snapshot of every stored entity."""
        pass

    @abstractmethod
    def find(self, predicate: Callable[[T], bool]) -> list[T]:
        """Return a snapshot of the entities matching predicate."""
        pass

    @abstractmethod
    def update(self, entity: T) -> bool:
        """Overwrite the stored record with the same identifier."""
        pass

    @abstractmethod
    def delete(self, entity_id: UUID) -> bool:
        """Delete by identifier. Returns True if deleted, False if not found."""
        pass

    def __contains__(self, entity_id: object) -> bool:
        if not isinstance(entity_id, UUID):
            return False
        return self.get_by_id(entity_id) is not None

    def __len__(self) -> int:
        return len(self.list())
