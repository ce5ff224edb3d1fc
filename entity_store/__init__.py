"""Swappable persistence for identifiable records: in-memory or flat-file backed."""

from .codecs import Codec, delimited_codec, json_codec
from .errors import (
    CorruptStateError,
    InvalidArgumentError,
    NotFoundError,
    RepositoryError,
    SerializationError,
    StorageIOError,
)
from .repositories import (
    EMPTY_ID,
    BackendType,
    DelimitedTextRepository,
    Entity,
    InMemoryRepository,
    Repository,
    StructuredMarkupRepository,
    create_repository,
)

__all__ = [
    "EMPTY_ID",
    "Entity",
    "Repository",
    "InMemoryRepository",
    "DelimitedTextRepository",
    "StructuredMarkupRepository",
    "BackendType",
    "create_repository",
    "Codec",
    "json_codec",
    "delimited_codec",
    "RepositoryError",
    "InvalidArgumentError",
    "NotFoundError",
    "CorruptStateError",
    "SerializationError",
    "StorageIOError",
]
