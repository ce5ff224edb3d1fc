"""
Repository factory for configuration-driven backend selection.

The only module aware of concrete backend types. Everything else depends on
the Repository contract. Nothing is cached or registered globally: every call
constructs a fresh instance, and tests can construct backends directly.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from entity_store.errors import InvalidArgumentError
from entity_store.repositories.base import Repository
from entity_store.repositories.file_repository import (
    DelimitedTextRepository,
    Decoder,
    Encoder,
    StructuredMarkupRepository,
)
from entity_store.repositories.memory_repository import InMemoryRepository

if TYPE_CHECKING:
    from entity_store.config import RepositorySettings

logger = structlog.get_logger(__name__)


class BackendType(str, Enum):
    """Storage backends a repository can be built on."""

    MEMORY = "memory"
    DELIMITED_TEXT = "delimited-text"
    STRUCTURED_MARKUP = "structured-markup"


_ALIASES = {
    "csv": BackendType.DELIMITED_TEXT,
    "json": BackendType.STRUCTURED_MARKUP,
}


def parse_backend(value: BackendType | str) -> BackendType:
    """Resolve a selector (enum member, value or alias) to a BackendType."""
    if isinstance(value, BackendType):
        return value
    if not isinstance(value, str):
        raise InvalidArgumentError(f"Unknown repository backend: {value!r}")

    normalized = value.strip().lower()
    if normalized in _ALIASES:
        return _ALIASES[normalized]
    try:
        return BackendType(normalized)
    except ValueError as e:
        raise InvalidArgumentError(f"Unknown repository backend: {value!r}") from e


def create_repository(
    backend: BackendType | str,
    *,
    file_path: str | Path | None = None,
    encode: Encoder | None = None,
    decode: Decoder | None = None,
) -> Repository:
    """
    Create a repository for the selected backend.

    Args:
        backend: "memory", "delimited-text" ("csv") or "structured-markup" ("json")
        file_path: Target file, required by file backends
        encode: Entity -> textual record, required by file backends
        decode: Textual record -> entity, required by file backends

    Returns:
        A constructed repository; file backends are already hydrated.
    """
    backend_type = parse_backend(backend)

    if backend_type is BackendType.MEMORY:
        logger.info("Creating repository", backend=backend_type.value)
        return InMemoryRepository()

    if file_path is None:
        raise InvalidArgumentError(f"Backend {backend_type.value!r} requires file_path")
    if encode is None or decode is None:
        raise InvalidArgumentError(
            f"Backend {backend_type.value!r} requires encode and decode"
        )

    logger.info(
        "Creating repository", backend=backend_type.value, file_path=str(file_path)
    )

    if backend_type is BackendType.DELIMITED_TEXT:
        return DelimitedTextRepository(file_path, encode, decode)
    return StructuredMarkupRepository(file_path, encode, decode)


def create_repository_from_settings(
    settings: RepositorySettings,
    *,
    encode: Encoder | None = None,
    decode: Decoder | None = None,
) -> Repository:
    """Create a repository from the backend and file path in settings."""
    return create_repository(
        settings.backend,
        file_path=settings.file_path,
        encode=encode,
        decode=decode,
    )
