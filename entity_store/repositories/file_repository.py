"""
Flat-file implementations of the repository pattern.

Both encodings share one algorithm:
- Hydrate the whole dataset into memory on construction
- Apply each mutation to a copy of the in-memory mapping
- Persist the copy to a temp file in the target's directory, then swap it
  into place with os.replace; only then commit the copy in memory

A reader of the target file therefore sees either the previous or the new
complete dataset, and a failed persist leaves the repository unchanged.
The caller supplies the encode/decode pair; this module only knows how
records are framed in the file (one per line, or elements of a JSON array).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from enum import Enum
import json
import os
from pathlib import Path
import tempfile
import threading
from typing import Any
from uuid import UUID

import structlog

from entity_store.errors import (
    CorruptStateError,
    InvalidArgumentError,
    NotFoundError,
    SerializationError,
    StorageIOError,
)
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

Encoder = Callable[[Any], str]
Decoder = Callable[[str], Any]


class MalformedRecordPolicy(str, Enum):
    """How hydration treats a record that cannot be decoded."""

    SKIP = "skip"
    FAIL = "fail"


class FileRepository(Repository[T], ABC):
    """
    Base class for file-backed repositories with shared load/persist logic.

    Subclasses define how records are split out of and rendered into the
    file, and declare their malformed_record_policy. update() on an unknown
    identifier raises NotFoundError.

    Entities returned by get_by_id(), list() and find() are the stored
    objects; changes to them reach the file only through update().

    The file is assumed to be owned by this process; nothing coordinates
    with other processes writing the same path.
    """

    update_miss_policy = UpdateMissPolicy.RAISE
    malformed_record_policy: MalformedRecordPolicy

    def __init__(self, file_path: str | Path, encode: Encoder, decode: Decoder):
        if file_path is None:
            raise InvalidArgumentError("file_path must not be None")
        if encode is None or decode is None:
            raise InvalidArgumentError("encode and decode must not be None")

        self._file_path = Path(file_path)
        self._encode = encode
        self._decode = decode
        self._items: dict[UUID, T] = {}
        # Serializes mutations, persists and reloads for this instance only
        self._lock = threading.RLock()

        self.reload()

    @property
    def file_path(self) -> Path:
        return self._file_path

    # ── Encoding hooks ────────────────────────────────────

    @abstractmethod
    def _split_records(self, content: str) -> Iterable[str]:
        """Break raw file content into individual textual records."""
        pass

    @abstractmethod
    def _prepare_record(self, record: str, entity: T) -> Any:
        """Validate one encoded record and return what _render consumes."""
        pass

    @abstractmethod
    def _render(self, records: list[Any]) -> str:
        """Produce the complete file content from prepared records."""
        pass

    # ── Load ──────────────────────────────────────────────

    def reload(self) -> None:
        """Re-hydrate the in-memory set from disk, replacing the current one."""
        with self._lock:
            self._items = self._load()
            logger.info(
                "Repository hydrated",
                file_path=str(self._file_path),
                count=len(self._items),
                policy=self.malformed_record_policy.value,
            )

    def _load(self) -> dict[UUID, T]:
        if not self._file_path.exists():
            # Nothing persisted yet
            return {}

        try:
            content = self._file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.error(
                "Repository file is not valid UTF-8",
                file_path=str(self._file_path),
                error=str(e),
            )
            raise CorruptStateError(
                f"{self._file_path} is not valid UTF-8: {e}"
            ) from e
        except OSError as e:
            logger.error(
                "Failed to read repository file",
                file_path=str(self._file_path),
                error=str(e),
            )
            raise StorageIOError(f"Failed to read {self._file_path}: {e}") from e

        items: dict[UUID, T] = {}
        for position, record in enumerate(self._split_records(content), start=1):
            if not record.strip():
                continue
            self._hydrate_record(record, position, items)
        return items

    def _hydrate_record(self, record: str, position: int, items: dict[UUID, T]) -> None:
        try:
            entity = self._decode(record)
        except Exception as e:
            self._reject_record(position, f"decode failed: {e}", e)
            return

        if entity is None:
            self._reject_record(position, "decoder returned no entity")
        elif is_unassigned(getattr(entity, "id", None)):
            self._reject_record(position, "record has no identifier")
        elif entity.id in items:
            self._reject_record(position, f"duplicate identifier {entity.id}")
        else:
            items[entity.id] = entity

    def _reject_record(
        self, position: int, reason: str, cause: Exception | None = None
    ) -> None:
        if self.malformed_record_policy is MalformedRecordPolicy.FAIL:
            logger.error(
                "Corrupt record in repository file",
                file_path=str(self._file_path),
                record=position,
                reason=reason,
            )
            raise CorruptStateError(
                f"{self._file_path}: record {position}: {reason}"
            ) from cause

        logger.warning(
            "Skipping malformed record",
            file_path=str(self._file_path),
            record=position,
            reason=reason,
        )

    # ── Persist ───────────────────────────────────────────

    def _commit(self, items: dict[UUID, T]) -> None:
        """Persist the candidate mapping, then make it the current state."""
        self._persist(items.values())
        self._items = items

    def _persist(self, entities: Iterable[T]) -> None:
        # Encode everything before touching the filesystem
        records = [self._encode_record(entity) for entity in entities]
        try:
            content = self._render(records).encode("utf-8")
        except UnicodeEncodeError as e:
            raise SerializationError(f"Encoded records are not valid UTF-8: {e}") from e

        directory = self._file_path.parent
        temp_path: Path | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # Same directory as the target keeps os.replace atomic
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=directory,
                prefix=f".{self._file_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(content)
                temp_file.flush()
                os.fsync(temp_file.fileno())

            os.replace(temp_path, self._file_path)
        except OSError as e:
            logger.error(
                "Failed to persist repository",
                file_path=str(self._file_path),
                error=str(e),
            )
            raise StorageIOError(f"Failed to persist {self._file_path}: {e}") from e
        finally:
            if temp_path is not None:
                self._remove_temp_file(temp_path)

        logger.debug(
            "Repository persisted",
            file_path=str(self._file_path),
            count=len(records),
        )

    def _remove_temp_file(self, temp_path: Path) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to remove temp file", temp_path=str(temp_path), error=str(e)
            )

    def _encode_record(self, entity: T) -> Any:
        try:
            record = self._encode(entity)
        except Exception as e:
            logger.error("Failed to encode entity", entity_id=str(entity.id), error=str(e))
            raise SerializationError(f"Failed to encode entity {entity.id}: {e}") from e

        if not isinstance(record, str):
            raise SerializationError(
                f"Encoder returned {type(record).__name__} for entity {entity.id}, "
                "expected str"
            )
        return self._prepare_record(record, entity)

    # ── Repository operations ─────────────────────────────

    def add(self, entity: T) -> T:
        require_entity(entity)

        with self._lock:
            original_id = entity.id
            if is_unassigned(original_id):
                entity.id = new_id()
            elif entity.id in self._items:
                raise InvalidArgumentError(f"Entity {entity.id} already exists")

            items = dict(self._items)
            items[entity.id] = entity
            try:
                self._commit(items)
            except Exception:
                entity.id = original_id
                raise

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
                raise NotFoundError(f"Entity {entity.id} not found")

            # Keeps the record's position in the file
            items = dict(self._items)
            items[entity.id] = entity
            self._commit(items)

            logger.debug("Entity updated", entity_id=str(entity.id))
            return True

    def delete(self, entity_id: UUID) -> bool:
        with self._lock:
            if entity_id not in self._items:
                return False

            items = dict(self._items)
            del items[entity_id]
            self._commit(items)

            logger.debug("Entity deleted", entity_id=str(entity_id))
            return True


class DelimitedTextRepository(FileRepository[T]):
    """
    One encoded record per line.

    Best-effort hydration: malformed lines are logged and skipped.
    """

    malformed_record_policy = MalformedRecordPolicy.SKIP

    def _split_records(self, content: str) -> Iterable[str]:
        return content.splitlines()

    def _prepare_record(self, record: str, entity: T) -> str:
        # A blank or multi-line record would not survive the round trip
        if not record.strip() or record.splitlines() != [record]:
            raise SerializationError(
                f"Encoded record for entity {entity.id} must be a single non-blank line"
            )
        return record

    def _render(self, records: list[str]) -> str:
        return "".join(f"{record}\n" for record in records)


class StructuredMarkupRepository(FileRepository[T]):
    """
    JSON array of records; each element is handed to decode as its JSON text.

    Strict hydration: any malformed record fails construction with
    CorruptStateError.
    """

    malformed_record_policy = MalformedRecordPolicy.FAIL

    def _split_records(self, content: str) -> Iterable[str]:
        if not content.strip():
            return []

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(
                "Repository file is not valid JSON",
                file_path=str(self._file_path),
                error=str(e),
            )
            raise CorruptStateError(f"{self._file_path} is not valid JSON: {e}") from e

        if not isinstance(document, list):
            raise CorruptStateError(
                f"{self._file_path} must contain a JSON array, "
                f"found {type(document).__name__}"
            )
        return [json.dumps(element, ensure_ascii=False) for element in document]

    def _prepare_record(self, record: str, entity: T) -> Any:
        try:
            return json.loads(record)
        except json.JSONDecodeError as e:
            raise SerializationError(
                f"Encoded record for entity {entity.id} is not valid JSON: {e}"
            ) from e

    def _render(self, records: list[Any]) -> str:
        return json.dumps(records, indent=2, ensure_ascii=False) + "\n"
