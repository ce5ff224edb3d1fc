"""
Ready-made encode/decode pairs for pydantic entities.

Repositories accept any caller-supplied pair; these cover the common case of
an Entity subclass stored as one JSON object or one delimited row per record.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import csv
import io
from typing import Any, NamedTuple

from pydantic import BaseModel

from entity_store.errors import InvalidArgumentError


class Codec(NamedTuple):
    """Encode/decode pair; unpacks as (encode, decode)."""

    encode: Callable[[Any], str]
    decode: Callable[[str], Any]


def json_codec(model_cls: type[BaseModel]) -> Codec:
    """One compact JSON object per record, validated through model_cls."""

    def encode(entity: BaseModel) -> str:
        return entity.model_dump_json()

    def decode(record: str) -> BaseModel:
        return model_cls.model_validate_json(record)

    return Codec(encode, decode)


# Marks a None cell; any str value starting with a backslash gets one more
NULL_MARKER = "\\N"


def _encode_cell(value: Any) -> Any:
    if value is None:
        return NULL_MARKER
    if isinstance(value, str) and value.startswith("\\"):
        return "\\" + value
    return value


def _decode_cell(cell: str) -> str | None:
    if cell == NULL_MARKER:
        return None
    if cell.startswith("\\"):
        return cell[1:]
    return cell


def delimited_codec(
    model_cls: type[BaseModel],
    fields: Sequence[str],
    delimiter: str = "|",
) -> Codec:
    """
    One delimited row per record, quoted with the csv module.

    Values are written in field order. None is written as the marker \\N, so
    an empty string and None stay distinct; a string value that itself starts
    with a backslash is written with one extra leading backslash.

    Raises:
        InvalidArgumentError: If fields is empty or omits "id"
    """
    fields = list(fields)
    if not fields:
        raise InvalidArgumentError("fields must not be empty")
    if "id" not in fields:
        raise InvalidArgumentError("fields must include 'id'")

    def encode(entity: BaseModel) -> str:
        data = entity.model_dump(mode="json")
        row = [_encode_cell(data[name]) for name in fields]
        buffer = io.StringIO()
        csv.writer(buffer, delimiter=delimiter, lineterminator="").writerow(row)
        return buffer.getvalue()

    def decode(record: str) -> BaseModel:
        row = next(csv.reader([record], delimiter=delimiter))
        if len(row) != len(fields):
            raise ValueError(f"Expected {len(fields)} fields, found {len(row)}")
        data = {name: _decode_cell(cell) for name, cell in zip(fields, row)}
        return model_cls.model_validate(data)

    return Codec(encode, decode)
