"""Shared test configuration and fixtures for all tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from entity_store.codecs import Codec, delimited_codec, json_codec
from entity_store.repositories.base import Entity, Repository
from entity_store.repositories.file_repository import (
    DelimitedTextRepository,
    StructuredMarkupRepository,
)
from entity_store.repositories.memory_repository import InMemoryRepository


class Movie(Entity):
    """Sample domain record used throughout the tests."""

    title: str
    year: int


MOVIE_FIELDS = ["id", "title", "year"]


@pytest.fixture
def csv_codec() -> Codec:
    return delimited_codec(Movie, MOVIE_FIELDS)


@pytest.fixture
def movie_json_codec() -> Codec:
    return json_codec(Movie)


@pytest.fixture
def csv_path(tmp_path: Path) -> Path:
    return tmp_path / "movies.csv"


@pytest.fixture
def json_path(tmp_path: Path) -> Path:
    return tmp_path / "movies.json"


@pytest.fixture
def make_csv_repo(csv_path: Path, csv_codec: Codec) -> Callable[[], DelimitedTextRepository]:
    """Build (or rebuild from disk) a delimited-text repository at csv_path."""

    def factory() -> DelimitedTextRepository:
        return DelimitedTextRepository(csv_path, *csv_codec)

    return factory


@pytest.fixture
def make_json_repo(
    json_path: Path, movie_json_codec: Codec
) -> Callable[[], StructuredMarkupRepository]:
    """Build (or rebuild from disk) a structured-markup repository at json_path."""

    def factory() -> StructuredMarkupRepository:
        return StructuredMarkupRepository(json_path, *movie_json_codec)

    return factory


@pytest.fixture(params=["memory", "delimited-text", "structured-markup"])
def repository(request, make_csv_repo, make_json_repo) -> Repository:
    """Every backend, for tests of behaviour the contract guarantees."""
    if request.param == "memory":
        return InMemoryRepository()
    if request.param == "delimited-text":
        return make_csv_repo()
    return make_json_repo()
