"""Unit tests for the repository factory."""

import pytest

from entity_store.config import RepositorySettings
from entity_store.errors import InvalidArgumentError
from entity_store.repositories.factory import (
    BackendType,
    create_repository,
    create_repository_from_settings,
    parse_backend,
)
from entity_store.repositories.file_repository import (
    DelimitedTextRepository,
    StructuredMarkupRepository,
)
from entity_store.repositories.memory_repository import InMemoryRepository
from tests.conftest import Movie


class TestParseBackend:
    """Selector resolution."""

    @pytest.mark.parametrize(
        "selector, expected",
        [
            ("memory", BackendType.MEMORY),
            ("delimited-text", BackendType.DELIMITED_TEXT),
            ("structured-markup", BackendType.STRUCTURED_MARKUP),
            ("CSV", BackendType.DELIMITED_TEXT),
            (" json ", BackendType.STRUCTURED_MARKUP),
            (BackendType.MEMORY, BackendType.MEMORY),
        ],
    )
    def test_known_selectors(self, selector, expected):
        assert parse_backend(selector) is expected

    @pytest.mark.parametrize("selector", ["xml", "", None, 3])
    def test_unknown_selector_raises(self, selector):
        with pytest.raises(InvalidArgumentError, match="Unknown repository backend"):
            parse_backend(selector)


class TestCreateRepository:
    """Mapping from selector to constructed backend."""

    def test_memory(self):
        repo = create_repository("memory")

        assert isinstance(repo, InMemoryRepository)

    def test_memory_ignores_file_arguments(self, csv_path, csv_codec):
        repo = create_repository(BackendType.MEMORY, file_path=csv_path, encode=csv_codec.encode)

        assert isinstance(repo, InMemoryRepository)
        repo.add(Movie(title="Inception", year=2010))
        assert not csv_path.exists()

    def test_delimited_text(self, csv_path, csv_codec):
        repo = create_repository(
            "delimited-text", file_path=csv_path, encode=csv_codec.encode, decode=csv_codec.decode
        )

        assert isinstance(repo, DelimitedTextRepository)
        assert repo.file_path == csv_path

    def test_structured_markup_alias(self, json_path, movie_json_codec):
        repo = create_repository("json", file_path=json_path, encode=movie_json_codec.encode, decode=movie_json_codec.decode)

        assert isinstance(repo, StructuredMarkupRepository)

    def test_each_call_builds_new_instance(self):
        assert create_repository("memory") is not create_repository("memory")

    def test_file_backend_without_path_raises(self, csv_codec):
        with pytest.raises(InvalidArgumentError, match="requires file_path"):
            create_repository("csv", encode=csv_codec.encode, decode=csv_codec.decode)

    def test_file_backend_without_codec_raises(self, json_path, movie_json_codec):
        with pytest.raises(InvalidArgumentError, match="requires encode and decode"):
            create_repository("structured-markup", file_path=json_path, encode=movie_json_codec.encode)

    def test_unknown_backend_raises(self):
        with pytest.raises(InvalidArgumentError):
            create_repository("sqlite")

    def test_factory_built_repository_persists(self, json_path, movie_json_codec):
        repo = create_repository("structured-markup", file_path=json_path, encode=movie_json_codec.encode, decode=movie_json_codec.decode)
        movie = repo.add(Movie(title="Inception", year=2010))

        reopened = create_repository("structured-markup", file_path=json_path, encode=movie_json_codec.encode, decode=movie_json_codec.decode)

        assert reopened.get_by_id(movie.id).title == "Inception"


class TestCreateFromSettings:
    """Settings-driven construction."""

    def test_default_settings_build_memory(self):
        repo = create_repository_from_settings(RepositorySettings(_env_file=None))

        assert isinstance(repo, InMemoryRepository)

    def test_settings_select_file_backend(self, csv_path, csv_codec):
        settings = RepositorySettings(_env_file=None, backend="csv", file_path=csv_path)

        repo = create_repository_from_settings(settings, encode=csv_codec.encode, decode=csv_codec.decode)

        assert isinstance(repo, DelimitedTextRepository)
        assert repo.file_path == csv_path
