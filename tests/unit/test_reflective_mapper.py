"""Unit tests for ReflectiveMapper."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel

from row_dao.core.exceptions import EntityConstructionError, FieldMappingError
from row_dao.mapping.reflective import MappingResult, ReflectiveMapper, mutator_name, mutators_for


class Account:
    """Entity with explicit camel-case mutators."""

    def __init__(self) -> None:
        self.user_name = "unset"
        self.age = 0

    def setUserName(self, value: str) -> None:
        self.user_name = value

    def setAge(self, value: int) -> None:
        if not isinstance(value, int):
            raise TypeError("age must be an int")
        self.age = value


class Profile:
    """Entity with snake-case mutators and a property setter."""

    def __init__(self) -> None:
        self._email = ""
        self.nick = ""

    @property
    def email(self) -> str:
        return self._email

    @email.setter
    def email(self, value: str) -> None:
        self._email = value.lower()

    def set_nick_name(self, value: str) -> None:
        self.nick = value


@dataclass
class Article:
    id: int | None = None
    title: str | None = None
    user_name: str | None = None


@dataclass(frozen=True)
class Frozen:
    id: int = 0


@dataclass
class NeedsArgs:
    id: int


class Tag(BaseModel):
    id: int
    name: str


class TestMutatorName:
    def test_snake_case(self) -> None:
        assert mutator_name("user_name") == "setUserName"

    def test_single_word(self) -> None:
        assert mutator_name("title") == "setTitle"

    def test_upper_case_column(self) -> None:
        assert mutator_name("USER_NAME") == "setUserName"

    def test_camel_case_column_keeps_humps(self) -> None:
        assert mutator_name("userName") == "setUserName"

    def test_repeated_separators(self) -> None:
        assert mutator_name("user__name_") == "setUserName"


class TestMutatorLookup:
    def test_explicit_methods(self) -> None:
        assert {"setUserName", "setAge"} <= set(mutators_for(Account))

    def test_snake_case_methods_and_properties(self) -> None:
        table = mutators_for(Profile)
        assert "setNickName" in table
        assert "setEmail" in table

    def test_dataclass_fields(self) -> None:
        assert {"setId", "setTitle", "setUserName"} <= set(mutators_for(Article))

    def test_lookup_is_cached(self) -> None:
        assert mutators_for(Article) is mutators_for(Article)


class TestReflectiveMapper:
    def test_maps_column_through_mutator(self) -> None:
        account = ReflectiveMapper(Account).map_one({"user_name": "alice", "age": 30})
        assert account is not None
        assert account.user_name == "alice"
        assert account.age == 30

    def test_null_value_leaves_attribute_untouched(self) -> None:
        account = ReflectiveMapper(Account).map_one({"user_name": None})
        assert account is not None
        assert account.user_name == "unset"

    def test_unknown_column_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="row_dao.mapping.reflective"):
            result = ReflectiveMapper(Account).map_result({"nope": 1, "user_name": "bob"})
        assert result.ok
        assert result.errors == []
        assert result.entity.user_name == "bob"
        assert "setNope" in caplog.text

    def test_field_failure_does_not_stop_row(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="row_dao.mapping.reflective"):
            result = ReflectiveMapper(Account).map_result({"age": "old", "user_name": "carol"})
        assert result.ok
        assert result.entity.user_name == "carol"
        assert result.entity.age == 0
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], FieldMappingError)
        assert result.errors[0].column == "age"
        assert "age must be an int" in caplog.text

    def test_case_insensitive_columns(self) -> None:
        account = ReflectiveMapper(Account).map_one({"USER_NAME": "dave"})
        assert account.user_name == "dave"

    def test_property_and_snake_mutators(self) -> None:
        profile = ReflectiveMapper(Profile).map_one({"email": "A@EX.COM", "nick_name": "z"})
        assert profile.email == "a@ex.com"
        assert profile.nick == "z"

    def test_dataclass_entity(self) -> None:
        article = ReflectiveMapper(Article).map_one({"id": 1, "user_name": "eve", "title": None})
        assert article == Article(id=1, title=None, user_name="eve")

    def test_pydantic_entity_without_defaults(self) -> None:
        tag = ReflectiveMapper(Tag).map_one({"id": 3, "name": "python"})
        assert tag is not None
        assert tag.id == 3
        assert tag.name == "python"

    def test_frozen_entity_records_field_errors(self) -> None:
        result = ReflectiveMapper(Frozen).map_result({"id": 5})
        assert result.ok
        assert result.entity.id == 0
        assert [e.column for e in result.errors] == ["id"]

    def test_construction_failure_is_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="row_dao.mapping.reflective"):
            result = ReflectiveMapper(NeedsArgs).map_result({"id": 1})
        assert not result.ok
        assert result.entity is None
        assert isinstance(result.errors[0], EntityConstructionError)
        assert "NeedsArgs" in caplog.text

    def test_map_one_returns_none_on_construction_failure(self) -> None:
        assert ReflectiveMapper(NeedsArgs).map_one({"id": 1}) is None

    def test_map_many_drops_failed_rows(self) -> None:
        assert ReflectiveMapper(NeedsArgs).map_many([{"id": 1}, {"id": 2}]) == []
        accounts = ReflectiveMapper(Account).map_many([{"user_name": "a"}, {"user_name": "b"}])
        assert [a.user_name for a in accounts] == ["a", "b"]

    def test_aliases(self) -> None:
        mapper = ReflectiveMapper(Article, aliases={"headline": "title"})
        assert mapper.mutator_for("headline") == "setTitle"
        assert mapper.map_one({"headline": "news"}).title == "news"

    def test_injected_logger(self) -> None:
        log = MagicMock(spec=logging.Logger)
        ReflectiveMapper(Account, logger=log).map_result({"nope": 1})
        log.debug.assert_called_once()

    def test_failed_result_factory(self) -> None:
        error = EntityConstructionError("X", "boom")
        result: MappingResult[object] = MappingResult.failed({"a": 1}, error)
        assert result.errors == [error]
        assert not result.ok
