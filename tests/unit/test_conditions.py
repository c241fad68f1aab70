"""Unit tests for condition composition."""

from __future__ import annotations

import pytest
import sqlalchemy as sa
from sqlalchemy.sql.elements import True_

from row_dao.core.conditions import compose, compose_required, present
from row_dao.core.exceptions import InvalidArgumentError, MissingConditionError

t = sa.table("t", sa.column("a"), sa.column("b"), sa.column("c"))


def _sql(condition: sa.ColumnElement[bool]) -> str:
    return str(condition.compile(compile_kwargs={"literal_binds": True}))


class TestPresent:
    def test_drops_none(self) -> None:
        first = t.c.a == 1
        second = t.c.b == 2
        assert present([None, first, None, second]) == [first, second]

    def test_empty(self) -> None:
        assert present([]) == []
        assert present([None, None]) == []


class TestCompose:
    def test_no_conditions_is_true(self) -> None:
        assert isinstance(compose([]), True_)

    def test_only_absent_conditions_is_true(self) -> None:
        assert isinstance(compose([None, None]), True_)

    def test_single_condition_unchanged(self) -> None:
        condition = t.c.a == 1
        assert compose([condition]) is condition

    def test_conjunction_in_order(self) -> None:
        result = compose([t.c.a == 1, None, t.c.b == 2, t.c.c == 3])
        assert _sql(result) == "t.a = 1 AND t.b = 2 AND t.c = 3"

    def test_accepts_generator(self) -> None:
        result = compose(t.c.a == n for n in (1, 2))
        assert _sql(result) == "t.a = 1 AND t.a = 2"


class TestComposeRequired:
    def test_raises_without_conditions(self) -> None:
        with pytest.raises(MissingConditionError, match="deletion"):
            compose_required([], "deletion")

    def test_raises_when_all_absent(self) -> None:
        with pytest.raises(MissingConditionError):
            compose_required([None], "deletion")

    def test_error_is_invalid_argument(self) -> None:
        with pytest.raises(InvalidArgumentError):
            compose_required([], "deletion")
        with pytest.raises(ValueError):
            compose_required([], "deletion")

    def test_folds_present_conditions(self) -> None:
        result = compose_required([None, t.c.a == 1, t.c.b == 2], "deletion")
        assert _sql(result) == "t.a = 1 AND t.b = 2"
