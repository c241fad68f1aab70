"""Condition composition.

Conditions are SQLAlchemy boolean expressions. An optional condition is one
that may be ``None``; absent conditions are dropped before composition.
Composition is purely conjunctive.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import reduce

from sqlalchemy import and_, true
from sqlalchemy.sql.elements import ColumnElement

from row_dao.core.exceptions import MissingConditionError

Condition = ColumnElement[bool]


def present(conditions: Iterable[Condition | None]) -> list[Condition]:
    """Drop absent (``None``) conditions, preserving order."""
    return [c for c in conditions if c is not None]


def _fold(conditions: Iterable[Condition | None]) -> Condition | None:
    items = present(conditions)
    if not items:
        return None
    return reduce(lambda acc, item: and_(acc, item), items)


def compose(conditions: Iterable[Condition | None]) -> Condition:
    """AND together all present conditions.

    With no present conditions the result is always true, so the caller's
    statement applies to the whole table.
    """
    folded = _fold(conditions)
    return true() if folded is None else folded


def compose_required(conditions: Iterable[Condition | None], operation: str) -> Condition:
    """AND together all present conditions, requiring at least one.

    Raises:
        MissingConditionError: If no condition is present.
    """
    folded = _fold(conditions)
    if folded is None:
        raise MissingConditionError(operation)
    return folded
