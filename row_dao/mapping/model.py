"""Standard row-to-entity mapper.

Supports dataclasses, Pydantic models, plain classes, and bean-style classes
with a no-argument constructor and ``setX`` mutators. Columns the
constructor does not take are applied through the entity's mutators after
construction; columns with no matching constructor parameter or mutator
are ignored, so ``SELECT *`` rows map cleanly onto entities that only
declare some of the table's columns.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from row_dao.core.exceptions import ColumnMismatchError
from row_dao.mapping.reflective import Mutator, mutator_name, mutators_for

T = TypeVar("T")


def _is_pydantic_model(cls: type) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    from pydantic import BaseModel

    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _accepted_names(cls: type) -> frozenset[str] | None:
    """Keyword names the constructor accepts, or None when it takes **kwargs."""
    if dataclasses.is_dataclass(cls):
        return frozenset(f.name for f in dataclasses.fields(cls) if f.init)
    try:
        params = inspect.signature(cls).parameters.values()
    except (TypeError, ValueError):
        return None
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params):
        return None
    return frozenset(
        p.name
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    )


class ModelMapper(Generic[T]):
    """Row-to-entity mapper used by get/fetch.

    Detection order:
    1. Pydantic BaseModel -> model_validate(row)
    2. dataclass / plain class -> target_class(**accepted columns), then
       remaining columns through ``setX`` mutators or writable attributes

    Args:
        target_class: The class to construct from row data.
        aliases: Optional column-name to field-name mapping.

    Raises:
        ColumnMismatchError: From ``map_one`` when construction fails or a
            mutator rejects a column value.
    """

    def __init__(
        self,
        target_class: type[T],
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._target_class = target_class
        self._aliases = dict(aliases or {})
        self._is_pydantic = _is_pydantic_model(target_class)
        self._accepted = None if self._is_pydantic else _accepted_names(target_class)
        self._mutators: Mapping[str, Mutator] = (
            {} if self._accepted is None else mutators_for(target_class)
        )

    @property
    def target_class(self) -> type[T]:
        return self._target_class

    def _apply_aliases(self, row: dict[str, Any]) -> dict[str, Any]:
        """Apply column aliases to the row."""
        if not self._aliases:
            return row
        return {self._aliases.get(key, key): value for key, value in row.items()}

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row to target_class instance."""
        row = self._apply_aliases(row)
        name = self._target_class.__name__

        if self._is_pydantic:
            try:
                return self._target_class.model_validate(row)  # type: ignore[attr-defined, no-any-return]
            except Exception as e:
                raise ColumnMismatchError(name, [str(e)]) from e

        if self._accepted is None:
            kwargs, rest = row, {}
        else:
            kwargs = {k: v for k, v in row.items() if k in self._accepted}
            rest = {k: v for k, v in row.items() if k not in self._accepted}

        try:
            entity = self._target_class(**kwargs)
        except TypeError as e:
            raise ColumnMismatchError(name, [str(e)]) from e

        failures: list[str] = []
        for attribute, value in rest.items():
            mutate = self._mutators.get(mutator_name(attribute))
            if mutate is None:
                continue
            try:
                mutate(entity, value)
            except Exception as e:
                failures.append(f"{attribute}: {e}")
        if failures:
            raise ColumnMismatchError(name, failures)
        return entity

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map all rows via map_one."""
        return [self.map_one(row) for row in rows]
