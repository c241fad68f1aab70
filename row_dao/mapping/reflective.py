"""Reflective row-to-entity mapper.

Best-effort mapping for field-selected queries: each non-null column is
translated to a mutator name (``user_name`` -> ``setUserName``) and applied
to a freshly constructed entity. A bad field never aborts the row, and a
row that cannot be constructed is reported in its MappingResult instead of
raising.

Mutators are looked up in a per-type table built once:

* methods named ``setUserName`` or ``set_user_name``
* every writable attribute (dataclass and Pydantic fields, class
  annotations, properties with a setter), assigned with ``setattr``

Explicit methods win over plain attributes of the same name.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Generic, TypeVar

from row_dao.core.exceptions import EntityConstructionError, FieldMappingError, MappingError

T = TypeVar("T")

Mutator = Callable[[Any, Any], None]


def _pascal(segment: str) -> str:
    if segment.isupper():
        segment = segment.lower()
    return segment[:1].upper() + segment[1:]


def mutator_name(column: str) -> str:
    """Translate a column name into its conventional mutator name."""
    return "set" + "".join(_pascal(part) for part in column.split("_") if part)


def _attribute_mutator(name: str) -> Mutator:
    def mutate(entity: Any, value: Any) -> None:
        setattr(entity, name, value)

    return mutate


def _method_mutator(name: str) -> Mutator:
    def mutate(entity: Any, value: Any) -> None:
        getattr(entity, name)(value)

    return mutate


def _writable_attributes(entity_type: type) -> list[str]:
    names: list[str] = []
    if dataclasses.is_dataclass(entity_type):
        names.extend(f.name for f in dataclasses.fields(entity_type))
    names.extend(getattr(entity_type, "model_fields", {}) or {})
    for klass in reversed(entity_type.__mro__):
        names.extend(inspect.get_annotations(klass))
        names.extend(
            name
            for name, member in vars(klass).items()
            if isinstance(member, property) and member.fset is not None
        )
    return [n for n in dict.fromkeys(names) if not n.startswith("_")]


@lru_cache(maxsize=None)
def mutators_for(entity_type: type) -> Mapping[str, Mutator]:
    """Mutator lookup table for ``entity_type``, keyed by mutator name."""
    table: dict[str, Mutator] = {
        mutator_name(name): _attribute_mutator(name) for name in _writable_attributes(entity_type)
    }
    for name in dir(entity_type):
        if not name.startswith("set") or not callable(getattr(entity_type, name, None)):
            continue
        if name.startswith("set_") and len(name) > 4:
            table[mutator_name(name[4:])] = _method_mutator(name)
        elif name.startswith("set") and name[3:4].isupper():
            table[name] = _method_mutator(name)
    return table


def _new_instance(entity_type: type[T]) -> T:
    construct = getattr(entity_type, "model_construct", None)
    if construct is not None:
        return construct()  # type: ignore[no-any-return]
    return entity_type()


@dataclass
class MappingResult(Generic[T]):
    """Outcome of mapping one row."""

    row: dict[str, Any]
    entity: T | None = None
    errors: list[MappingError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when an entity was constructed (fields may still have failed)."""
        return self.entity is not None

    @classmethod
    def failed(cls, row: dict[str, Any], error: MappingError) -> MappingResult[T]:
        return cls(row=row, entity=None, errors=[error])


class ReflectiveMapper(Generic[T]):
    """Best-effort row mapper driven by mutator names.

    Args:
        target_class: Entity class with a no-argument constructor.
        aliases: Optional column-name to attribute-name mapping.
        logger: Logger for mapping misses; defaults to the module logger.
    """

    def __init__(
        self,
        target_class: type[T],
        aliases: Mapping[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._target_class = target_class
        self._aliases = {k.lower(): v for k, v in (aliases or {}).items()}
        self._log = logger or logging.getLogger(__name__)
        self._mutators = mutators_for(target_class)

    @property
    def target_class(self) -> type[T]:
        return self._target_class

    def mutator_for(self, column: str) -> str:
        """Mutator name a column maps to, after aliases."""
        return mutator_name(self._aliases.get(column.lower(), column))

    def map_result(self, row: dict[str, Any]) -> MappingResult[T]:
        """Map one row, collecting failures instead of raising."""
        class_name = self._target_class.__name__
        try:
            entity = _new_instance(self._target_class)
        except Exception as e:
            error = EntityConstructionError(class_name, str(e))
            self._log.error("%s", error)
            return MappingResult.failed(row, error)

        result: MappingResult[T] = MappingResult(row=row, entity=entity)
        for column, value in row.items():
            if value is None:
                continue
            name = self.mutator_for(column)
            mutate = self._mutators.get(name)
            if mutate is None:
                self._log.debug("%s for entity %s does not exist", name, class_name)
                continue
            try:
                mutate(entity, value)
            except Exception as e:
                error = FieldMappingError(class_name, column, value, f"{name}: {e}")
                self._log.warning("%s", error)
                result.errors.append(error)
        return result

    def map_results(self, rows: list[dict[str, Any]]) -> list[MappingResult[T]]:
        return [self.map_result(row) for row in rows]

    def map_one(self, row: dict[str, Any]) -> T | None:
        """Map one row; None when the entity could not be constructed."""
        return self.map_result(row).entity

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map all rows, dropping those whose entity could not be constructed."""
        return [r.entity for r in self.map_results(rows) if r.entity is not None]
