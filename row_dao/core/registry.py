"""Entity Registry - declared mapping from entity types to tables.

Entities are registered once at startup, either explicitly or with the
``entity`` decorator:

    registry = EntityRegistry()

    @registry.entity(article_table, aliases={"created_at": "created"})
    @dataclass
    class Article: ...

Entities that are not registered can still be resolved through the marker
convention when a Schema is available (see ``row_dao.core.schema``).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeVar

import sqlalchemy as sa

from row_dao.core.exceptions import (
    ConfigurationError,
    DuplicateEntityError,
    TableNotFoundError,
)
from row_dao.core.schema import MARKER_PATTERN, Schema, find_table, primary_key_column

E = TypeVar("E", bound=type)


@dataclass(frozen=True)
class EntityMapping:
    """Resolved table, key column and column aliases for one entity type."""

    entity_type: type
    table: sa.Table
    primary_key: sa.Column
    aliases: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        entity_type: type,
        table: sa.Table,
        aliases: Mapping[str, str] | None = None,
    ) -> EntityMapping:
        aliases = dict(aliases or {})
        unknown = sorted(set(aliases) - set(table.columns.keys()))
        if unknown:
            raise ConfigurationError(
                f"Aliases for {entity_type.__qualname__} name unknown columns of "
                f"'{table.name}': {unknown}"
            )
        return cls(entity_type, table, primary_key_column(table), MappingProxyType(aliases))

    @property
    def column_keys(self) -> list[str]:
        return list(self.table.columns.keys())

    def attribute_for(self, column_key: str) -> str:
        """Entity attribute name holding the value of ``column_key``."""
        return self.aliases.get(column_key, column_key)


class EntityRegistry:
    """Declared entity-type to table registry.

    The registry is meant to be filled once at startup; ``freeze()`` makes it
    read-only for the lifetime of the application.

    Args:
        schema: Optional schema used for marker-convention fallback.

    Raises:
        DuplicateEntityError: If an entity type is registered twice.
    """

    def __init__(self, schema: Schema | None = None, marker_pattern: re.Pattern[str] = MARKER_PATTERN) -> None:
        self._schema = schema
        self._marker_pattern = marker_pattern
        self._mappings: dict[type, EntityMapping] = {}
        self._frozen = False

    def register(
        self,
        entity_type: type,
        table: sa.Table,
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> EntityMapping:
        """Declare the table backing ``entity_type``."""
        if self._frozen:
            raise ConfigurationError("Entity registry is frozen")
        if entity_type in self._mappings:
            raise DuplicateEntityError(entity_type)
        mapping = EntityMapping.build(entity_type, table, aliases)
        self._mappings[entity_type] = mapping
        return mapping

    def entity(
        self,
        table: sa.Table,
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> Callable[[E], E]:
        """Class decorator form of ``register``."""

        def decorator(entity_type: E) -> E:
            self.register(entity_type, table, aliases=aliases)
            return entity_type

        return decorator

    def freeze(self) -> None:
        self._frozen = True

    def get(self, entity_type: type) -> EntityMapping:
        """Look up an explicitly registered entity.

        Raises:
            TableNotFoundError: If the entity was never registered.
        """
        try:
            return self._mappings[entity_type]
        except KeyError:
            raise TableNotFoundError(entity_type) from None

    def has(self, entity_type: type) -> bool:
        """Check if an entity type is registered."""
        return entity_type in self._mappings

    def resolve(self, entity_type: type, schema: Schema | None = None) -> EntityMapping:
        """Resolve the mapping for ``entity_type``.

        Explicit registrations win; otherwise the marker convention is applied
        to ``schema`` (or the registry's own schema).
        """
        if entity_type in self._mappings:
            return self._mappings[entity_type]
        schema = schema if schema is not None else self._schema
        if schema is None:
            raise TableNotFoundError(entity_type)
        table = find_table(entity_type, schema, self._marker_pattern)
        return EntityMapping.build(entity_type, table)

    @property
    def entity_types(self) -> list[type]:
        """Registered entity types, in registration order."""
        return list(self._mappings)

    def __len__(self) -> int:
        """Number of registered entity types."""
        return len(self._mappings)
