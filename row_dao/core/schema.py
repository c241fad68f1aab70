"""Schema description and convention-based table resolution.

A Schema is an ordered collection of tables, each paired with the row type
it produces. An entity finds its table through a capability marker: a base
class named ``I<Name>`` that both the entity and the table's row type
derive from.

    class IArticle: ...
    class ArticleRow(IArticle): ...            # row type of table "article"
    class Article(IArticle): ...               # entity

    schema = Schema.from_metadata(metadata, {"article": ArticleRow})
    find_table(Article, schema)                # -> article table
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

import sqlalchemy as sa

from row_dao.core.exceptions import (
    AmbiguousTableError,
    MarkerNotFoundError,
    PrimaryKeyError,
    TableNotFoundError,
)

logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(r"^I[A-Z]")


@dataclass(frozen=True)
class TableDescriptor:
    """A table together with the row type it produces."""

    table: sa.Table
    row_type: type

    @property
    def name(self) -> str:
        return self.table.name


class Schema:
    """Read-only, ordered collection of table descriptors."""

    def __init__(self, tables: Iterable[TableDescriptor]) -> None:
        self._tables = tuple(tables)

    @classmethod
    def from_metadata(cls, metadata: sa.MetaData, row_types: Mapping[str, type]) -> Schema:
        """Pair tables of ``metadata`` with row types keyed by table name.

        Tables without a row type are left out. Order follows ``row_types``.
        """
        descriptors = []
        for name, row_type in row_types.items():
            table = metadata.tables.get(name)
            if table is None:
                raise TableNotFoundError(row_type)
            descriptors.append(TableDescriptor(table, row_type))
        return cls(descriptors)

    @property
    def tables(self) -> tuple[TableDescriptor, ...]:
        return self._tables

    def __iter__(self) -> Iterator[TableDescriptor]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)


def is_marker(cls: type, pattern: re.Pattern[str] = MARKER_PATTERN) -> bool:
    """Check whether a class name follows the marker naming convention."""
    return pattern.match(cls.__name__) is not None


def find_marker(entity_type: type, pattern: re.Pattern[str] = MARKER_PATTERN) -> type:
    """Return the capability marker nearest to ``entity_type``.

    Declared bases of the entity are checked first, then the declared bases of
    each ancestor in method resolution order.

    Raises:
        MarkerNotFoundError: If no class on the chain declares a marker.
        AmbiguousTableError: If one class declares several markers.
    """
    for klass in entity_type.__mro__:
        if klass is object:
            break
        markers = [base for base in klass.__bases__ if is_marker(base, pattern)]
        if len(markers) > 1:
            raise AmbiguousTableError(entity_type, [m.__qualname__ for m in markers])
        if markers:
            return markers[0]
    raise MarkerNotFoundError(entity_type)


def find_table(entity_type: type, schema: Schema, pattern: re.Pattern[str] = MARKER_PATTERN) -> sa.Table:
    """Resolve the single table whose row type carries the entity's marker.

    Raises:
        MarkerNotFoundError: If the entity has no marker.
        TableNotFoundError: If no table's row type derives from the marker.
        AmbiguousTableError: If more than one table qualifies.
    """
    marker = find_marker(entity_type, pattern)
    matches = [d for d in schema if issubclass(d.row_type, marker)]
    if not matches:
        raise TableNotFoundError(entity_type, marker)
    if len(matches) > 1:
        raise AmbiguousTableError(entity_type, [d.name for d in matches])
    return matches[0].table


def primary_key_column(table: sa.Table) -> sa.Column:
    """Return the column identifying rows of ``table``.

    The first primary key column is used; tables without a primary key fall
    back to the first column of their first unique constraint. Only single
    column keys are supported.

    Raises:
        PrimaryKeyError: If the table declares no usable key.
    """
    columns = list(table.primary_key.columns)
    if not columns:
        uniques = [
            c for c in table.constraints if isinstance(c, sa.UniqueConstraint) and len(c.columns)
        ]
        # constraints are a set; order by declared column position
        positions = {column.key: i for i, column in enumerate(table.columns)}
        uniques.sort(key=lambda c: [positions[col.key] for col in c.columns])
        if uniques:
            columns = list(uniques[0].columns)
    if not columns:
        raise PrimaryKeyError(table.name)
    if len(columns) > 1:
        logger.warning(
            "Table %s has a composite key %s; using %s only",
            table.name,
            [c.name for c in columns],
            columns[0].name,
        )
    return columns[0]
