"""Generic DAO.

GenericDao gives any entity type uniform CRUD, batch, conditional and
paginated operations over the table it resolves to at construction.

    dao = GenericDao(Article, context, registry=registry)
    dao.insert(Article(title="Hello"))
    dao.fetch(article.c.status == "published", order_by=[article.c.id.desc()])
    dao.fetch_page(PageResult(start=20, page_size=10))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Sequence
from typing import Any, Generic, TypeVar

import sqlalchemy as sa
from sqlalchemy.engine import Connection
from sqlalchemy.sql.elements import ColumnElement

from row_dao.core.conditions import Condition, compose, compose_required, present
from row_dao.core.context import ExecutionContext
from row_dao.core.enums import WriteMode
from row_dao.core.exceptions import ConfigurationError
from row_dao.core.registry import EntityMapping, EntityRegistry
from row_dao.core.schema import Schema
from row_dao.mapping.model import ModelMapper
from row_dao.mapping.protocol import Mapper, ResultMapper
from row_dao.mapping.reflective import ReflectiveMapper
from row_dao.repository.pagination import PageResult, QueryShape, fetch_page
from row_dao.repository.records import BatchExecutor

T = TypeVar("T")
ID = TypeVar("ID")
O = TypeVar("O")

SortSpec = Sequence[ColumnElement[Any]]


def _filtered(query: sa.Select[Any], conditions: Sequence[Condition]) -> sa.Select[Any]:
    # no WHERE clause when nothing restricts the query
    return query.where(compose(conditions)) if conditions else query


class GenericDao(Generic[T, ID]):
    """Table-backed data access object for one entity type.

    The table and primary key are resolved once, from an explicit
    registration when ``registry`` has one, otherwise from the entity's
    capability marker over ``schema``.

    Args:
        entity_type: Entity class handled by this DAO.
        context: Shared execution context.
        schema: Schema for marker-convention resolution.
        registry: Registry holding explicit entity registrations.
        logger: Logger for dispatch and mapping messages.

    Raises:
        ConfigurationError: If no table can be resolved for ``entity_type``.
    """

    def __init__(
        self,
        entity_type: type[T],
        context: ExecutionContext,
        *,
        schema: Schema | None = None,
        registry: EntityRegistry | None = None,
        logger: logging.Logger | None = None,
        mapping: EntityMapping | None = None,
    ) -> None:
        if mapping is None:
            if registry is None and schema is None:
                raise ConfigurationError(
                    f"GenericDao for {entity_type.__qualname__} needs a registry or a schema"
                )
            mapping = (registry or EntityRegistry()).resolve(entity_type, schema)
        self.entity_type = entity_type
        self.context = context
        self.mapping = mapping
        self.log = logger or logging.getLogger(__name__)
        self.mapper: Mapper[T] = ModelMapper(entity_type, aliases=self._result_aliases())
        self.page_mapper: ReflectiveMapper[T] = ReflectiveMapper(
            entity_type, aliases=self._result_aliases(), logger=self.log
        )
        self._writer = BatchExecutor(context, mapping, logger=self.log)
        self.log.debug(
            "Resolved %s to table %s (key %s)",
            entity_type.__qualname__,
            self.table.name,
            self.primary_key.name,
        )

    def _result_aliases(self) -> dict[str, str]:
        # result rows are keyed by column name, aliases by column key
        return {self.table.c[key].name: attr for key, attr in self.mapping.aliases.items()}

    @property
    def table(self) -> sa.Table:
        return self.mapping.table

    @property
    def primary_key(self) -> sa.Column:
        return self.mapping.primary_key

    def bind(self, context: ExecutionContext) -> GenericDao[T, ID]:
        """Same entity and table over another context, e.g. a transaction."""
        return type(self)(self.entity_type, context, logger=self.log, mapping=self.mapping)

    # --- Writes ---

    def insert(self, entity: T) -> T:
        """Insert one entity; null attributes are left to column defaults."""
        self._writer.insert(entity)
        return entity

    def insert_many(self, entities: Collection[T]) -> None:
        self._writer.write_many(entities, WriteMode.INSERT, ignore_null=True)

    def update(self, entity: T, ignore_null: bool = True) -> T:
        """Update one entity by primary key.

        With ``ignore_null`` the stored value of every null attribute is kept;
        otherwise null attributes overwrite stored values.
        """
        self._writer.update(entity, ignore_null=ignore_null)
        return entity

    def update_many(self, entities: Collection[T], ignore_null: bool = True) -> None:
        self._writer.write_many(entities, WriteMode.UPDATE, ignore_null=ignore_null)

    # --- Deletes ---

    def delete_by_id(self, id: ID) -> int:
        return self.context.execute(sa.delete(self.table).where(self.primary_key == id))

    def delete_by_ids(self, ids: Collection[ID]) -> int:
        if not ids:
            return 0
        return self.context.execute(sa.delete(self.table).where(self.primary_key.in_(list(ids))))

    def delete(self, *conditions: Condition) -> int:
        """Delete matching rows. At least one condition is required.

        Raises:
            MissingConditionError: If no condition is given.
        """
        condition = compose_required(conditions, "deletion")
        return self.context.execute(sa.delete(self.table).where(condition))

    def delete_with_optional(self, conditions: Iterable[Condition | None]) -> int:
        return self.delete(*present(conditions))

    # --- Reads ---

    def get(self, id: ID) -> T | None:
        row = self.context.fetch_one(sa.select(self.table).where(self.primary_key == id))
        return None if row is None else self.mapper.map_one(row)

    get_optional = get

    def get_many(self, ids: Collection[ID]) -> list[T]:
        if not ids:
            return []
        rows = self.context.fetch_all(sa.select(self.table).where(self.primary_key.in_(list(ids))))
        return self.mapper.map_many(rows)

    def count(self, *conditions: Condition) -> int:
        """Count rows matching all conditions; no condition counts the table."""
        query = _filtered(sa.select(sa.func.count()).select_from(self.table), conditions)
        return int(self.context.fetch_scalar(query) or 0)

    def count_with_optional(self, conditions: Iterable[Condition | None]) -> int:
        return self.count(*present(conditions))

    def fetch(self, *conditions: Condition, order_by: SortSpec = ()) -> list[T]:
        """Fetch rows matching all conditions; no condition fetches the table."""
        query = _filtered(sa.select(self.table), conditions).order_by(*order_by)
        return self.mapper.map_many(self.context.fetch_all(query))

    def fetch_with_optional(
        self,
        conditions: Iterable[Condition | None],
        order_by: SortSpec = (),
    ) -> list[T]:
        return self.fetch(*present(conditions), order_by=order_by)

    def fetch_one(self, *conditions: Condition) -> T | None:
        """First entity matching all conditions, or None."""
        items = self.fetch(*conditions)
        return items[0] if items else None

    def fetch_one_with_optional(self, conditions: Iterable[Condition | None]) -> T | None:
        return self.fetch_one(*present(conditions))

    # --- Pages ---

    def fetch_page(
        self,
        page: PageResult[T],
        *conditions: Condition,
        order_by: SortSpec = (),
    ) -> PageResult[T]:
        """Fill ``page`` with matching rows; sorting applies to the window only."""
        def shape(_: ExecutionContext) -> sa.Select[Any]:
            return _filtered(sa.select(*self.table.columns), conditions).order_by(*order_by)

        return self.fetch_page_query(page, shape)

    def fetch_page_with_optional(
        self,
        page: PageResult[T],
        conditions: Iterable[Condition | None],
        order_by: SortSpec = (),
    ) -> PageResult[T]:
        return self.fetch_page(page, *present(conditions), order_by=order_by)

    def fetch_page_query(
        self,
        page: PageResult[T],
        query_shape: QueryShape,
        mapper: Mapper[T] | ResultMapper[T] | None = None,
    ) -> PageResult[T]:
        """Fill ``page`` from a caller-built query shape.

        Rows are mapped reflectively unless another mapper is given, so
        field-selected queries need not return every entity column.
        """
        return fetch_page(self.context, page, query_shape, mapper or self.page_mapper)

    # --- Escape hatch ---

    def execute(self, callback: Callable[[Connection], O]) -> O:
        """Run a callback against the underlying connection."""
        return self.context.run(callback)
