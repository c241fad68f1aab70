"""Record building and write dispatch.

A Record is a snapshot of one entity's column values plus the set of
"dirty" columns that the next write will include. Columns left out of the
dirty set are untouched server-side, which gives partial updates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any

import sqlalchemy as sa

from row_dao.core.context import ExecutionContext
from row_dao.core.enums import WriteMode
from row_dao.core.registry import EntityMapping

_MISSING = object()

# Bind name for the key in batched UPDATE ... WHERE pk = :_row_dao_key
_KEY_PARAM = "_row_dao_key"


def _read(entity: Any, attribute: str) -> Any:
    if isinstance(entity, Mapping):
        return entity.get(attribute, _MISSING)
    return getattr(entity, attribute, _MISSING)


def _write(entity: Any, attribute: str, value: Any) -> None:
    if isinstance(entity, MutableMapping):
        entity[attribute] = value
    else:
        setattr(entity, attribute, value)


@dataclass
class Record:
    """Column values of one row and the columns flagged for writing."""

    table: sa.Table
    primary_key: str
    values: dict[str, Any] = field(default_factory=dict)
    dirty: set[str] = field(default_factory=set)

    def changed(self, column_key: str, flag: bool = True) -> None:
        """Flag or unflag a column for the next write."""
        if flag:
            if column_key not in self.values:
                raise KeyError(column_key)
            self.dirty.add(column_key)
        else:
            self.dirty.discard(column_key)

    def is_changed(self, column_key: str) -> bool:
        return column_key in self.dirty

    @property
    def key_value(self) -> Any:
        return self.values.get(self.primary_key)

    @property
    def signature(self) -> tuple[str, ...]:
        """Dirty column keys in table order."""
        return tuple(k for k in self.table.columns.keys() if k in self.dirty)

    def dirty_values(self) -> dict[str, Any]:
        """Values of dirty columns in table order."""
        return {k: self.values[k] for k in self.signature}


def build_record(
    entity: Any,
    mapping: EntityMapping,
    *,
    for_update: bool,
    ignore_null: bool = True,
) -> Record:
    """Snapshot ``entity`` into a Record.

    Every column the entity has a value for starts dirty. For updates the
    primary key is never dirty; with ``ignore_null`` no null value is dirty.
    """
    record = Record(mapping.table, mapping.primary_key.key)
    for key in mapping.column_keys:
        value = _read(entity, mapping.attribute_for(key))
        if value is _MISSING:
            continue
        record.values[key] = value
        record.dirty.add(key)

    if for_update:
        record.changed(record.primary_key, False)

    if ignore_null:
        for key, value in record.values.items():
            if value is None:
                record.changed(key, False)
    return record


class BatchExecutor:
    """Runs single-row and batched INSERT/UPDATE statements for one table."""

    def __init__(
        self,
        context: ExecutionContext,
        mapping: EntityMapping,
        logger: logging.Logger | None = None,
    ) -> None:
        self._context = context
        self._mapping = mapping
        self._log = logger or logging.getLogger(__name__)

    @property
    def table(self) -> sa.Table:
        return self._mapping.table

    def records(self, entities: Iterable[Any], for_update: bool, ignore_null: bool) -> list[Record]:
        return [
            build_record(e, self._mapping, for_update=for_update, ignore_null=ignore_null)
            for e in entities
        ]

    def insert(self, entity: Any) -> int:
        """Insert one entity, writing a generated key back onto it."""
        record = build_record(entity, self._mapping, for_update=False, ignore_null=True)
        key = self._context.insert(self.table.insert(), record.dirty_values())
        attribute = self._mapping.attribute_for(record.primary_key)
        if key and key[0] is not None and record.key_value is None:
            try:
                _write(entity, attribute, key[0])
            except (AttributeError, TypeError) as e:
                self._log.debug(
                    "Generated key %r not written back to %s.%s: %s",
                    key[0],
                    type(entity).__name__,
                    attribute,
                    e,
                )
        return 1

    def update(self, entity: Any, ignore_null: bool = True) -> int:
        """Update one entity by primary key. Returns affected row count."""
        record = build_record(entity, self._mapping, for_update=True, ignore_null=ignore_null)
        return self._update_record(record)

    def write_many(self, entities: Iterable[Any], mode: WriteMode, ignore_null: bool = True) -> int:
        """Write several entities.

        Nothing happens for an empty collection. A single entity takes the
        single-row path; more than one is sent as one batch, with rows of
        the same dirty columns sharing one executemany.
        """
        for_update = mode is WriteMode.UPDATE
        records = self.records(entities, for_update, ignore_null)
        if not records:
            return 0

        if len(records) == 1:
            if for_update:
                return self._update_record(records[0])
            return self._context.execute(self.table.insert(), records[0].dirty_values())

        groups: dict[tuple[str, ...], list[Record]] = {}
        for record in records:
            groups.setdefault(record.signature, []).append(record)

        self._log.debug(
            "Batch %s of %d rows into %s (%d statement group(s))",
            mode.value,
            len(records),
            self.table.name,
            len(groups),
        )

        batches: list[tuple[Any, list[dict[str, Any]]]] = []
        for signature, group in groups.items():
            if for_update:
                if not signature:
                    self._log.debug("Skipping %d update(s) with nothing to write", len(group))
                    continue
                statement = self.table.update().where(
                    self._mapping.primary_key == sa.bindparam(_KEY_PARAM)
                )
                batches.append(
                    (statement, [{**r.dirty_values(), _KEY_PARAM: r.key_value} for r in group])
                )
            else:
                batches.append((self.table.insert(), [r.dirty_values() for r in group]))
        if not batches:
            return 0
        return self._context.execute_batch(batches, f"batch {mode.value} {self.table.name}")

    def _update_record(self, record: Record) -> int:
        values = record.dirty_values()
        if not values:
            self._log.debug("Nothing to update in %s for key %r", self.table.name, record.key_value)
            return 0
        statement = (
            self.table.update()
            .where(self._mapping.primary_key == record.key_value)
            .values(values)
        )
        return self._context.execute(statement)
