"""RowDAO exception hierarchy.

All exceptions are RowDAO-specific. SQLAlchemy and driver exceptions are
wrapped before they reach callers.
"""

from __future__ import annotations

from typing import Any


class RowDaoError(Exception):
    """Base exception for all RowDAO errors."""


# --- Configuration ---


class ConfigurationError(RowDaoError):
    """Base for entity/table resolution and connection configuration errors."""


class MarkerNotFoundError(ConfigurationError):
    """Raised when no capability marker exists on an entity's type chain."""

    def __init__(self, entity_type: type) -> None:
        self.entity_type = entity_type
        super().__init__(
            f"Entity class {entity_type.__qualname__} must declare at least one marker base"
        )


class TableNotFoundError(ConfigurationError):
    """Raised when no table's row type matches the resolved marker."""

    def __init__(self, entity_type: type, marker: type | None = None) -> None:
        self.entity_type = entity_type
        self.marker = marker
        detail = f" (marker {marker.__qualname__})" if marker is not None else ""
        super().__init__(f"Can't find a table for entity {entity_type.__qualname__}{detail}")


class AmbiguousTableError(ConfigurationError):
    """Raised when more than one marker or table qualifies for an entity."""

    def __init__(self, entity_type: type, candidates: list[str]) -> None:
        self.entity_type = entity_type
        self.candidates = candidates
        super().__init__(
            f"Ambiguous table resolution for {entity_type.__qualname__}: {candidates}"
        )


class PrimaryKeyError(ConfigurationError):
    """Raised when a table declares neither a primary key nor a unique key."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(f"Table '{table_name}' has no primary or unique key")


class DuplicateEntityError(ConfigurationError):
    """Raised when an entity type is registered twice."""

    def __init__(self, entity_type: type) -> None:
        self.entity_type = entity_type
        super().__init__(f"Entity {entity_type.__qualname__} is already registered")


# --- Arguments ---


class InvalidArgumentError(RowDaoError, ValueError):
    """Raised when an operation is called with unusable arguments."""


class MissingConditionError(InvalidArgumentError):
    """Raised when an operation requiring a predicate receives none."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"At least one condition is needed to perform {operation}")


# --- Execution ---


class ExecutionError(RowDaoError):
    """Base for statement execution errors."""


class MultipleRowsError(ExecutionError):
    """Raised when a single-row fetch encounters more than one row."""

    def __init__(self, label: str, row_count: int) -> None:
        self.label = label
        self.row_count = row_count
        super().__init__(f"fetch_one for '{label}' returned {row_count} rows (expected 0 or 1)")


class StatementError(ExecutionError):
    """Raised when the database rejects a statement."""

    def __init__(self, label: str, detail: str) -> None:
        self.label = label
        super().__init__(f"Statement '{label}' failed: {detail}")


# --- Transaction ---


class TransactionError(RowDaoError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Mapping ---


class MappingError(RowDaoError):
    """Base for mapping errors."""


class ColumnMismatchError(MappingError):
    """Raised when a row cannot be mapped onto the target class."""

    def __init__(self, target_class: str, details: list[str]) -> None:
        self.target_class = target_class
        self.details = details
        super().__init__(f"Cannot map to {target_class}: {details}")


class EntityConstructionError(MappingError):
    """An empty entity instance could not be constructed."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Cannot instantiate {target_class}: {detail}")


class FieldMappingError(MappingError):
    """A single column could not be applied to an entity."""

    def __init__(self, target_class: str, column: str, value: Any, detail: str) -> None:
        self.target_class = target_class
        self.column = column
        self.value = value
        super().__init__(f"class: {target_class} column '{column}' with {value!r} failed: {detail}")
