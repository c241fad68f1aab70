"""RowDAO - generic table-backed data access objects over SQLAlchemy Core."""

from __future__ import annotations

from row_dao.core.conditions import compose, compose_required, present
from row_dao.core.config import ConnectionConfig, create_engine
from row_dao.core.context import ExecutionContext
from row_dao.core.enums import DatabaseBackend, WriteMode
from row_dao.core.exceptions import (
    AmbiguousTableError,
    ColumnMismatchError,
    ConfigurationError,
    DuplicateEntityError,
    EntityConstructionError,
    ExecutionError,
    FieldMappingError,
    InvalidArgumentError,
    MappingError,
    MarkerNotFoundError,
    MissingConditionError,
    MultipleRowsError,
    PrimaryKeyError,
    RowDaoError,
    StatementError,
    TableNotFoundError,
    TransactionError,
    TransactionStateError,
)
from row_dao.core.registry import EntityMapping, EntityRegistry
from row_dao.core.schema import Schema, TableDescriptor, find_marker, find_table, primary_key_column
from row_dao.core.transaction import TransactionManager
from row_dao.mapping.model import ModelMapper
from row_dao.mapping.reflective import MappingResult, ReflectiveMapper, mutator_name
from row_dao.repository.base import GenericDao
from row_dao.repository.pagination import PageResult, fetch_page
from row_dao.repository.records import BatchExecutor, Record, build_record

__all__ = [
    # Configuration
    "ConnectionConfig",
    "create_engine",
    # Execution
    "ExecutionContext",
    "TransactionManager",
    # Conditions
    "compose",
    "compose_required",
    "present",
    # Schema and registry
    "Schema",
    "TableDescriptor",
    "EntityRegistry",
    "EntityMapping",
    "find_marker",
    "find_table",
    "primary_key_column",
    # Records
    "Record",
    "build_record",
    "BatchExecutor",
    # Mapping
    "ModelMapper",
    "ReflectiveMapper",
    "MappingResult",
    "mutator_name",
    # DAO
    "GenericDao",
    "PageResult",
    "fetch_page",
    # Enums
    "DatabaseBackend",
    "WriteMode",
    # Exceptions
    "RowDaoError",
    "ConfigurationError",
    "MarkerNotFoundError",
    "TableNotFoundError",
    "AmbiguousTableError",
    "PrimaryKeyError",
    "DuplicateEntityError",
    "InvalidArgumentError",
    "MissingConditionError",
    "ExecutionError",
    "MultipleRowsError",
    "StatementError",
    "TransactionError",
    "TransactionStateError",
    "MappingError",
    "ColumnMismatchError",
    "EntityConstructionError",
    "FieldMappingError",
]
