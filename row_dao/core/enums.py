"""Enumerations shared across the package."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    ORACLE = "oracle"


class WriteMode(Enum):
    """Kind of write a record is built for."""

    INSERT = "insert"
    UPDATE = "update"
