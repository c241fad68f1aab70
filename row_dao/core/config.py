"""Connection configuration.

ConnectionConfig is a Pydantic model for type-safe connection config.
create_engine turns it into a SQLAlchemy engine, which is the execution
collaborator every DAO runs against.
"""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from pydantic import BaseModel
from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import StaticPool

from row_dao.core.enums import DatabaseBackend
from row_dao.core.exceptions import ConfigurationError


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800
    echo: bool = False
    extra: dict[str, Any] = {}

    @property
    def backend(self) -> DatabaseBackend:
        try:
            return DatabaseBackend(self.driver.lower())
        except ValueError:
            raise ConfigurationError(f"Unsupported database driver: {self.driver}") from None

    @property
    def is_memory(self) -> bool:
        return self.backend is DatabaseBackend.SQLITE and self.database in ("", ":memory:")

    def url(self) -> URL:
        """Build the SQLAlchemy URL for this configuration."""
        return URL.create(
            _DRIVER_MAP[self.backend],
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=None if self.is_memory else self.database,
        )


# Backend -> SQLAlchemy dialect+driver name
_DRIVER_MAP: dict[DatabaseBackend, str] = {
    DatabaseBackend.SQLITE: "sqlite+pysqlite",
    DatabaseBackend.POSTGRESQL: "postgresql+psycopg",
    DatabaseBackend.MYSQL: "mysql+mysqlconnector",
    DatabaseBackend.ORACLE: "oracle+oracledb",
}


def create_engine(config: ConnectionConfig) -> Engine:
    """Create a SQLAlchemy engine from a ConnectionConfig.

    In-memory SQLite shares one connection across the whole engine so that
    every statement sees the same database.
    """
    kwargs: dict[str, Any] = {"echo": config.echo}
    connect_args = dict(config.extra)

    if config.is_memory:
        connect_args.setdefault("check_same_thread", False)
        kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=config.pool_size,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
        )

    if connect_args:
        kwargs["connect_args"] = connect_args
    return sa.create_engine(config.url(), **kwargs)
