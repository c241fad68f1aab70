"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import sqlalchemy as sa

from row_dao.core.config import ConnectionConfig
from row_dao.core.context import ExecutionContext


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:")


@pytest.fixture
def metadata() -> sa.MetaData:
    """Fresh metadata per test, so table definitions never leak between tests."""
    return sa.MetaData()


@pytest.fixture
def article_table(metadata: sa.MetaData) -> sa.Table:
    """Table used by most DAO tests.

    Usage:
        def test_x(article_table, context): ...
    """
    return sa.Table(
        "article",
        metadata,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("user_name", sa.String(50)),
        sa.Column("views", sa.Integer),
        sa.Column("status", sa.String(20)),
    )


@pytest.fixture
def context(sqlite_config: ConnectionConfig, metadata: sa.MetaData, article_table: sa.Table) -> Iterator[ExecutionContext]:
    """Execution context over an in-memory SQLite database with all tables created."""
    ctx = ExecutionContext.from_config(sqlite_config)
    metadata.create_all(ctx.engine)
    yield ctx
    ctx.engine.dispose()
