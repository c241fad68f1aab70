"""Statement execution context.

ExecutionContext runs SQLAlchemy Core statements and materialises results
as plain dicts. Outside a transaction every call gets its own connection
and commits on success; inside ``transaction()`` calls share one connection.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.base import Executable

from row_dao.core.config import ConnectionConfig, create_engine
from row_dao.core.exceptions import MultipleRowsError, StatementError
from row_dao.core.transaction import TransactionManager

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult

O = TypeVar("O")


def _describe(statement: Any) -> str:
    """Short label for a statement, used in error messages."""
    kind = getattr(statement, "__visit_name__", type(statement).__name__).lower()
    table = getattr(statement, "table", None)
    name = getattr(table, "name", None)
    return f"{kind} {name}" if name else kind


def _rows_to_dicts(result: CursorResult[Any]) -> list[dict[str, Any]]:
    """Convert a result to a list of dicts keyed by column name."""
    if not result.returns_rows:
        return []
    return [dict(row) for row in result.mappings()]


class ExecutionContext:
    """Synchronous statement executor shared by DAO instances."""

    def __init__(
        self,
        engine: Engine,
        connection: Connection | None = None,
        transaction: TransactionManager | None = None,
    ) -> None:
        self._engine = engine
        self._connection = connection
        self._transaction = transaction

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> ExecutionContext:
        """Create an ExecutionContext from a ConnectionConfig.

        Args:
            config: ConnectionConfig instance

        Returns:
            ExecutionContext over a freshly created engine
        """
        return cls(create_engine(config))

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def in_transaction(self) -> bool:
        return self._connection is not None

    @contextmanager
    def connect(self, label: str = "<callback>") -> Iterator[Connection]:
        """Yield a connection, wrapping database errors in StatementError."""
        try:
            if self._connection is not None:
                if self._transaction is not None:
                    self._transaction.check_active()
                yield self._connection
            else:
                with self._engine.begin() as conn:
                    yield conn
        except SQLAlchemyError as e:
            raise StatementError(label, str(e)) from e

    def fetch_one(self, statement: Executable) -> dict[str, Any] | None:
        """Fetch a single row.

        Returns None if zero rows match.
        Raises MultipleRowsError if more than one row matches.
        """
        rows = self.fetch_all(statement)
        if len(rows) == 0:
            return None
        if len(rows) > 1:
            raise MultipleRowsError(_describe(statement), len(rows))
        return rows[0]

    def fetch_all(self, statement: Executable) -> list[dict[str, Any]]:
        """Fetch all matching rows."""
        with self.connect(_describe(statement)) as conn:
            return _rows_to_dicts(conn.execute(statement))

    def fetch_scalar(self, statement: Executable) -> Any:
        """Fetch a single scalar value (first column of first row)."""
        with self.connect(_describe(statement)) as conn:
            return conn.execute(statement).scalar()

    def execute(self, statement: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute a write statement. Returns affected row count."""
        with self.connect(_describe(statement)) as conn:
            result = conn.execute(statement, params) if params is not None else conn.execute(statement)
            return int(result.rowcount)

    def execute_batch(
        self,
        batches: Sequence[tuple[Executable, Sequence[dict[str, Any]]]],
        label: str = "batch",
    ) -> int:
        """Execute statement groups in one unit, each as a single executemany.

        Returns the summed affected row count; drivers reporting -1 count as 0.
        """
        total = 0
        with self.connect(label) as conn:
            for statement, params in batches:
                total += max(int(conn.execute(statement, list(params)).rowcount), 0)
        return total

    def insert(self, statement: Executable, params: dict[str, Any]) -> tuple[Any, ...] | None:
        """Execute a single-row INSERT and return the inserted primary key."""
        with self.connect(_describe(statement)) as conn:
            result = conn.execute(statement, params)
            key = result.inserted_primary_key
            return tuple(key) if key is not None else None

    def run(self, callback: Callable[[Connection], O]) -> O:
        """Hand the raw connection to a callback and return its result."""
        with self.connect() as conn:
            return callback(conn)

    def transaction(self) -> TransactionManager:
        """Create a new transaction context manager.

        Usage: ``with context.transaction() as tx: dao.bind(tx.context)...``
        Inside an existing transaction the new one is a savepoint.
        """
        return TransactionManager(
            engine=self._engine,
            bind=lambda conn, tx: ExecutionContext(self._engine, conn, tx),
            connection=self._connection,
        )
