"""Transaction management.

Provides a context manager for executing several DAO calls atomically.
Auto-commits on success, auto-rolls-back on exception. DAOs take part by
binding to the transaction's context: ``dao.bind(tx.context)``.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from sqlalchemy.engine import Connection, Engine

from row_dao.core.exceptions import TransactionStateError

if TYPE_CHECKING:
    from row_dao.core.context import ExecutionContext


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionManager:
    """Synchronous transaction context manager.

    When ``connection`` is given the transaction is a savepoint on that
    connection, and the connection stays open after exit.
    """

    def __init__(
        self,
        engine: Engine,
        bind: Callable[[Connection, TransactionManager], ExecutionContext],
        connection: Connection | None = None,
    ) -> None:
        self._engine = engine
        self._bind = bind
        self._outer_connection = connection
        self._connection: Connection | None = None
        self._transaction: Any = None
        self._context: ExecutionContext | None = None
        self._state = _TxState.IDLE

    @property
    def state(self) -> str:
        return self._state.value

    @property
    def context(self) -> ExecutionContext:
        """Execution context bound to this transaction's connection."""
        if self._context is None:
            raise TransactionStateError(self._state.value, "use")
        return self._context

    def __enter__(self) -> TransactionManager:
        if self._outer_connection is not None:
            self._connection = self._outer_connection
            self._transaction = self._connection.begin_nested()
        else:
            self._connection = self._engine.connect()
            self._transaction = self._connection.begin()
        self._context = self._bind(self._connection, self)
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    self._transaction.rollback()
                    self._state = _TxState.ROLLED_BACK
                else:
                    self._transaction.commit()
                    self._state = _TxState.COMMITTED
        finally:
            if self._outer_connection is None and self._connection is not None:
                self._connection.close()

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._state == _TxState.IDLE:
            raise TransactionStateError("idle", "commit")
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "commit")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "commit")
        self._transaction.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._state == _TxState.IDLE:
            raise TransactionStateError("idle", "rollback")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        if self._state == _TxState.ACTIVE:
            self._transaction.rollback()
        self._state = _TxState.ROLLED_BACK

    def check_active(self) -> None:
        """Raise unless statements may still run in this transaction."""
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")
