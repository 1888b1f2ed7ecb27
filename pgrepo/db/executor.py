"""
Statement Executors

A statement executor is anything that can run one SQL statement with
positional parameters and hand back the rows:

    async def execute(statement: str, params: Sequence[Any] | None) -> list[dict]

Repositories only ever talk to an executor. Two implementations exist:

┌─────────────────────────────────────────────────────────────────────────────┐
│                                                                             │
│   SessionManager          ← ambient: each call checks out a pooled          │
│                             connection, runs, commits, returns it           │
│                                                                             │
│   ConnectionExecutor      ← dedicated: every call runs on one reserved      │
│                             connection (inside acquire() / transaction())   │
│                             and stops working once that connection is       │
│                             released                                        │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘

Statements use PostgreSQL's native ``$1, $2, ...`` placeholders and are sent
to asyncpg as-is through ``exec_driver_sql``; there is no bind-name rewriting.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncConnection

from pgrepo.core.exceptions import ConnectionError, PgRepoException, QueryError
from pgrepo.core.logging import get_logger

logger = get_logger(__name__)

Row = dict[str, Any]
ResultT = TypeVar("ResultT")


@runtime_checkable
class StatementExecutor(Protocol):
    """Runs one statement and returns its rows."""

    async def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> list[Row]:
        ...


@runtime_checkable
class TransactionalExecutor(StatementExecutor, Protocol):
    """An executor that can also open a transaction on a dedicated connection."""

    async def run_in_transaction(
        self,
        callback: Callable[["ConnectionExecutor"], Awaitable[ResultT]],
    ) -> ResultT:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR TRANSLATION
# ═══════════════════════════════════════════════════════════════════════════════


def translate_error(exc: BaseException, message: str) -> PgRepoException:
    """
    Map a driver / pool failure to ConnectionError or QueryError.

    Connection-level: pool checkout timeout, network errors, and driver
    errors that invalidated the connection. Everything else the database
    raised while running a statement is a QueryError.
    """
    if isinstance(exc, PgRepoException):
        return exc
    if isinstance(exc, PoolTimeoutError):
        return ConnectionError(f"{message}: connection pool timed out", cause=exc)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return ConnectionError(f"{message}: {exc.orig or exc}", cause=exc)
    if isinstance(exc, (OSError, asyncio.TimeoutError)):
        return ConnectionError(f"{message}: {exc}", cause=exc)
    if isinstance(exc, DBAPIError):
        return QueryError(f"{message}: {exc.orig or exc}", cause=exc)
    return QueryError(f"{message}: {exc}", cause=exc)


async def run_statement(
    connection: AsyncConnection,
    statement: str,
    params: Optional[Sequence[Any]] = None,
) -> list[Row]:
    """
    Run a $n-parameterized statement on a connection and collect its rows.

    Args:
        connection: Checked-out SQLAlchemy async connection
        statement: SQL text with $1, $2, ... placeholders
        params: Values bound by position

    Returns:
        Rows as dicts; an empty list for statements that return no rows

    Raises:
        QueryError: The database rejected the statement
        ConnectionError: The connection broke while running it
    """
    bound = tuple(params) if params else None
    try:
        result = await connection.exec_driver_sql(statement, bound)
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings().all()]
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
        logger.debug("Statement failed", sql=statement, error=str(exc))
        error = translate_error(exc, "PostgreSQL query failed")
        raise error from exc


# ═══════════════════════════════════════════════════════════════════════════════
# DEDICATED CONNECTION EXECUTOR
# ═══════════════════════════════════════════════════════════════════════════════


class ConnectionExecutor:
    """
    Executor bound to a single reserved connection.

    Handed out by SessionManager.acquire() and SessionManager.transaction().
    Statements run strictly in submission order. Once the owning context
    exits the executor is released and refuses further statements.
    """

    def __init__(self, connection: AsyncConnection) -> None:
        self._connection: Optional[AsyncConnection] = connection

    @property
    def is_active(self) -> bool:
        """True until the underlying connection is released."""
        return self._connection is not None

    @property
    def connection(self) -> AsyncConnection:
        if self._connection is None:
            raise ConnectionError("Dedicated connection has already been released")
        return self._connection

    async def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> list[Row]:
        """Run a statement on the reserved connection."""
        return await run_statement(self.connection, statement, params)

    def release(self) -> None:
        """Detach from the connection. Called by the owner on exit."""
        self._connection = None
