"""
Database Session Management

This module owns the async SQLAlchemy engine (the connection pool) and every
way of running statements against it.

Key Concepts:
=============

1. ENGINE: The connection pool
   - Built by connect(), torn down by disconnect()
   - Owned exclusively by the SessionManager; nothing else touches it

2. AMBIENT EXECUTION: execute()
   - Checks out a pooled connection, runs one statement, commits, returns it
   - Consecutive calls may land on different connections

3. DEDICATED CONNECTION: acquire() / transaction()
   - One connection reserved for the duration of an ``async with`` block
   - Statements run in order on that connection
   - Released on every exit path (return, exception, cancellation)

Lifecycle:
==========
    Disconnected ──connect() ok──▶ Connected ──disconnect()──▶ Disconnected
         ▲
         └──────── connect() failed (state unchanged) ─────────────

    connect() on an already connected manager is a no-op.
    connect() / disconnect() are not serialized internally; callers that
    race them must serialize themselves.

Transaction Lifecycle:
======================
    1. Check out a dedicated connection
    2. BEGIN
    3. Yield a ConnectionExecutor to the caller
    4. On success: COMMIT
    5. On exception (including cancellation): ROLLBACK, re-raise the original
    6. Always: invalidate the executor, return the connection to the pool

Usage:
======
    manager = SessionManager()
    await manager.connect(ConnectionConfig(host="localhost", database="app"))

    rows = await manager.execute("SELECT * FROM users WHERE id = $1", [user_id])

    async with manager.transaction() as tx:
        await tx.execute("UPDATE accounts SET balance = balance - $2 WHERE id = $1", [a, 10])
        await tx.execute("UPDATE accounts SET balance = balance + $2 WHERE id = $1", [b, 10])

    await manager.disconnect()
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from pgrepo.config.settings import settings
from pgrepo.core.exceptions import ConnectionError
from pgrepo.core.logging import get_logger
from pgrepo.db.executor import ConnectionExecutor, Row, run_statement, translate_error
from pgrepo.schemas.config import ConnectionConfig

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")

ConfigInput = Union[ConnectionConfig, Mapping[str, Any], None]

# Errors that can surface while opening or checking out a connection
_CONNECT_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class SessionManager:
    """
    Connection pool owner and ambient statement executor.

    Attributes:
        config: The ConnectionConfig of the current pool, None when disconnected

    Example:
        manager = SessionManager()
        await manager.connect(settings.to_connection_config())
        repo = Repository(manager, "users")
    """

    def __init__(self) -> None:
        self._engine: Optional[AsyncEngine] = None
        self.config: Optional[ConnectionConfig] = None

    # ═══════════════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════════

    async def connect(self, config: ConfigInput = None) -> None:
        """
        Build the pool and verify it with a liveness check.

        Args:
            config: ConnectionConfig, a mapping of its fields, or None to load
                from environment settings

        Raises:
            ConnectionError: Bad config, unreachable host, auth failure or
                liveness check failure. The manager stays disconnected.
        """
        if self.is_connected:
            logger.warning("connect() called while already connected; ignoring")
            return

        try:
            resolved = _resolve_config(config)
            url = resolved.resolved_url()
        except (ValueError, SQLAlchemyError) as exc:
            raise ConnectionError(f"Invalid PostgreSQL configuration: {exc}", cause=exc) from exc

        logger.info(
            "Creating database engine",
            host=url.host,
            port=url.port,
            database=url.database,
        )

        engine: Optional[AsyncEngine] = None
        try:
            engine = create_async_engine(url, **resolved.engine_options())
            # Liveness check: fail fast on bad credentials / unreachable host
            async with engine.connect() as conn:
                await conn.exec_driver_sql("SELECT 1")
        except (*_CONNECT_ERRORS, ValueError, TypeError) as exc:
            logger.error("Failed to connect to PostgreSQL", error=str(exc), host=url.host)
            if engine is not None:
                await engine.dispose()
            raise ConnectionError(f"Failed to connect to PostgreSQL: {exc}", cause=exc) from exc

        self._engine = engine
        self.config = resolved
        logger.info("Database connection established", host=url.host, database=url.database)

    async def disconnect(self) -> None:
        """
        Close all pooled connections.

        Safe to call when already disconnected.
        """
        if self._engine is None:
            return

        engine, self._engine = self._engine, None
        self.config = None
        await engine.dispose()
        logger.info("Database connection closed")

    @property
    def is_connected(self) -> bool:
        """True iff a pool exists and has not been disposed."""
        return self._engine is not None

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise ConnectionError("Not connected to PostgreSQL")
        return self._engine

    @asynccontextmanager
    async def _checkout(self) -> AsyncGenerator[AsyncConnection, None]:
        """Check out a pooled connection; only checkout failures become ConnectionError."""
        engine = self._require_engine()
        try:
            conn = await engine.connect()
        except _CONNECT_ERRORS as exc:
            raise translate_error(exc, "Failed to acquire a PostgreSQL connection") from exc
        try:
            yield conn
        finally:
            await conn.close()

    # ═══════════════════════════════════════════════════════════════════════════
    # AMBIENT EXECUTION
    # ═══════════════════════════════════════════════════════════════════════════

    async def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> list[Row]:
        """
        Run one statement on a pooled connection and commit it.

        Args:
            statement: SQL text with $1, $2, ... placeholders
            params: Values bound by position

        Returns:
            Result rows as dicts (empty for statements without rows)

        Raises:
            ConnectionError: Not connected, or no connection could be checked out
            QueryError: The database rejected the statement
        """
        async with self._checkout() as conn:
            rows = await run_statement(conn, statement, params)
            try:
                await conn.commit()
            except _CONNECT_ERRORS as exc:
                raise translate_error(exc, "PostgreSQL commit failed") from exc
            return rows

    # ═══════════════════════════════════════════════════════════════════════════
    # DEDICATED CONNECTIONS
    # ═══════════════════════════════════════════════════════════════════════════

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[ConnectionExecutor, None]:
        """
        Reserve one pooled connection for several ordered statements.

        Each statement commits on its own (autocommit); use transaction()
        for atomicity.

        Yields:
            ConnectionExecutor bound to the reserved connection

        Raises:
            ConnectionError: Not connected, or checkout failed
        """
        async with self._checkout() as conn:
            try:
                await conn.execution_options(isolation_level="AUTOCOMMIT")
            except _CONNECT_ERRORS as exc:
                raise translate_error(exc, "Failed to prepare dedicated connection") from exc
            executor = ConnectionExecutor(conn)
            try:
                yield executor
            finally:
                executor.release()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[ConnectionExecutor, None]:
        """
        Run a block inside BEGIN / COMMIT on a dedicated connection.

        Any exception escaping the block (cancellation included) rolls the
        transaction back and is re-raised unchanged. If the rollback itself
        fails, that failure is logged and attached to the original error as a
        note; it never replaces the original error.

        Yields:
            ConnectionExecutor valid only inside the block

        Raises:
            ConnectionError: Not connected, checkout or BEGIN failed
            QueryError: COMMIT failed
        """
        async with self._checkout() as conn:
            try:
                trans = await conn.begin()
            except _CONNECT_ERRORS as exc:
                raise translate_error(exc, "Failed to begin transaction") from exc

            executor = ConnectionExecutor(conn)
            try:
                yield executor
            except BaseException as exc:
                await _rollback_quietly(trans, exc)
                raise
            else:
                try:
                    await trans.commit()
                except _CONNECT_ERRORS as exc:
                    raise translate_error(exc, "PostgreSQL commit failed") from exc
            finally:
                executor.release()

    async def run_in_transaction(
        self,
        callback: Callable[[ConnectionExecutor], Awaitable[ResultT]],
    ) -> ResultT:
        """
        Await ``callback(executor)`` inside a transaction and return its result.

        Args:
            callback: Coroutine function receiving the transaction executor

        Returns:
            Whatever the callback returned, after COMMIT
        """
        async with self.transaction() as executor:
            return await callback(executor)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════


def _resolve_config(config: ConfigInput) -> ConnectionConfig:
    if config is None:
        return settings.to_connection_config()
    if isinstance(config, ConnectionConfig):
        return config
    return ConnectionConfig.model_validate(dict(config))


async def _rollback_quietly(trans: Any, original: BaseException) -> None:
    """Roll back; report a rollback failure without masking ``original``."""
    try:
        await trans.rollback()
    except Exception as rollback_error:
        logger.error(
            "Transaction rollback failed",
            error=str(rollback_error),
            original_error=repr(original),
        )
        original.add_note(f"Transaction rollback failed: {rollback_error!r}")
    else:
        logger.debug("Transaction rolled back", error=repr(original))
