"""
Base Repository

This module provides a generic repository with CRUD operations over a single
table. Every operation becomes one SQL statement plus a positional parameter
list handed to a StatementExecutor; the repository never touches the pool.

What This Provides:
===================
- find_by_id(id)          → Fetch single record, None if missing
- find_many(options)      → Filter / order / page records
- find_one(options)       → First match of find_many, None if missing
- count(where)            → Count matching records
- exists(id)              → Check if a record exists
- create(data)            → INSERT ... RETURNING *
- update(id, data)        → Partial UPDATE ... RETURNING *, None if missing
- delete(id)              → DELETE, True only if a row was removed
- query(sql, params)      → Raw passthrough
- with_transaction(cb)    → Run cb with a repository bound to one transaction

Generic Type Pattern:
=====================
    class User(BaseModel):
        id: int
        name: str
        email: str
        created_at: datetime

    users = Repository(manager, "users", record_type=User)
    user = await users.find_by_id(1)  # Returns User, not dict

Without ``record_type`` rows come back as plain dicts.

Parameter Numbering:
====================
Values are never interpolated. Each bound value gets the next ``$n`` in one
combined list, whichever clause contributed it:

    find_many(where={"status": "active", "team": 7}, limit=10, offset=20)

    SELECT * FROM users WHERE status = $1 AND team = $2 LIMIT $3 OFFSET $4
    params: ["active", 7, 10, 20]

Trusted Identifiers:
====================
Table and column names (``where`` / ``order_by`` / ``select`` keys, ``data``
keys) are written into SQL as given. Only pass names from a closed set of
known columns.

Transactions:
=============
    async def transfer(repo):
        await repo.update(a, {"balance": 90})
        await repo.update(b, {"balance": 110})

    await accounts.with_transaction(transfer)

The callback gets a copy of the repository routed through the transaction's
connection. The copy stops working once the transaction commits or rolls back.
"""

import copy
from typing import Any, Awaitable, Callable, Generic, Mapping, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, ValidationError

from pgrepo.core.exceptions import ConnectionError, QueryError
from pgrepo.core.logging import get_logger
from pgrepo.db.executor import Row, StatementExecutor, TransactionalExecutor
from pgrepo.schemas.query import QueryOptions

logger = get_logger(__name__)

RecordT = TypeVar("RecordT")
ResultT = TypeVar("ResultT")
RepoT = TypeVar("RepoT", bound="Repository[Any]")

OptionsInput = Union[QueryOptions, Mapping[str, Any], None]


def build_where(where: Mapping[str, Any], params: list[Any]) -> str:
    """
    Build an AND of equality comparisons, appending values to ``params``.

    ``None`` values render ``IS NULL`` and bind nothing.

    Returns:
        " WHERE ..." or "" when there is nothing to filter on
    """
    conditions = []
    for field, value in where.items():
        if value is None:
            conditions.append(f"{field} IS NULL")
        else:
            params.append(value)
            conditions.append(f"{field} = ${len(params)}")
    if not conditions:
        return ""
    return " WHERE " + " AND ".join(conditions)


def _as_values(data: Any) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class Repository(Generic[RecordT]):
    """
    Generic repository providing CRUD operations on one table.

    Type Parameter:
        RecordT: The record shape rows are converted into

    Attributes:
        executor: Where statements go (SessionManager or ConnectionExecutor)
        table_name: Trusted table identifier, may be schema-qualified
        record_type: Callable building a record from a row's columns
        id_column: Identity column name

    Example:
        class UserRepository(Repository[User]):
            def __init__(self, executor: StatementExecutor) -> None:
                super().__init__(executor, "users", record_type=User)

            async def get_by_email(self, email: str) -> Optional[User]:
                return await self.find_one({"where": {"email": email}})
    """

    def __init__(
        self,
        executor: StatementExecutor,
        table_name: str,
        record_type: Optional[Callable[..., RecordT]] = None,
        id_column: str = "id",
    ) -> None:
        self.executor = executor
        self.table_name = table_name
        self.record_type = record_type
        self.id_column = id_column

    def _to_record(self, row: Row) -> RecordT:
        if self.record_type is None:
            return row  # type: ignore[return-value]
        return self.record_type(**row)

    def _first(self, rows: list[Row]) -> Optional[RecordT]:
        return self._to_record(rows[0]) if rows else None

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def find_by_id(self, record_id: Any) -> Optional[RecordT]:
        """
        Get a single record by identity.

        Returns:
            The record if found, None otherwise

        SQL Generated:
            SELECT * FROM users WHERE id = $1
        """
        rows = await self.executor.execute(
            f"SELECT * FROM {self.table_name} WHERE {self.id_column} = $1",
            [record_id],
        )
        return self._first(rows)

    async def find_many(self, options: OptionsInput = None, **kwargs: Any) -> list[RecordT]:
        """
        List records matching a query descriptor.

        Args:
            options: QueryOptions or a mapping of its fields
            **kwargs: QueryOptions fields, merged over ``options``

        Returns:
            Matching records, in ORDER BY order when one is given

        Raises:
            QueryError: Invalid descriptor (unknown sort direction,
                non-positive limit, negative offset) or rejected statement

        Example:
            await repo.find_many(where={"name": "User 2"})
            await repo.find_many(order_by={"name": "desc"}, limit=2, offset=1)
        """
        opts = self._coerce_options(options, kwargs)
        sql, params = self._build_select(opts)
        rows = await self.executor.execute(sql, params)
        return [self._to_record(row) for row in rows]

    async def find_one(self, options: OptionsInput = None, **kwargs: Any) -> Optional[RecordT]:
        """First record matching ``options``, or None."""
        opts = self._coerce_options(options, kwargs)
        sql, params = self._build_select(opts.model_copy(update={"limit": 1}))
        rows = await self.executor.execute(sql, params)
        return self._first(rows)

    async def count(self, where: Optional[Mapping[str, Any]] = None) -> int:
        """
        Count records with optional equality filtering.

        SQL Generated:
            SELECT COUNT(*) AS count FROM users WHERE status = $1
        """
        params: list[Any] = []
        sql = f"SELECT COUNT(*) AS count FROM {self.table_name}" + build_where(where or {}, params)
        rows = await self.executor.execute(sql, params)
        return int(rows[0]["count"]) if rows else 0

    async def exists(self, record_id: Any) -> bool:
        rows = await self.executor.execute(
            f"SELECT 1 AS found FROM {self.table_name} WHERE {self.id_column} = $1 LIMIT 1",
            [record_id],
        )
        return bool(rows)

    def _coerce_options(self, options: OptionsInput, overrides: Mapping[str, Any]) -> QueryOptions:
        if isinstance(options, QueryOptions) and not overrides:
            return options
        if isinstance(options, QueryOptions):
            raw: dict[str, Any] = options.model_dump(exclude_unset=True)
        else:
            raw = dict(options or {})
        raw.update(overrides)
        try:
            return QueryOptions.model_validate(raw)
        except ValidationError as exc:
            raise QueryError(f"Invalid query options for {self.table_name}: {exc}", cause=exc) from exc

    def _build_select(self, opts: QueryOptions) -> tuple[str, list[Any]]:
        columns = ", ".join(opts.select) if opts.select else "*"
        params: list[Any] = []
        sql = f"SELECT {columns} FROM {self.table_name}" + build_where(opts.where, params)

        if opts.order_by:
            order = ", ".join(f"{field} {direction.sql}" for field, direction in opts.order_by.items())
            sql += f" ORDER BY {order}"

        if opts.limit is not None:
            params.append(opts.limit)
            sql += f" LIMIT ${len(params)}"

        if opts.offset is not None:
            params.append(opts.offset)
            sql += f" OFFSET ${len(params)}"

        return sql, params

    # ═══════════════════════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(self, data: Union[Mapping[str, Any], BaseModel]) -> RecordT:
        """
        Insert a record and return it with all server-generated values.

        Args:
            data: Column values (identity usually omitted)

        Returns:
            The created record, including id / defaults / timestamps

        Raises:
            QueryError: Constraint violation or bad column

        SQL Generated:
            INSERT INTO users (name, email) VALUES ($1, $2) RETURNING *
        """
        values = _as_values(data)
        if values:
            columns = ", ".join(values)
            placeholders = ", ".join(f"${i}" for i in range(1, len(values) + 1))
            sql = f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders}) RETURNING *"
        else:
            sql = f"INSERT INTO {self.table_name} DEFAULT VALUES RETURNING *"

        rows = await self.executor.execute(sql, list(values.values()))
        if not rows:
            raise QueryError(f"INSERT into {self.table_name} returned no row")
        return self._to_record(rows[0])

    async def update(
        self,
        record_id: Any,
        data: Union[Mapping[str, Any], BaseModel],
    ) -> Optional[RecordT]:
        """
        Update only the supplied columns of one record.

        Omitted columns keep their values. Identity is bound as $1, the new
        values follow.

        Returns:
            The updated record, or None if no row has this id

        SQL Generated:
            UPDATE users SET name = $2 WHERE id = $1 RETURNING *
        """
        values = _as_values(data)
        if not values:
            return await self.find_by_id(record_id)

        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(values, start=2))
        rows = await self.executor.execute(
            f"UPDATE {self.table_name} SET {assignments} WHERE {self.id_column} = $1 RETURNING *",
            [record_id, *values.values()],
        )
        return self._first(rows)

    async def delete(self, record_id: Any) -> bool:
        """
        Delete a record by identity.

        Returns:
            True if a row was removed, False if none matched

        SQL Generated:
            DELETE FROM users WHERE id = $1 RETURNING id
        """
        rows = await self.executor.execute(
            f"DELETE FROM {self.table_name} WHERE {self.id_column} = $1 RETURNING {self.id_column}",
            [record_id],
        )
        return len(rows) > 0

    # ═══════════════════════════════════════════════════════════════════════════
    # RAW QUERIES & TRANSACTIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def query(self, statement: str, params: Optional[Sequence[Any]] = None) -> list[Row]:
        """
        Run arbitrary SQL through this repository's executor.

        The caller owns parameter safety. Rows are returned as dicts, not
        converted to ``record_type``.
        """
        return await self.executor.execute(statement, params)

    def bind(self: RepoT, executor: StatementExecutor) -> RepoT:
        """Copy of this repository whose statements go to ``executor``."""
        bound = copy.copy(self)
        bound.executor = executor
        return bound

    async def with_transaction(self: RepoT, callback: Callable[[RepoT], Awaitable[ResultT]]) -> ResultT:
        """
        Run ``callback`` with a repository bound to a single transaction.

        Commits when the callback returns, rolls back and re-raises when it
        raises. The repository passed to the callback is unusable afterwards.

        Raises:
            ConnectionError: Executor cannot open transactions (e.g. already
                inside one) or the manager is not connected
        """
        executor = self.executor
        if not isinstance(executor, TransactionalExecutor):
            raise ConnectionError(
                f"{type(executor).__name__} cannot open a transaction; nested transactions are not supported"
            )

        async def run(scoped_executor: StatementExecutor) -> ResultT:
            return await callback(self.bind(scoped_executor))

        logger.debug("Starting repository transaction", table=self.table_name)
        return await executor.run_in_transaction(run)
