"""
Shared test doubles.

FakeEngine / FakeConnection / FakeTransaction stand in for SQLAlchemy's
AsyncEngine / AsyncConnection / AsyncTransaction so SessionManager can be
exercised without a server. RecordingExecutor captures the SQL a Repository
builds.
"""

from typing import Any, Optional, Sequence


class FakeResult:
    def __init__(self, rows: Optional[list[dict[str, Any]]]) -> None:
        self._rows = rows

    @property
    def returns_rows(self) -> bool:
        return self._rows is not None

    def mappings(self) -> "FakeResult":
        return self

    def all(self) -> list[dict[str, Any]]:
        return list(self._rows or [])


class FakeTransaction:
    def __init__(self, connection: "FakeConnection") -> None:
        self.connection = connection

    async def commit(self) -> None:
        self.connection.events.append("COMMIT")

    async def rollback(self) -> None:
        self.connection.events.append("ROLLBACK")
        if self.connection.rollback_error is not None:
            raise self.connection.rollback_error


class FakeConnection:
    """Records every call; ``results`` are handed out in order per statement."""

    def __init__(self, results: Optional[list[Any]] = None) -> None:
        self.events: list[str] = []
        self.statements: list[tuple[str, Optional[tuple]]] = []
        self.results = list(results or [])
        self.rollback_error: Optional[BaseException] = None
        self.closed = False
        self.options: dict[str, Any] = {}

    async def exec_driver_sql(self, statement: str, params: Optional[tuple] = None) -> FakeResult:
        self.statements.append((statement, params))
        self.events.append(statement)
        outcome = self.results.pop(0) if self.results else None
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResult(outcome)

    async def begin(self) -> FakeTransaction:
        self.events.append("BEGIN")
        return FakeTransaction(self)

    async def commit(self) -> None:
        self.events.append("COMMIT")

    async def execution_options(self, **options: Any) -> "FakeConnection":
        self.options.update(options)
        return self

    async def close(self) -> None:
        self.closed = True
        self.events.append("CLOSE")


class FakeConnect:
    """Mimics AsyncEngine.connect(): awaitable and an async context manager."""

    def __init__(self, engine: "FakeEngine") -> None:
        self.engine = engine

    async def _start(self) -> FakeConnection:
        if self.engine.connect_error is not None:
            raise self.engine.connect_error
        conn = FakeConnection(self.engine.results)
        self.engine.connections.append(conn)
        return conn

    def __await__(self):
        return self._start().__await__()

    async def __aenter__(self) -> FakeConnection:
        self.conn = await self._start()
        return self.conn

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.conn.close()


class FakeEngine:
    def __init__(self, connect_error: Optional[BaseException] = None) -> None:
        self.connect_error = connect_error
        self.connections: list[FakeConnection] = []
        self.results: list[Any] = []
        self.disposed = False

    def connect(self) -> FakeConnect:
        return FakeConnect(self)

    async def dispose(self) -> None:
        self.disposed = True

    @property
    def last_connection(self) -> FakeConnection:
        return self.connections[-1]


class RecordingExecutor:
    """Captures (sql, params) and returns queued row lists."""

    def __init__(self, *responses: list[dict[str, Any]]) -> None:
        self.calls: list[tuple[str, list[Any]]] = []
        self.responses = list(responses)

    async def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> list[dict[str, Any]]:
        self.calls.append((statement, list(params or [])))
        return self.responses.pop(0) if self.responses else []

    @property
    def last(self) -> tuple[str, list[Any]]:
        return self.calls[-1]
