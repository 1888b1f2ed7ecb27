"""
Connection Config Schema

Describes how to reach the database and how to size the pool.

Precedence:
===========
When ``connection_string`` is set it is parsed first; the individual fields
(host, port, database, username, password, ssl) only fill the parts the
string leaves unset.

    ConnectionConfig(
        connection_string="postgresql://app@db.internal/app",
        password="secret",          # used: the string has no password
        host="ignored.example.com", # ignored: the string names a host
    )

The driver is always asyncpg, whatever scheme the string uses
(``postgres://``, ``postgresql://``, ``postgresql+psycopg://`` ...).

Field names also accept the camelCase spelling (``connectionString``,
``poolSize``, ``idleTimeoutMillis``, ``connectionTimeoutMillis``) and
``user`` for ``username``.

Pool Sizing:
============
``pool_size`` caps the pool. With ``max_overflow`` unset no overflow
connections are allowed, so ``poolSize=5`` means at most 5 connections.
Setting ``max_overflow`` explicitly allows that many extra connections.

``idle_timeout_millis`` becomes SQLAlchemy's ``pool_recycle``: a connection
older than this is replaced on its next checkout. It is a maximum connection
age, not idle eviction; the pool never closes connections for sitting idle.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from sqlalchemy.engine import URL, make_url


DRIVER_NAME = "postgresql+asyncpg"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def _millis_to_seconds(value: Optional[int]) -> Optional[float]:
    if value is None:
        return None
    return value / 1000


class ConnectionConfig(BaseModel):
    """
    Connection and pool settings consumed by SessionManager.connect().

    Only values are validated here; reachability is checked by the
    ``SELECT 1`` liveness check when connecting.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        frozen=True,
    )

    connection_string: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("connection_string", "connectionString"),
    )
    host: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    database: Optional[str] = None
    username: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("username", "user"),
    )
    password: Optional[str] = None
    # bool, an asyncpg sslmode string ("require", "verify-full", ...) or an SSLContext
    ssl: Any = None
    db_schema: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("db_schema", "schema"),
        description="Schema placed first on the search_path",
    )

    pool_size: Optional[int] = Field(
        default=None,
        ge=1,
        validation_alias=AliasChoices("pool_size", "poolSize"),
    )
    max_overflow: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("max_overflow", "maxOverflow"),
    )
    idle_timeout_millis: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("idle_timeout_millis", "idleTimeoutMillis"),
    )
    connection_timeout_millis: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("connection_timeout_millis", "connectionTimeoutMillis"),
    )
    statement_timeout_millis: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("statement_timeout_millis", "statementTimeoutMillis"),
    )
    echo: bool = False

    @property
    def user(self) -> Optional[str]:
        """Alias for username."""
        return self.username

    # ═══════════════════════════════════════════════════════════════════════════
    # URL RESOLUTION
    # ═══════════════════════════════════════════════════════════════════════════

    def _parsed_url(self) -> tuple[Optional[URL], Any]:
        """Parse connection_string, splitting the ssl options out of its query."""
        if not self.connection_string:
            return None, None

        url = make_url(self.connection_string)
        query = dict(url.query)
        ssl: Any = None

        raw_ssl = query.pop("ssl", None)
        raw_sslmode = query.pop("sslmode", None)
        if isinstance(raw_ssl, str):
            lowered = raw_ssl.lower()
            if lowered in _TRUE_VALUES:
                ssl = True
            elif lowered in _FALSE_VALUES:
                ssl = False
            else:
                ssl = raw_ssl
        if ssl is None and isinstance(raw_sslmode, str):
            ssl = raw_sslmode

        return url.set(query=query), ssl

    def resolved_url(self) -> URL:
        """
        Build the asyncpg URL, connection string first, fields layered on top.

        Returns:
            SQLAlchemy URL with the asyncpg driver
        """
        parsed, _ = self._parsed_url()
        if parsed is None:
            return URL.create(
                DRIVER_NAME,
                username=self.username,
                password=self.password,
                host=self.host,
                port=self.port,
                database=self.database,
            )

        return parsed.set(
            drivername=DRIVER_NAME,
            username=parsed.username if parsed.username is not None else self.username,
            password=parsed.password if parsed.password is not None else self.password,
            host=parsed.host if parsed.host is not None else self.host,
            port=parsed.port if parsed.port is not None else self.port,
            database=parsed.database if parsed.database is not None else self.database,
        )

    def resolved_ssl(self) -> Any:
        """SSL setting from the connection string, else the ssl field."""
        _, url_ssl = self._parsed_url()
        return url_ssl if url_ssl is not None else self.ssl

    # ═══════════════════════════════════════════════════════════════════════════
    # ENGINE OPTIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def connect_args(self) -> dict[str, Any]:
        """
        Keyword arguments forwarded to asyncpg.connect() for each new connection.

        Returns:
            Dict with ssl, timeout and server_settings where configured
        """
        args: dict[str, Any] = {}

        ssl = self.resolved_ssl()
        if ssl is not None:
            args["ssl"] = ssl

        timeout = _millis_to_seconds(self.connection_timeout_millis)
        if timeout is not None:
            args["timeout"] = timeout

        server_settings: dict[str, str] = {}
        if self.db_schema:
            server_settings["search_path"] = self.db_schema
        if self.statement_timeout_millis is not None:
            server_settings["statement_timeout"] = str(self.statement_timeout_millis)
        if server_settings:
            args["server_settings"] = server_settings

        return args

    def engine_options(self) -> dict[str, Any]:
        """
        Keyword arguments for create_async_engine().

        Returns:
            Pool sizing, timeouts and driver connect_args
        """
        options: dict[str, Any] = {
            "echo": self.echo,
            "pool_pre_ping": True,
            "connect_args": self.connect_args(),
        }
        if self.pool_size is not None:
            options["pool_size"] = self.pool_size
            # pool_size is the cap unless overflow is asked for
            options["max_overflow"] = self.max_overflow if self.max_overflow is not None else 0
        elif self.max_overflow is not None:
            options["max_overflow"] = self.max_overflow

        pool_timeout = _millis_to_seconds(self.connection_timeout_millis)
        if pool_timeout is not None:
            options["pool_timeout"] = pool_timeout

        recycle = _millis_to_seconds(self.idle_timeout_millis)
        if recycle:
            options["pool_recycle"] = recycle

        return options
