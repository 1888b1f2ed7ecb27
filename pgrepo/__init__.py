"""
pgrepo

Thin async data-access layer over PostgreSQL:

- SessionManager: connection pool lifecycle, statement execution, transactions
- Repository[T]: structured CRUD that builds $n-parameterized SQL

Project Structure:
==================
    pgrepo/
    ├── config/         # Environment settings (pydantic-settings)
    ├── core/           # Logging (structlog) and exceptions
    ├── schemas/        # ConnectionConfig, QueryOptions (pydantic)
    ├── db/             # SessionManager and statement executors
    └── repositories/   # Generic Repository
"""

__version__ = "1.0.0"

from pgrepo.core.exceptions import ConnectionError, PgRepoException, QueryError
from pgrepo.db import ConnectionExecutor, SessionManager, StatementExecutor
from pgrepo.repositories import Repository
from pgrepo.schemas import ConnectionConfig, QueryOptions, SortDirection

__all__ = [
    "SessionManager",
    "ConnectionExecutor",
    "StatementExecutor",
    "Repository",
    "ConnectionConfig",
    "QueryOptions",
    "SortDirection",
    "PgRepoException",
    "ConnectionError",
    "QueryError",
]
