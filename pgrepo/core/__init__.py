"""
Core Module

Provides functionality shared across the library:
- Structured logging
- Custom exceptions

Usage:
======
    from pgrepo.core.logging import get_logger
    from pgrepo.core.exceptions import ConnectionError, QueryError
"""

from pgrepo.core.logging import (
    get_logger,
    setup_logging,
)
from pgrepo.core.exceptions import (
    PgRepoException,
    ConnectionError,
    QueryError,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Exceptions
    "PgRepoException",
    "ConnectionError",
    "QueryError",
]
