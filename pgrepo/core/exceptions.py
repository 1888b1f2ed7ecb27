"""
Custom Exceptions

Database-layer exceptions with machine-readable error codes.

Exception Hierarchy:
====================
    PgRepoException (base)
       │
       ├── ConnectionError   ← Nothing to talk to (no pool, bad credentials,
       │                       unreachable host, checkout timeout)
       └── QueryError        ← Talked to it and it refused the statement
                               (bad SQL, constraint violation, type error)

Callers can tell "retry later" failures apart from "fix the statement"
failures by the exception type alone.

Usage:
======
    from pgrepo.core.exceptions import ConnectionError, QueryError

    try:
        await repo.create({"email": email})
    except QueryError as exc:
        logger.warning("Insert refused", error=exc.message, cause=repr(exc.cause))

Note:
=====
ConnectionError shadows the builtin of the same name inside modules that
import it. Import it explicitly (or via ``pgrepo``) to make that visible.
"""

from typing import Any, Optional


class PgRepoException(Exception):
    """
    Base exception for all pgrepo errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        cause: The underlying driver/pool exception, if any
        details: Additional error context
    """

    default_code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.cause = cause
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a dictionary for structured logs or responses.

        Returns:
            Dictionary with error code, message, details and cause type
        """
        error: dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
        }
        if self.cause is not None:
            error["cause"] = type(self.cause).__name__
        return {"error": error}


# ═══════════════════════════════════════════════════════════════════════════════
# CONNECTION ERRORS
# ═══════════════════════════════════════════════════════════════════════════════


class ConnectionError(PgRepoException):  # noqa: A001
    """
    No usable connection.

    Raised when:
    - An operation needs a pool and none exists (not connected)
    - Establishing the pool fails (auth, DNS, refused, liveness check timeout)
    - A dedicated connection cannot be checked out
    - A transaction-scoped handle is used after its transaction ended
    """

    default_code = "CONNECTION_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# QUERY ERRORS
# ═══════════════════════════════════════════════════════════════════════════════


class QueryError(PgRepoException):
    """
    Statement rejected.

    Raised when the database refuses a statement (syntax error, constraint
    violation, type mismatch, statement timeout) or when a structured query
    cannot be turned into a valid statement.
    """

    default_code = "QUERY_ERROR"
