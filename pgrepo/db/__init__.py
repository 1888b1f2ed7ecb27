"""
Database Module

Connection pool ownership and statement execution.

Architecture Overview:
======================
┌─────────────────────────────────────────────────────────────────────────────┐
│                        DATABASE LAYER                                       │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│   Repository[T]                                                             │
│       │                                                                     │
│       │  SQL text + positional params                                       │
│       ▼                                                                     │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │              StatementExecutor                              │          │
│   │                                                             │          │
│   │  - SessionManager      (pooled, one connection per call)    │          │
│   │  - ConnectionExecutor  (one reserved connection)            │          │
│   └─────────────────────────────────────────────────────────────┘          │
│       │                                                                     │
│       ▼                                                                     │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │       SQLAlchemy AsyncEngine (asyncpg) → PostgreSQL         │          │
│   └─────────────────────────────────────────────────────────────┘          │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘

Components:
===========
- session.py: SessionManager (pool lifecycle, execute, acquire, transaction)
- executor.py: executor protocols, ConnectionExecutor, error translation
"""

from pgrepo.db.executor import (
    ConnectionExecutor,
    Row,
    StatementExecutor,
    TransactionalExecutor,
    run_statement,
    translate_error,
)
from pgrepo.db.session import SessionManager

__all__ = [
    "SessionManager",
    "ConnectionExecutor",
    "StatementExecutor",
    "TransactionalExecutor",
    "Row",
    "run_statement",
    "translate_error",
]
