"""
Repository Pattern Implementation

Generic table repository built on a StatementExecutor.

Usage Example:
==============
    from pgrepo.db import SessionManager
    from pgrepo.repositories import Repository

    manager = SessionManager()
    await manager.connect(config)

    users = Repository(manager, "users")
    user = await users.create({"name": "Ada", "email": "ada@example.com"})
"""

from pgrepo.repositories.base import Repository, build_where

__all__ = [
    "Repository",
    "build_where",
]
