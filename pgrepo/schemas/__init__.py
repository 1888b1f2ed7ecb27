"""
Schemas Module

Pydantic models for connection configuration and structured queries.

Usage:
======
    from pgrepo.schemas import ConnectionConfig, QueryOptions

    config = ConnectionConfig(host="localhost", database="app", user="app")
    options = QueryOptions(where={"status": "active"}, order_by={"name": "asc"})
"""

from pgrepo.schemas.config import ConnectionConfig
from pgrepo.schemas.query import QueryOptions, SortDirection

__all__ = [
    "ConnectionConfig",
    "QueryOptions",
    "SortDirection",
]
