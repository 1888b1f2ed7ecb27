"""
Test fixtures.

Unit fixtures patch the engine factory with fakes from ``fakes.py``.
Integration fixtures connect to a real PostgreSQL configured through the
POSTGRES_* environment variables and skip when it is unreachable.
"""

import os
from typing import Any

import pytest

from fakes import FakeEngine, RecordingExecutor
from pgrepo.core.exceptions import ConnectionError
from pgrepo.db.session import SessionManager
from pgrepo.repositories.base import Repository
from pgrepo.schemas.config import ConnectionConfig


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def fake_engine(monkeypatch):
    """Patch create_async_engine to hand back a FakeEngine."""
    engine = FakeEngine()
    created: list[tuple[Any, dict[str, Any]]] = []

    def _create(url, **options):
        created.append((url, options))
        return engine

    monkeypatch.setattr("pgrepo.db.session.create_async_engine", _create)
    engine.created = created
    return engine


@pytest.fixture
def recorder():
    return RecordingExecutor()


# ═══════════════════════════════════════════════════════════════════════════════
# INTEGRATION FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def pg_config() -> ConnectionConfig:
    """Test database configuration."""
    return ConnectionConfig(
        host=os.environ.get("POSTGRES_HOST", "localhost"),
        port=int(os.environ.get("POSTGRES_PORT", "5434")),
        database=os.environ.get("POSTGRES_DB", "test_db"),
        username=os.environ.get("POSTGRES_USER", "postgres"),
        password=os.environ.get("POSTGRES_PASSWORD", "postgres"),
        connection_timeout_millis=3000,
    )


@pytest.fixture
async def pg_manager(pg_config):
    """Connected SessionManager; skips the test when PostgreSQL is unreachable."""
    manager = SessionManager()
    try:
        await manager.connect(pg_config)
    except ConnectionError as exc:
        pytest.skip(f"PostgreSQL not available: {exc.message}")
    yield manager
    await manager.disconnect()


@pytest.fixture
async def users_table(pg_manager):
    """Fresh test_users table, dropped afterwards."""
    await pg_manager.execute(
        """
        CREATE TABLE IF NOT EXISTS test_users (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) UNIQUE NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    await pg_manager.execute("TRUNCATE test_users RESTART IDENTITY")
    yield "test_users"
    await pg_manager.execute("DROP TABLE IF EXISTS test_users")


@pytest.fixture
def users_repo(pg_manager, users_table) -> Repository:
    return Repository(pg_manager, users_table)
