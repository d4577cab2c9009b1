"""Pytest configuration for integration tests.

Integration tests talk to a real Postgres pointed to by DATABASE_URL (or
POSTGRES_URL) and are skipped when neither is set.
"""

import sys
import warnings
from collections.abc import AsyncGenerator
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio

# Ignore warnings from app.cw
warnings.filterwarnings("ignore", category=DeprecationWarning, module="app.cw.*")

# Ensure the project root is on sys.path so `app` packages resolve
PROJECT_ROOT = Path(__file__).resolve().parents[1]
root_dir_str = str(PROJECT_ROOT)
if root_dir_str not in sys.path:
    sys.path.insert(0, root_dir_str)

from app.cw.config import config  # noqa: E402
from app.cw.storage.postgres import PostgresManager  # noqa: E402
from app.domain.live.store.persistence import PostgresPersistence  # noqa: E402


@pytest.fixture(scope="session")
def pg_dsn() -> str:
    """Get PostgreSQL DSN for testing."""
    dsn = config.get_database_url()
    if not dsn:
        pytest.skip("DATABASE_URL not set")
    return dsn


@pytest_asyncio.fixture
async def pg_store(pg_dsn: str) -> AsyncGenerator[PostgresPersistence]:
    """Postgres-backed store with the schema in place."""
    strict = config.get_bool("PG_STRICT_SSL") if config.get_str("PG_STRICT_SSL") else None
    store = PostgresPersistence(PostgresManager(pg_dsn, strict_ssl=strict))
    assert await store.ensure_schema() is True
    yield store
    await store.close()


@pytest.fixture
def player_id() -> str:
    """Unique id so runs against a shared database do not collide."""
    return f"p_it_{uuid4().hex[:16]}"
