import os
import uuid
from collections.abc import Generator

import pytest

from intake.aggregation.postgres_store import PostgresAggregationStore
from intake.config.settings import Settings
from intake.database.connection import close_pool, get_connection, init_pool


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "submissions_test")
    os.environ.setdefault("DB_POOL_TIMEOUT", "5")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        PostgresAggregationStore().ensure_schema()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def pg_store(integration_pool: None) -> PostgresAggregationStore:
    return PostgresAggregationStore()


@pytest.fixture
def tenant_id(integration_pool: None) -> Generator[str, None, None]:
    """A fresh tenant per test; its records are deleted afterwards."""
    tenant = f"it-{uuid.uuid4().hex[:12]}"
    yield tenant
    with get_connection() as conn:
        conn.execute(
            "DELETE FROM submission_records WHERE starts_with(partition_key, %s)",
            (f"{tenant}#",),
        )
        conn.commit()
