import os
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from foobar_daemon.config.settings import Settings
from foobar_daemon.database.connection import close_pool, get_connection, init_pool
from foobar_daemon.database.migrations import migrate
from foobar_daemon.exceptions import DatabaseError

DEFAULT_TEST_DSN = "postgresql://foobar@localhost/foobar_test"


def _test_settings() -> Settings:
    return Settings(
        dsn=os.environ.get("FOOBAR_TEST_DSN", DEFAULT_TEST_DSN),
        cycle_interval_seconds=0.01,
        pool_open_timeout_seconds=5,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
    except DatabaseError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set FOOBAR_TEST_DSN")
    try:
        migrate()
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def empty_items(db_conn: psycopg.Connection[Any]) -> None:
    db_conn.execute("TRUNCATE foobar.items")
    db_conn.commit()


@pytest.fixture
def seed_items(db_conn: psycopg.Connection[Any], empty_items: None) -> Any:
    def _seed(count: int) -> list[int]:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO foobar.items(text)
                SELECT 'seed-' || n FROM generate_series(1, %s) AS n
                RETURNING id
                """,
                (count,),
            )
            ids = [row[0] for row in cur.fetchall()]
        db_conn.commit()
        return ids

    return _seed
