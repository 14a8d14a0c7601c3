from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from foobar_daemon.config.settings import Settings
from foobar_daemon.exceptions import DatabaseError

APPLICATION_NAME = "foobar-daemon"

_pool: ConnectionPool | None = None


def tag_session(conn: psycopg.Connection[Any]) -> None:
    """Run once on every new physical connection to identify it in pg_stat_activity."""
    conn.execute(f"SET application_name = '{APPLICATION_NAME}'")
    conn.commit()


def init_pool(settings: Settings) -> None:
    """Initialize the global connection pool and wait until it is usable."""
    global _pool  # noqa: PLW0603
    try:
        pool = ConnectionPool(
            settings.dsn,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            configure=tag_session,
            open=False,
        )
    except (psycopg.Error, ValueError) as exc:
        raise DatabaseError(f"error creating PostgreSQL connection pool: {exc}") from exc
    try:
        pool.open(wait=True, timeout=settings.pool_open_timeout_seconds)
    except psycopg.Error as exc:
        pool.close()
        raise DatabaseError(f"error creating PostgreSQL connection pool: {exc}") from exc
    _pool = pool


def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


def get_pool_stats() -> dict[str, int]:
    """Current pool counters, as reported by psycopg_pool."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    return _pool.get_stats()


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a connection from the pool. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn
