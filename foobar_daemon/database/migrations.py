from dataclasses import dataclass
from typing import Any

import psycopg

from foobar_daemon.database.connection import get_connection
from foobar_daemon.exceptions import MigrationError
from foobar_daemon.logging.logger import Log

SCHEMA = "foobar"


@dataclass(frozen=True)
class Migration:
    """One ordered schema change."""

    version: int
    description: str
    sql: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="create items table",
        sql="""
            CREATE TABLE foobar.items (
                id integer GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                text text NOT NULL,
                time timestamptz NOT NULL DEFAULT now()
            )
        """,
    ),
]


def check_migration_order(migrations: list[Migration]) -> None:
    """Versions must be strictly increasing."""
    versions = [migration.version for migration in migrations]
    if versions != sorted(set(versions)):
        raise MigrationError(f"migrations are not strictly ordered by version: {versions}")


def ensure_schema(conn: psycopg.Connection[Any]) -> None:
    """Create the application schema and the bookkeeping table if absent."""
    conn.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}")
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {SCHEMA}.schema_migrations (
            version integer PRIMARY KEY,
            description text NOT NULL,
            applied_at timestamptz NOT NULL DEFAULT now()
        )
        """
    )
    conn.commit()


def applied_versions(conn: psycopg.Connection[Any]) -> set[int]:
    with conn.cursor() as cur:
        cur.execute(f"SELECT version FROM {SCHEMA}.schema_migrations")
        rows = cur.fetchall()
    conn.commit()
    return {row[0] for row in rows}


def apply_migrations(
    conn: psycopg.Connection[Any],
    migrations: list[Migration],
) -> list[int]:
    """Apply pending migrations in order, each in its own transaction.

    Returns the versions applied by this call.
    """
    check_migration_order(migrations)

    done = applied_versions(conn)
    unknown = done - {migration.version for migration in migrations}
    if unknown:
        raise MigrationError(
            f"database has migrations unknown to this version: {sorted(unknown)}"
        )

    newly_applied = []
    for migration in migrations:
        if migration.version in done:
            continue
        Log.info(f"Applying migration {migration.version}: {migration.description}")
        with conn.transaction():
            conn.execute(migration.sql)
            conn.execute(
                f"""
                INSERT INTO {SCHEMA}.schema_migrations (version, description)
                VALUES (%s, %s)
                """,
                (migration.version, migration.description),
            )
        newly_applied.append(migration.version)
    return newly_applied


def migrate(migrations: list[Migration] | None = None) -> list[int]:
    """Ensure the schema exists and bring it up to the latest known version."""
    if migrations is None:
        migrations = MIGRATIONS
    try:
        with get_connection() as conn:
            ensure_schema(conn)
            return apply_migrations(conn, migrations)
    except psycopg.Error as exc:
        raise MigrationError(f"failed to run migrations: {exc}") from exc
