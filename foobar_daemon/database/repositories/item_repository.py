from psycopg.rows import dict_row

from foobar_daemon.database.connection import get_connection
from foobar_daemon.database.models import ItemRecord, TableState
from foobar_daemon.exceptions import DatabaseError


class ItemRepository:
    """Database operations for the foobar.items table."""

    def sample_state(self) -> TableState:
        """Count rows and draw random() from the store in a single statement."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT count(*), random()
                    FROM foobar.items
                    """
                )
                row = cur.fetchone()

        if row is None:
            raise DatabaseError("count query on foobar.items returned no row")

        return TableState(item_count=row[0], random_value=row[1])

    def insert_item(self, text: str) -> None:
        """Insert one item. id and time are assigned by the store."""
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO foobar.items(text)
                VALUES (%s)
                """,
                (text,),
            )
            conn.commit()

    def delete_oldest(self) -> int:
        """Delete the row with the smallest id present at delete time.

        Returns the number of deleted rows (0 on an empty table).
        """
        with get_connection() as conn:
            cur = conn.execute(
                """
                DELETE FROM foobar.items
                WHERE id = (SELECT min(id) FROM foobar.items)
                """
            )
            deleted = cur.rowcount
            conn.commit()
        return deleted

    def list_items(self) -> list[ItemRecord]:
        """All items ordered by id. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, text, time
                    FROM foobar.items
                    ORDER BY id
                    """
                )
                rows = cur.fetchall()

        return [ItemRecord(id=row["id"], text=row["text"], time=row["time"]) for row in rows]
