from unittest.mock import MagicMock, patch

import pytest

from foobar_daemon.database.repositories.item_repository import ItemRepository
from foobar_daemon.exceptions import DatabaseError


def _make_connection(row: tuple[int, float] | None) -> MagicMock:
    """Create a mocked connection whose cursor returns the given count row."""
    mock_conn = MagicMock()
    mock_cur = mock_conn.cursor.return_value.__enter__.return_value
    mock_cur.fetchone.return_value = row
    return mock_conn


class TestSampleState:
    def test_returns_count_and_random(self) -> None:
        mock_conn = _make_connection((7, 0.25))
        with patch(
            "foobar_daemon.database.repositories.item_repository.get_connection"
        ) as mock_get:
            mock_get.return_value.__enter__.return_value = mock_conn
            state = ItemRepository().sample_state()

        assert state.item_count == 7
        assert state.random_value == 0.25

    def test_missing_row_raises_database_error(self) -> None:
        mock_conn = _make_connection(None)
        with patch(
            "foobar_daemon.database.repositories.item_repository.get_connection"
        ) as mock_get:
            mock_get.return_value.__enter__.return_value = mock_conn
            with pytest.raises(DatabaseError, match="returned no row"):
                ItemRepository().sample_state()
