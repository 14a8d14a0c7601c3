import os
import random
from collections.abc import Generator
from pathlib import Path

import psycopg
import pytest

from foobar_daemon.database.models import ItemRecord, TableState


class FakeItemRepository:
    """In-memory stand-in for ItemRepository with the same method surface."""

    def __init__(self, item_count: int = 0, seed: int = 0) -> None:
        self.items: list[ItemRecord] = []
        self._next_id = 1
        self._rng = random.Random(seed)
        self.fail_next: list[psycopg.Error] = []
        for _ in range(item_count):
            self.insert_item("seed")

    def sample_state(self) -> TableState:
        if self.fail_next:
            raise self.fail_next.pop(0)
        return TableState(item_count=len(self.items), random_value=self._rng.random())

    def insert_item(self, text: str) -> None:
        self.items.append(ItemRecord(id=self._next_id, text=text))
        self._next_id += 1

    def delete_oldest(self) -> int:
        if not self.items:
            return 0
        oldest = min(self.items, key=lambda item: item.id)
        self.items.remove(oldest)
        return 1

    def list_items(self) -> list[ItemRecord]:
        return sorted(self.items, key=lambda item: item.id)


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Keep FOOBAR_* variables and any local .env out of Settings."""
    for name in list(os.environ):
        if name.startswith("FOOBAR_") and name != "FOOBAR_TEST_DSN":
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture()
def make_fake_repo() -> type[FakeItemRepository]:
    return FakeItemRepository


@pytest.fixture()
def fake_repo() -> FakeItemRepository:
    return FakeItemRepository()
