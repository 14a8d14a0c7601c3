from dataclasses import dataclass

import psycopg

from foobar_daemon.database.repositories.item_repository import ItemRepository
from foobar_daemon.exceptions import DatabaseError
from foobar_daemon.logging.logger import Log
from foobar_daemon.worker.policy import Action, decide, item_text


@dataclass(frozen=True)
class CycleSuccess:
    """A cycle that read the table and applied its single mutation."""

    action: Action
    item_count: int


@dataclass(frozen=True)
class CycleFailure:
    """A cycle aborted by a store error. The next tick tries again."""

    error: psycopg.Error | DatabaseError


CycleResult = CycleSuccess | CycleFailure


class CycleRunner:
    """Run one read-decide-write cycle and report the result instead of raising."""

    def __init__(self, item_repo: ItemRepository) -> None:
        self._item_repo = item_repo

    def run_cycle(self) -> CycleResult:
        """Perform at most one mutation: insert one item or evict the oldest."""
        try:
            state = self._item_repo.sample_state()
            action = decide(state.item_count, state.random_value)
            if action is Action.INSERT:
                text = item_text(state.random_value)
                self._item_repo.insert_item(text)
                Log.debug(f"Inserted item {text} ({state.item_count} items before)")
            else:
                deleted = self._item_repo.delete_oldest()
                Log.debug(f"Evicted {deleted} oldest item(s) ({state.item_count} items before)")
        except (psycopg.Error, DatabaseError) as exc:
            return CycleFailure(error=exc)
        return CycleSuccess(action=action, item_count=state.item_count)
