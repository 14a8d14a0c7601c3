import pytest

from foobar_daemon.config.settings import Settings
from foobar_daemon.database.repositories.item_repository import ItemRepository
from foobar_daemon.worker.cycle_runner import CycleRunner, CycleSuccess
from foobar_daemon.worker.policy import Action
from foobar_daemon.worker.worker import Worker


@pytest.mark.integration
class TestWorkerIntegration:
    def test_ten_cycles_fill_empty_table(self, empty_items: None, test_settings: Settings) -> None:
        repo = ItemRepository()
        worker = Worker(CycleRunner(repo), test_settings)

        worker.run(max_cycles=10)

        items = repo.list_items()
        assert len(items) == 10
        assert all(len(item.text) == 16 for item in items)

    def test_cycle_at_threshold_evicts_oldest(self, seed_items) -> None:
        ids = seed_items(20)
        repo = ItemRepository()

        result = CycleRunner(repo).run_cycle()

        assert result == CycleSuccess(action=Action.EVICT, item_count=20)
        remaining = [item.id for item in repo.list_items()]
        assert len(remaining) == 19
        assert min(ids) not in remaining

    def test_middle_band_cycle_changes_count_by_one(self, seed_items) -> None:
        seed_items(15)
        repo = ItemRepository()

        result = CycleRunner(repo).run_cycle()

        assert isinstance(result, CycleSuccess)
        expected = 16 if result.action is Action.INSERT else 14
        assert len(repo.list_items()) == expected
