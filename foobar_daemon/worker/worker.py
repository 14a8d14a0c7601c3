import time

from prometheus_client import Counter, Gauge

from foobar_daemon.config.settings import Settings
from foobar_daemon.logging.logger import Log
from foobar_daemon.worker.cycle_runner import CycleFailure, CycleResult, CycleRunner

METRIC_CYCLES = Counter(
    "foobar_maintenance_cycles",
    "Maintenance cycles by outcome",
    ["outcome"],
)

METRIC_ITEMS = Gauge(
    "foobar_items",
    "Number of items observed at the start of the last successful cycle",
)


class Worker:
    """Tick loop: cycle -> report -> sleep, forever."""

    def __init__(self, cycle_runner: CycleRunner, settings: Settings) -> None:
        self._cycle_runner = cycle_runner
        self._settings = settings

    def run(self, max_cycles: int | None = None) -> None:
        """Main loop. Runs forever until interrupted.

        If max_cycles is set, stop after that many cycles (for testing).
        """
        Log.info("Maintenance worker started")
        cycles_done = 0
        try:
            while max_cycles is None or cycles_done < max_cycles:
                self._report(self._cycle_runner.run_cycle())
                cycles_done += 1
                time.sleep(self._settings.cycle_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Maintenance worker shutting down")

    def _report(self, result: CycleResult) -> None:
        if isinstance(result, CycleFailure):
            METRIC_CYCLES.labels(outcome="error").inc()
            Log.error(f"error in maintenance worker: {result.error}", error=str(result.error))
            return
        METRIC_CYCLES.labels(outcome=result.action.value).inc()
        METRIC_ITEMS.set(result.item_count)
