"""
Runtime metrics sampler.

A background thread periodically takes a snapshot of the scheduler state
(threads and the connection pool) and hands it to a Prometheus collector,
which serves the last snapshot on every scrape. Where the snapshot comes
from is injected, so the sampler can be driven with fakes in tests.
"""

import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import REGISTRY, CollectorRegistry

from foobar_daemon.database.connection import get_pool_stats
from foobar_daemon.logging.logger import Log


@dataclass(frozen=True)
class SchedulerSnapshot:
    """Point-in-time view of threads and connection pool utilization."""

    threads_alive: int
    threads_daemon: int
    pool_size: int
    pool_available: int
    requests_waiting: int
    requests_total: int
    requests_errors_total: int
    connections_total: int
    connections_lost_total: int


SnapshotProvider = Callable[[], SchedulerSnapshot]


def capture_snapshot() -> SchedulerSnapshot:
    """Default snapshot provider: process threads plus psycopg_pool statistics."""
    threads = threading.enumerate()
    # psycopg_pool omits counters which are still zero
    stats = get_pool_stats()
    return SchedulerSnapshot(
        threads_alive=len(threads),
        threads_daemon=sum(1 for thread in threads if thread.daemon),
        pool_size=stats.get("pool_size", 0),
        pool_available=stats.get("pool_available", 0),
        requests_waiting=stats.get("requests_waiting", 0),
        requests_total=stats.get("requests_num", 0),
        requests_errors_total=stats.get("requests_errors", 0),
        connections_total=stats.get("connections_num", 0),
        connections_lost_total=stats.get("connections_lost", 0),
    )


class SchedulerCollector:
    """Serves the most recent SchedulerSnapshot to Prometheus scrapes."""

    def __init__(self) -> None:
        self._snapshot: SchedulerSnapshot | None = None
        self._lock = threading.Lock()

    def update(self, snapshot: SchedulerSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def collect(self) -> Iterator[Metric]:
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            return

        yield GaugeMetricFamily(
            "foobar_threads_alive", "Number of live threads", value=snapshot.threads_alive
        )
        yield GaugeMetricFamily(
            "foobar_threads_daemon", "Number of live daemon threads", value=snapshot.threads_daemon
        )
        yield GaugeMetricFamily(
            "foobar_pool_size", "Connections managed by the pool", value=snapshot.pool_size
        )
        yield GaugeMetricFamily(
            "foobar_pool_available", "Idle connections in the pool", value=snapshot.pool_available
        )
        yield GaugeMetricFamily(
            "foobar_pool_requests_waiting",
            "Clients queued waiting for a connection",
            value=snapshot.requests_waiting,
        )
        yield CounterMetricFamily(
            "foobar_pool_requests",
            "Connection requests served by the pool",
            value=snapshot.requests_total,
        )
        yield CounterMetricFamily(
            "foobar_pool_requests_errors",
            "Connection requests which failed or timed out",
            value=snapshot.requests_errors_total,
        )
        yield CounterMetricFamily(
            "foobar_pool_connections",
            "Physical connections opened by the pool",
            value=snapshot.connections_total,
        )
        yield CounterMetricFamily(
            "foobar_pool_connections_lost",
            "Connections found broken and discarded",
            value=snapshot.connections_lost_total,
        )


def register_collector(
    collector: SchedulerCollector,
    registry: CollectorRegistry = REGISTRY,
) -> None:
    """Register the collector, tolerating an earlier registration of the same names."""
    try:
        registry.register(collector)
    except ValueError as exc:
        if "duplicate" not in str(exc).lower():
            raise
        Log.warning("Scheduler metrics collector already registered, skipping registration")


class RuntimeMetricsSampler:
    """Poll-and-publish loop running on a daemon thread."""

    def __init__(
        self,
        snapshot_provider: SnapshotProvider,
        collector: SchedulerCollector,
        interval_seconds: float,
    ) -> None:
        self._snapshot_provider = snapshot_provider
        self._collector = collector
        self._interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="metrics-sampler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def run(self, max_samples: int | None = None) -> None:
        """Sample until stopped. If max_samples is set, stop after that many (for testing)."""
        samples = 0
        while not self._stop.is_set():
            self.sample_once()
            samples += 1
            if max_samples is not None and samples >= max_samples:
                break
            self._stop.wait(self._interval_seconds)

    def sample_once(self) -> bool:
        """Take one snapshot and publish it. A failure is logged and the sampler carries on."""
        try:
            snapshot = self._snapshot_provider()
        except Exception as exc:
            Log.warning(f"error in metrics sampler: {exc}", error=str(exc))
            return False
        self._collector.update(snapshot)
        return True
