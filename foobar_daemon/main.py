import sys
from collections.abc import Sequence

from foobar_daemon.config.settings import Settings, resolve_settings
from foobar_daemon.database.connection import close_pool, init_pool
from foobar_daemon.database.migrations import migrate
from foobar_daemon.database.repositories.item_repository import ItemRepository
from foobar_daemon.exceptions import DaemonError, StartupError
from foobar_daemon.logging.logger import Log
from foobar_daemon.metrics.exporter import init_metrics
from foobar_daemon.metrics.sampler import (
    RuntimeMetricsSampler,
    SchedulerCollector,
    capture_snapshot,
    register_collector,
)
from foobar_daemon.worker.cycle_runner import CycleRunner
from foobar_daemon.worker.worker import Worker


def start_sampler(settings: Settings) -> RuntimeMetricsSampler:
    collector = SchedulerCollector()
    register_collector(collector)
    sampler = RuntimeMetricsSampler(capture_snapshot, collector, settings.metrics_interval_seconds)
    sampler.start()
    return sampler


def run(argv: Sequence[str] | None = None) -> None:
    """Startup chain: config -> logging -> metrics -> pool -> migrations -> worker."""
    try:
        settings = resolve_settings(argv)
    except DaemonError as exc:
        raise StartupError("process configuration", exc) from exc

    try:
        Log.configure(
            settings.log_level,
            log_directory=settings.log_directory,
            loki_url=str(settings.loki_url) if settings.loki_url is not None else None,
        )
    except DaemonError as exc:
        raise StartupError("init logging", exc) from exc

    try:
        metrics_enabled = init_metrics(settings)
    except DaemonError as exc:
        raise StartupError("init metrics", exc) from exc

    Log.info("Initializing database pool")
    try:
        init_pool(settings)
    except DaemonError as exc:
        raise StartupError("init database", exc) from exc

    sampler = None
    try:
        Log.info("Running migrations")
        try:
            migrate()
        except DaemonError as exc:
            raise StartupError("run migrations", exc) from exc

        if metrics_enabled:
            sampler = start_sampler(settings)

        Log.info("Running daemon")
        worker = Worker(CycleRunner(ItemRepository()), settings)
        worker.run()
    finally:
        if sampler is not None:
            sampler.stop()
        close_pool()


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point. Startup failures are printed and exit with status 1."""
    try:
        run(argv)
    except DaemonError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
