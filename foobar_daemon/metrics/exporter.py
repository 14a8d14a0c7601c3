from prometheus_client import start_http_server

from foobar_daemon.config.settings import Settings
from foobar_daemon.exceptions import ObservabilityError
from foobar_daemon.logging.logger import Log


def init_metrics(settings: Settings) -> bool:
    """Start the Prometheus HTTP listener if an export address is configured.

    Returns whether metrics are enabled. Process metrics (CPU, memory, file
    descriptors) come with the default registry's process collector.
    """
    address = settings.prometheus_address
    if address is None:
        return False

    host, port = address
    Log.info(f"Initializing prometheus exporter on {host}:{port}")
    try:
        start_http_server(port, addr=host)
    except OSError as exc:
        raise ObservabilityError(f"prometheus exporter initialization failed: {exc}") from exc
    return True
