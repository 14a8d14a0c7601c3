from unittest.mock import patch

import pytest

from foobar_daemon.config.settings import Settings
from foobar_daemon.exceptions import ObservabilityError
from foobar_daemon.metrics.exporter import init_metrics


class TestInitMetrics:
    def test_disabled_without_address(self) -> None:
        with patch("foobar_daemon.metrics.exporter.start_http_server") as mock_start:
            assert init_metrics(Settings()) is False
        mock_start.assert_not_called()

    def test_starts_listener_on_address(self) -> None:
        settings = Settings(prometheus_export="127.0.0.1:9100")
        with patch("foobar_daemon.metrics.exporter.start_http_server") as mock_start:
            assert init_metrics(settings) is True
        mock_start.assert_called_once_with(9100, addr="127.0.0.1")

    def test_bind_failure_raises(self) -> None:
        settings = Settings(prometheus_export="127.0.0.1:9100")
        with patch(
            "foobar_daemon.metrics.exporter.start_http_server",
            side_effect=OSError("Address already in use"),
        ):
            with pytest.raises(ObservabilityError, match="Address already in use"):
                init_metrics(settings)
