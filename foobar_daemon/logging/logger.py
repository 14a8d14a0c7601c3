import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from queue import Queue
from urllib.parse import urljoin

import logging_loki

from foobar_daemon.exceptions import ObservabilityError

SERVICE_NAME = "foobar-daemon"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_FILE_NAME = f"{SERVICE_NAME}.log"
LOG_FILES_KEPT = 14
LOKI_PUSH_PATH = "loki/api/v1/push"


def loki_push_url(base_url: str) -> str:
    """Push endpoint below the configured Loki base URL."""
    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, LOKI_PUSH_PATH)


def build_handlers(log_directory: Path | None, loki_url: str | None) -> list[logging.Handler]:
    """Select log sinks: rotated file or stdout, plus Loki when configured."""
    handlers: list[logging.Handler] = []

    if loki_url is not None:
        handlers.append(
            logging_loki.LokiQueueHandler(
                Queue(-1),
                url=loki_push_url(loki_url),
                tags={"service": SERVICE_NAME},
                version="1",
            )
        )

    if log_directory is not None:
        log_directory.mkdir(parents=True, exist_ok=True)
        handlers.append(
            TimedRotatingFileHandler(
                log_directory / LOG_FILE_NAME,
                when="midnight",
                backupCount=LOG_FILES_KEPT,
                encoding="utf-8",
            )
        )
    else:
        handlers.append(logging.StreamHandler(sys.stdout))

    return handlers


class Log:
    """Centralized logging with structured format."""

    _logger: logging.Logger = logging.getLogger("foobar")

    @classmethod
    def configure(
        cls,
        log_level: str,
        log_directory: Path | None = None,
        loki_url: str | None = None,
    ) -> None:
        """Configure the logger level and attach the selected sinks."""
        try:
            cls._logger.setLevel(log_level.upper())
            handlers = build_handlers(log_directory, loki_url)
        except (OSError, ValueError) as exc:
            raise ObservabilityError(f"logging initialization failed: {exc}") from exc

        for handler in cls._logger.handlers[:]:
            cls._logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(LOG_FORMAT)
        for handler in handlers:
            handler.setFormatter(formatter)
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(message, extra=kwargs)
