class DaemonError(Exception):
    """Base exception for all daemon errors."""


class ConfigError(DaemonError):
    """Raised when the configuration cannot be read, parsed or validated."""


class DatabaseError(DaemonError):
    """Raised when the connection pool cannot be established."""


class MigrationError(DatabaseError):
    """Raised when the schema cannot be created or migrated."""


class ObservabilityError(DaemonError):
    """Raised when the logging or metrics subsystem fails to initialize."""


class StartupError(DaemonError):
    """Raised when a startup step fails. Carries the name of the step."""

    def __init__(self, step: str, cause: Exception) -> None:
        super().__init__(f"failed to {step}: {cause}")
        self.step = step
        self.cause = cause
