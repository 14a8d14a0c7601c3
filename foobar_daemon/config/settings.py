import tomllib
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    ValidationError,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from foobar_daemon.config.cli import parse_args
from foobar_daemon.exceptions import ConfigError

DEFAULT_DSN = "postgresql://foobar@localhost/foobar"

# Fields which may come from the command line and from the config file.
# Everything else in Settings is environment-only.
FILE_FIELDS = ("dsn", "log_directory", "loki_url", "prometheus_export")


def parse_socket_address(value: str) -> tuple[str, int]:
    """Split ``ADDR:PORT`` (or ``[ADDR]:PORT`` for IPv6) into host and port."""
    if value.startswith("["):
        host, _, rest = value[1:].partition("]")
        if not rest.startswith(":"):
            raise ValueError(f"invalid socket address '{value}', expected [ADDR]:PORT")
        port_text = rest[1:]
    else:
        host, sep, port_text = value.rpartition(":")
        if not sep or ":" in host:
            raise ValueError(f"invalid socket address '{value}', expected ADDR:PORT")
    if not host:
        raise ValueError(f"invalid socket address '{value}', missing address")
    if not port_text.isdigit() or not 0 <= int(port_text) <= 65535:
        raise ValueError(f"invalid port in socket address '{value}'")
    return host, int(port_text)


def _validate_socket_address(value: str) -> str:
    parse_socket_address(value)
    return value


SocketAddress = Annotated[str, AfterValidator(_validate_socket_address)]


class FileConfig(BaseModel):
    """Schema of the optional TOML configuration file. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    dsn: str | None = None
    log_directory: Path | None = None
    loki_url: AnyHttpUrl | None = None
    prometheus_export: SocketAddress | None = None


class Settings(BaseSettings):
    """Effective daemon configuration.

    Values passed to the constructor (command line merged over file) win over
    FOOBAR_* environment variables, which win over the defaults below.
    """

    model_config = SettingsConfigDict(env_prefix="FOOBAR_", env_file=".env", extra="ignore")

    dsn: str = DEFAULT_DSN
    log_directory: Path | None = None
    loki_url: AnyHttpUrl | None = None
    prometheus_export: SocketAddress | None = None

    log_level: str = "INFO"

    cycle_interval_seconds: PositiveFloat = 5
    metrics_interval_seconds: PositiveFloat = 5

    pool_min_size: int = Field(default=1, ge=1)
    pool_max_size: int = Field(default=10, ge=1)
    pool_open_timeout_seconds: PositiveFloat = 30

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> "Settings":
        if self.pool_max_size < self.pool_min_size:
            raise ValueError(
                f"pool_max_size ({self.pool_max_size}) must be at least "
                f"pool_min_size ({self.pool_min_size})"
            )
        return self

    @property
    def prometheus_address(self) -> tuple[str, int] | None:
        if self.prometheus_export is None:
            return None
        return parse_socket_address(self.prometheus_export)


def load_file_config(path: Path) -> FileConfig:
    """Read and strictly validate a TOML configuration file."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc

    try:
        data = tomllib.loads(raw.decode("utf-8"))
        return FileConfig.model_validate(data)
    except (UnicodeDecodeError, tomllib.TOMLDecodeError, ValidationError) as exc:
        raise ConfigError(f"cannot parse config file {path}: {exc}") from exc


def merge_sources(cli_values: dict[str, Any], file_config: FileConfig) -> dict[str, Any]:
    """Merge per field: a command-line value beats the file value."""
    merged: dict[str, Any] = {}
    for field in FILE_FIELDS:
        value = cli_values.get(field)
        if value is None:
            value = getattr(file_config, field)
        if value is not None:
            merged[field] = value
    return merged


def resolve_settings(argv: Sequence[str] | None = None) -> Settings:
    """Build the effective Settings from command-line arguments and the optional file."""
    args = parse_args(argv)
    file_config = load_file_config(args.config) if args.config is not None else FileConfig()

    try:
        return Settings(**merge_sources(vars(args), file_config))
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
