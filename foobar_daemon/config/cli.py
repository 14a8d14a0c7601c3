import argparse
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROG = "foobar-daemon"


def _package_version() -> str:
    try:
        return version(PROG)
    except PackageNotFoundError:
        return "0+unknown"


def build_parser() -> argparse.ArgumentParser:
    """Command-line interface of the daemon.

    No option carries an argparse default: an unset option must stay None so
    it does not mask the value from the configuration file. Defaults are
    spelled out in the help text instead.
    """
    parser = argparse.ArgumentParser(prog=PROG, description="Maintains the foobar items table.")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_package_version()}")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        metavar="PATH",
        help="path to configuration file with default and/or additional settings",
    )
    parser.add_argument(
        "-d",
        "--dsn",
        metavar="DSN",
        help="PostgreSQL database DSN (default: postgresql://foobar@localhost/foobar)",
    )
    parser.add_argument(
        "--log-directory",
        type=Path,
        metavar="PATH",
        help="write logs to a daily rotated file in this directory, keeping 14 rotated files",
    )
    parser.add_argument("--loki-url", metavar="URL", help="Loki log collector URL")
    parser.add_argument(
        "--prometheus-export",
        metavar="ADDR:PORT",
        help="socket address for serving Prometheus metrics",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
