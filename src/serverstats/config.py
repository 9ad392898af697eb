"""Run configuration and command line parsing for server-stats."""

import argparse
import math
from dataclasses import dataclass

from serverstats.errors import ConfigurationError

DEFAULT_TOP_N = 5
DEFAULT_INTERVAL = 1.0
# Memory-backed mounts that do not represent persistent storage
DEFAULT_EXCLUDED_FSTYPES = frozenset({"tmpfs", "devtmpfs"})

HELP_FLAGS = ("-h", "--help")
# Short flags whose value may follow in the same argument, as in -n5
_VALUE_FLAGS = frozenset("ni")


@dataclass(slots=True, frozen=True)
class ReportConfig:
    """Validated settings for one report run."""

    top_n: int = DEFAULT_TOP_N
    interval: float = DEFAULT_INTERVAL
    excluded_fstypes: frozenset[str] = DEFAULT_EXCLUDED_FSTYPES
    verbose: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.top_n, bool) or not isinstance(self.top_n, int) or self.top_n <= 0:
            raise ConfigurationError(f"top N must be a positive integer, got {self.top_n!r}")
        if not math.isfinite(self.interval) or self.interval < 0:
            raise ConfigurationError(
                f"sampling interval must be a number >= 0, got {self.interval!r}"
            )


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message: str) -> None:
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    """Create the server-stats argument parser."""
    parser = _ArgumentParser(
        prog="server-stats",
        description="Basic server performance analyzer.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-n",
        "--top",
        metavar="N",
        default=str(DEFAULT_TOP_N),
        help=f"number of processes to display in Top lists (default: {DEFAULT_TOP_N})",
    )
    parser.add_argument(
        "-i",
        "--interval",
        metavar="SEC",
        default=f"{DEFAULT_INTERVAL:g}",
        help=f"CPU sampling interval in seconds (default: {DEFAULT_INTERVAL:g})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="log diagnostics to stderr",
    )
    parser.add_argument("-h", "--help", action="store_true", help="show this help and exit")
    return parser


def parse_top_n(text: str) -> int:
    """Parse the -n value as a positive integer."""
    try:
        value = int(text)
    except ValueError:
        raise ConfigurationError(f"-n expects a positive integer, got {text!r}") from None
    if value <= 0:
        raise ConfigurationError(f"-n expects a positive integer, got {text!r}")
    return value


def parse_interval(text: str) -> float:
    """Parse the -i value as a finite number of seconds >= 0."""
    try:
        value = float(text)
    except ValueError:
        raise ConfigurationError(f"-i expects a number of seconds >= 0, got {text!r}") from None
    if not math.isfinite(value) or value < 0:
        raise ConfigurationError(f"-i expects a number of seconds >= 0, got {text!r}")
    return value


def help_requested(argv: list[str]) -> bool:
    """
    Check for a help flag anywhere on the command line.

    Short flags may be clustered (-vh). Flag values are not mistaken for
    flags inside a cluster, so -nh asks for "h" top processes rather than
    help; a standalone -h or --help always wins.
    """
    expect_value = False
    for arg in argv:
        if arg in HELP_FLAGS:
            return True
        if expect_value:
            expect_value = False
            continue
        if arg == "--":
            return False
        if not arg.startswith("-") or arg.startswith("--"):
            continue
        for position, flag in enumerate(arg[1:], start=1):
            if flag == "h":
                return True
            if flag in _VALUE_FLAGS:
                expect_value = position == len(arg) - 1
                break
    return False


def parse_args(argv: list[str]) -> ReportConfig | None:
    """
    Build a ReportConfig from command line arguments.

    Returns None when help was asked for.

    Args:
        argv: Arguments without the program name.

    Raises:
        ConfigurationError: On unknown flags, missing flag arguments, or
            values out of range.
    """
    args = build_parser().parse_args(argv)
    if args.help:
        return None
    return ReportConfig(
        top_n=parse_top_n(args.top),
        interval=parse_interval(args.interval),
        verbose=args.verbose,
    )
