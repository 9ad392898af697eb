"""server-stats - command line entry point."""

import logging
import shutil
import sys

from serverstats.config import ReportConfig, build_parser, help_requested, parse_args
from serverstats.errors import ConfigurationError, SourceUnavailable
from serverstats.formatter import render
from serverstats.monitor import PsutilSource
from serverstats.report import ReportAssembler
from serverstats.sources import MetricSource

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_CPU_UNAVAILABLE = 2

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("serverstats")


def init_logging(verbose: bool = False) -> logging.Logger:
    """Send serverstats logs to stderr; only errors unless verbose."""
    level = logging.DEBUG if verbose else logging.ERROR
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)
    return logger


def run(config: ReportConfig, source: MetricSource | None = None) -> int:
    """Generate and print one report. Returns the process exit code."""
    if source is None:
        source = PsutilSource(excluded_fstypes=config.excluded_fstypes)
    assembler = ReportAssembler(source, config)

    try:
        report = assembler.assemble()
    except SourceUnavailable as exc:
        logger.error("cannot produce report: %s", exc)
        return EXIT_CPU_UNAVAILABLE

    width = shutil.get_terminal_size((80, 24)).columns
    print(render(report, width=width), end="")
    return EXIT_OK


def main(argv: list[str] | None = None, source: MetricSource | None = None) -> int:
    """Entry point for server-stats."""
    if argv is None:
        argv = sys.argv[1:]

    if help_requested(argv):
        print(build_parser().format_help(), end="")
        return EXIT_OK

    try:
        config = parse_args(argv)
    except ConfigurationError as exc:
        print(f"server-stats: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    if config is None:
        print(build_parser().format_help(), end="")
        return EXIT_OK

    init_logging(config.verbose)
    return run(config, source)


if __name__ == "__main__":
    sys.exit(main())
