"""Exceptions raised by server-stats."""


class ServerStatsError(Exception):
    """Base class for server-stats errors."""


class ConfigurationError(ServerStatsError):
    """Invalid command line arguments or configuration values."""


class SourceUnavailable(ServerStatsError):
    """A metric source could not be read."""

    def __init__(self, section: str, reason: str = "") -> None:
        self.section = section
        message = f"{section} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
