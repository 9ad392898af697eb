"""Ranking of the process table."""

from enum import Enum

from serverstats.models import ProcessRow


class SortKey(Enum):
    """Sort keys for the Top process lists."""

    CPU = "cpu"
    MEM = "mem"


_KEY_FUNCS = {
    SortKey.CPU: lambda p: p.cpu_percent,
    SortKey.MEM: lambda p: p.memory_percent,
}


def top_by(rows: list[ProcessRow], key: SortKey, n: int) -> list[ProcessRow]:
    """
    Return the n rows with the highest value for key, highest first.

    Equal values keep their order from rows.
    """
    if n <= 0:
        raise ValueError(f"n must be a positive integer, got {n!r}")
    return sorted(rows, key=_KEY_FUNCS[key], reverse=True)[:n]
