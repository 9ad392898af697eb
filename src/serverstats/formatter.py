"""Plain-text rendering of a server-stats Report."""

from serverstats.models import ProcessRow, Report

UNAVAILABLE = "N/A"

_ROW_FORMAT = "{pid:>6}  {name:<20}  {cpu:>6}  {mem:>6}"
_NAME_WIDTH = 20


def format_kib(size: float) -> str:
    """Format a KiB count in the largest unit that keeps the value >= 1."""
    value = float(size)
    for unit in ["KiB", "MiB", "GiB"]:
        if value < 1024:
            return f"{value:.2f} {unit}"
        value = value / 1024
    return f"{value:.2f} TiB"


def format_percent(value: float) -> str:
    """Format a percentage with two decimals and a percent sign."""
    return f"{value:.2f}%"


def _or_unavailable(value: object | None) -> str:
    """Render a degraded (None) field as N/A."""
    return UNAVAILABLE if value is None else str(value)


def _section(lines: list[str], title: str, width: int) -> None:
    """Append a blank line, the title and a full-width rule."""
    lines.extend(["", title, "-" * width])


def _process_table(rows: list[ProcessRow] | None) -> list[str]:
    """Lay out a Top list under its column header."""
    if rows is None:
        return [UNAVAILABLE]
    table = [_ROW_FORMAT.format(pid="PID", name="COMMAND", cpu="%CPU", mem="%MEM")]
    for row in rows:
        table.append(
            _ROW_FORMAT.format(
                pid=row.pid,
                name=row.name[:_NAME_WIDTH],
                cpu=f"{row.cpu_percent:.2f}",
                mem=f"{row.memory_percent:.2f}",
            )
        )
    return table


def render(report: Report, width: int = 80) -> str:
    """
    Render a Report as text, sections in Report field order.

    Args:
        report: The collected report.
        width: Length of the rule drawn under each section title.
    """
    if report.load_average is None:
        load = UNAVAILABLE
    else:
        load = " ".join(f"{value:.2f}" for value in report.load_average)

    lines = [
        f"Server Performance Report - {report.timestamp:%Y-%m-%d %H:%M:%S %Z}".rstrip(),
        f"Host: {_or_unavailable(report.hostname)} | OS: {_or_unavailable(report.os_identity)}",
        f"{report.uptime or 'Uptime N/A'} | load avg (1,5,15): {load}",
    ]

    _section(lines, "CPU Usage", width)
    lines.append(
        f"Total CPU usage: {format_percent(report.cpu_percent)} "
        f"(sample: {report.sample_interval:g}s)"
    )

    _section(lines, "Memory Usage", width)
    mem = report.memory
    if mem is None:
        lines.append(UNAVAILABLE)
    else:
        lines.append(f"Total: {format_kib(mem.total_kib)}")
        lines.append(f"Used : {format_kib(mem.used_kib)} ({format_percent(mem.used_percent)})")
        lines.append(f"Free : {format_kib(mem.available_kib)} (Avail)")

    _section(lines, "Disk Usage (All real filesystems)", width)
    disk = report.disk
    if disk is None:
        lines.append(UNAVAILABLE)
    else:
        lines.append(f"Total: {format_kib(disk.total_kib)}")
        lines.append(f"Used : {format_kib(disk.used_kib)} ({format_percent(disk.used_percent)})")
        lines.append(f"Free : {format_kib(disk.available_kib)}")

    _section(lines, f"Top {report.top_n} Processes by CPU", width)
    lines.extend(_process_table(report.top_cpu))

    _section(lines, f"Top {report.top_n} Processes by Memory", width)
    lines.extend(_process_table(report.top_memory))

    _section(lines, "Extras", width)
    lines.append(f"Logged-in users: {_or_unavailable(report.logged_in_users)}")
    lines.append(
        f"Failed login attempts (since last rotate): {_or_unavailable(report.failed_logins)}"
    )

    return "\n".join(lines) + "\n"
