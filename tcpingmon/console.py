"""Console rendering of tcping results and statistics."""

import shutil
import socket
import time

import click
from PySide6.QtCore import QObject, Slot

from tcpingmon.models import AttemptResult
from tcpingmon.probe import address_family
from tcpingmon.stats import LatencyStats

# Print statistics after this many responses when periodic stats are enabled
STATS_EVERY = 25

STATS_UNAVAILABLE = "stats unavailable: no successful connection attempts"


def format_response(result: AttemptResult, width: int = 0, animate: bool = False) -> str:
    """Render one attempt as a single console line.

    Animated output starts with a carriage return and is padded to the
    terminal width so the next response overwrites it in place.
    """
    if result.is_successful:
        text = (
            f"connected to {result.address}:{result.port}: "
            f"seq={result.sequence}, time={result.time_ms:.3f}ms"
        )
    else:
        code = result.code if result.code is not None else -1
        text = (
            f"{result.address}:{result.port}: code=0x{code & 0xFFFFFFFF:08x}, "
            f"seq={result.sequence}, time={result.time_ms:.3f}ms, "
            f"msg={result.message or 'unknown'}"
        )

    if animate:
        text = "\r" + text
        return text + " " * max(0, width - len(text) - 1)
    return text + "\n"


def format_header(target: str, port: int, addresses: list[str]) -> str:
    if len(addresses) > 1:
        return f"TCPING {target}:{port} ({len(addresses)} IPs: {', '.join(addresses)})"

    address = addresses[0]
    family = "IPv6" if address_family(address) == socket.AF_INET6 else "IPv4"
    return f"TCPING {target}:{port} ({address}): {family}, connect"


def format_options(animate: bool, periodic_stats: bool, real_rtt: bool) -> str:
    parts = []
    if animate:
        parts.append("animated")
    if periodic_stats:
        parts.append(f"periodical ({STATS_EVERY}) stats enabled")
    parts.append("RTT" if real_rtt else "2xRTT")
    return "options: " + ", ".join(parts)


def format_duration(seconds: float) -> str:
    """Format elapsed seconds as HH:MM:SS.mmm."""
    seconds = round(seconds, 3)
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    return f"{hours:02d}:{minutes:02d}:{secs:06.3f}"


def format_statistics(
    address: str, stats: LatencyStats, real_rtt: bool, elapsed_s: float
) -> list[str]:
    """Render the summary block for one address."""
    if stats.failure_percent is None:
        failure = "n/a"
    else:
        failure = f"{stats.failure_percent:.1f}%"

    lines = [
        f"--- {address} tcping statistics ---",
        f"{stats.total} connections attempted, {stats.succeeded} succeeded, "
        f"{failure} failure chance",
    ]

    if stats.latency is None:
        lines.append(STATS_UNAVAILABLE)
    else:
        latency = stats.latency
        prefix = "" if real_rtt else "2x "
        lines.append(
            f"{prefix}round-trip min/avg/max/stddev = "
            f"{latency.min:.3f}/{latency.avg:.3f}/{latency.max:.3f}/{latency.stddev:.3f}ms"
        )

    lines.append(f"time spent: {format_duration(elapsed_s)}")
    return lines


def terminal_width() -> int:
    return shutil.get_terminal_size().columns


def erase_line():
    click.echo("\r" + " " * max(0, terminal_width() - 1) + "\r", nl=False)


class ConsolePrinter(QObject):
    """Writes engine responses to the terminal.

    Lives in the main thread, so a queued connection from the engine's
    responded signal serializes output from all workers.
    """

    def __init__(self, client, animate: bool = False, periodic_stats: bool = False, parent=None):
        super().__init__(parent)
        self.client = client
        self.animate = animate
        self.periodic_stats = periodic_stats
        self._responses = 0
        self._started_at = time.monotonic()

    def mark_started(self):
        self._started_at = time.monotonic()

    @Slot(object)
    def on_responded(self, result: AttemptResult):
        message = format_response(result, terminal_width(), self.animate)
        if result.is_successful:
            click.echo(message, nl=False)
        else:
            click.secho(message, fg="red", err=True, nl=False)

        if self.periodic_stats:
            self._responses += 1
            if self._responses >= STATS_EVERY:
                self._responses %= STATS_EVERY
                erase_line()
                self.print_statistics()

    def print_statistics(self):
        elapsed = time.monotonic() - self._started_at
        real_rtt = self.client.real_rtt
        for address, stats in self.client.statistics().items():
            for line in format_statistics(address, stats, real_rtt, elapsed):
                if line == STATS_UNAVAILABLE:
                    click.secho(line, fg="red", err=True)
                else:
                    click.echo(line)
