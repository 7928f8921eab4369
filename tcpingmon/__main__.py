"""Entry point for the tcping console tool."""

import logging
import os
import signal
import sys

import click
from PySide6.QtCore import QCoreApplication, QTimer

from tcpingmon.client import DEFAULT_PORT, TcpingClient
from tcpingmon.console import ConsolePrinter, erase_line, format_header, format_options
from tcpingmon.logging_config import configure_logging
from tcpingmon.probe import DEFAULT_TIMEOUT_MS
from tcpingmon.prober import Prober, TcpProber
from tcpingmon.resolve import ResolveError, resolve_addresses

logger = logging.getLogger(__name__)

# Ctrl+C presses before the process is killed without waiting for workers
FORCE_QUIT_PRESSES = 3
LIVENESS_POLL_MS = 100


def select_prober() -> Prober:
    """Pick the prober, honouring TCPING_PROBER=fake for simulated runs."""
    if os.environ.get("TCPING_PROBER", "").lower() == "fake":
        from tcpingmon.fake_prober import FakeProber

        logger.info("Using FakeProber (TCPING_PROBER=fake)")
        click.secho("warning: using simulated connect times (TCPING_PROBER=fake)", fg="yellow", err=True)
        return FakeProber()
    return TcpProber()


@click.command(context_settings={"help_option_names": ["-h", "-?", "--help"]})
@click.argument("target")
@click.option("-p", "--port", default=DEFAULT_PORT, show_default=True,
              type=click.IntRange(1, 65535), help="Target port.")
@click.option("-t", "--timeout", "timeout_ms", default=DEFAULT_TIMEOUT_MS, show_default=True,
              type=click.IntRange(min=1), help="Connect timeout in ms.")
@click.option("-m", "--multiple", is_flag=True,
              help="Ping every resolved IP simultaneously.")
@click.option("-a", "--animate", is_flag=True,
              help="Animate output into a single line (not with multiple IPs).")
@click.option("-s", "--stats", "periodic_stats", is_flag=True,
              help="Periodically print statistics.")
@click.option("-r", "--rtt", "real_rtt", is_flag=True,
              help="Show half of the connect time (~actual RTT) instead of ~2x RTT.")
@click.version_option(package_name="tcpingmon")
def main(target: str, port: int, timeout_ms: int, multiple: bool,
         animate: bool, periodic_stats: bool, real_rtt: bool):
    """
    Ping TARGET (domain, hostname or IP) by timing TCP connections.

    Examples:

        tcping example.com

        tcping 192.0.2.10 -p 443 -t 2000 -s

        tcping example.com -m -r
    """
    configure_logging()
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    click.echo("Resolving addresses...", nl=False)
    try:
        addresses = resolve_addresses(target, allow_multiple=multiple)
    except ResolveError as e:
        erase_line()
        click.secho(f"Supplied hostname ({target}) cannot be resolved: {e}", fg="red", err=True)
        sys.exit(1)
    erase_line()

    click.echo(format_header(target, port, addresses))
    if animate and len(addresses) > 1:
        animate = False
        click.echo("warning: animation disabled for multiple IPs.")
    click.echo(format_options(animate, periodic_stats, real_rtt))

    client = TcpingClient(addresses, port, timeout_ms=timeout_ms, real_rtt=real_rtt,
                          prober=select_prober())
    printer = ConsolePrinter(client, animate=animate, periodic_stats=periodic_stats)
    client.responded.connect(printer.on_responded)

    presses = 0

    def on_interrupt(signum, frame):
        nonlocal presses
        presses += 1
        remaining = FORCE_QUIT_PRESSES - presses
        if remaining <= 0:
            click.secho("Terminating by force...", fg="red", err=True)
            os._exit(1)

        erase_line()
        plural = "" if remaining == 1 else "s"
        click.echo(f"Stopping... Press {remaining} time{plural} more to perform force quit.")
        client.stop(force=True)

    signal.signal(signal.SIGINT, on_interrupt)

    # The timer also hands control back to Python so SIGINT is delivered
    def check_finished():
        if not client.is_active:
            app.quit()

    timer = QTimer()
    timer.timeout.connect(check_finished)

    client.start()
    printer.mark_started()
    timer.start(LIVENESS_POLL_MS)
    app.exec()
    timer.stop()

    # Deliver responses queued before the last worker exited
    QCoreApplication.processEvents()
    if animate:
        click.echo()
    printer.print_statistics()


if __name__ == "__main__":
    main()
