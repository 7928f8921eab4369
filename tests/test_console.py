"""Tests for console rendering of responses and statistics."""

import errno

import pytest

from tcpingmon import console
from tcpingmon.console import (
    STATS_EVERY,
    STATS_UNAVAILABLE,
    ConsolePrinter,
    format_duration,
    format_header,
    format_options,
    format_response,
    format_statistics,
)
from tcpingmon.errors import ConnectError, ProbeTimeout
from tcpingmon.models import AttemptResult
from tcpingmon.stats import compute_stats

pytestmark = pytest.mark.usefixtures("qapp")


class TestFormatResponse:
    """Test single-line response formatting."""

    def test_success(self):
        result = AttemptResult("192.0.2.1", 80, 3, 12.3456)
        assert format_response(result) == "connected to 192.0.2.1:80: seq=3, time=12.346ms\n"

    def test_connect_error(self):
        error = ConnectError(errno.ECONNREFUSED, "Connection refused", 0.25)
        result = AttemptResult("192.0.2.1", 80, 4, 0.25, error)

        assert format_response(result) == (
            f"192.0.2.1:80: code=0x{errno.ECONNREFUSED:08x}, seq=4, time=0.250ms, "
            "msg=Connection refused\n"
        )

    def test_timeout_has_no_code(self):
        result = AttemptResult("192.0.2.1", 80, 1, 5000.0, ProbeTimeout(5000.0))
        line = format_response(result)

        assert "code=0xffffffff" in line
        assert "msg=Timed out waiting for response" in line

    def test_animated_pads_to_width(self):
        result = AttemptResult("192.0.2.1", 80, 1, 1.0)
        line = format_response(result, width=80, animate=True)

        assert line.startswith("\rconnected to 192.0.2.1:80")
        assert not line.endswith("\n")
        assert len(line) == 79


class TestFormatHeader:
    """Test header and options lines."""

    def test_single_ipv4(self):
        assert format_header("example.test", 443, ["192.0.2.1"]) == (
            "TCPING example.test:443 (192.0.2.1): IPv4, connect"
        )

    def test_single_ipv6(self):
        assert format_header("example.test", 80, ["2001:db8::1"]).endswith("IPv6, connect")

    def test_multiple(self):
        assert format_header("example.test", 80, ["192.0.2.1", "192.0.2.2"]) == (
            "TCPING example.test:80 (2 IPs: 192.0.2.1, 192.0.2.2)"
        )

    def test_options(self):
        assert format_options(False, False, False) == "options: 2xRTT"
        assert format_options(True, True, True) == (
            f"options: animated, periodical ({STATS_EVERY}) stats enabled, RTT"
        )


class TestFormatStatistics:
    """Test the statistics block."""

    def test_raw(self):
        lines = format_statistics("192.0.2.1", compute_stats([10.0, 20.0, 30.0]), False, 61.5)

        assert lines == [
            "--- 192.0.2.1 tcping statistics ---",
            "3 connections attempted, 3 succeeded, 0.0% failure chance",
            "2x round-trip min/avg/max/stddev = 10.000/20.000/30.000/10.000ms",
            "time spent: 00:01:01.500",
        ]

    def test_real_rtt_drops_prefix(self):
        stats = compute_stats([10.0, 20.0, 30.0], real_rtt=True)
        lines = format_statistics("192.0.2.1", stats, True, 0)

        assert lines[2] == "round-trip min/avg/max/stddev = 5.000/10.000/15.000/5.000ms"

    def test_unavailable(self):
        lines = format_statistics("192.0.2.1", compute_stats([0.0, 0.0]), False, 1)

        assert lines[1] == "2 connections attempted, 0 succeeded, 100.0% failure chance"
        assert lines[2] == STATS_UNAVAILABLE

    def test_no_attempts(self):
        lines = format_statistics("192.0.2.1", compute_stats([]), False, 0)
        assert lines[1] == "0 connections attempted, 0 succeeded, n/a failure chance"

    def test_format_duration(self):
        assert format_duration(0) == "00:00:00.000"
        assert format_duration(3725.25) == "01:02:05.250"

    def test_format_duration_carries_rounded_seconds(self):
        assert format_duration(59.9996) == "00:01:00.000"
        assert format_duration(3599.9999) == "01:00:00.000"
        assert format_duration(59.9994) == "00:00:59.999"


class FakeClient:
    """Minimal stand-in exposing what ConsolePrinter reads."""

    real_rtt = False

    def __init__(self, samples):
        self.samples = samples

    def statistics(self):
        return {"192.0.2.1": compute_stats(self.samples, self.real_rtt)}


class TestConsolePrinter:
    """Test output routing of ConsolePrinter."""

    def test_success_to_stdout_failure_to_stderr(self, capsys, monkeypatch):
        monkeypatch.setattr(console, "terminal_width", lambda: 80)
        printer = ConsolePrinter(FakeClient([10.0]))

        printer.on_responded(AttemptResult("192.0.2.1", 80, 1, 10.0))
        printer.on_responded(AttemptResult("192.0.2.1", 80, 2, 5000.0, ProbeTimeout(5000.0)))

        captured = capsys.readouterr()
        assert "connected to 192.0.2.1:80: seq=1" in captured.out
        assert "seq=2" in captured.err
        assert "seq=2" not in captured.out

    def test_periodic_statistics(self, capsys, monkeypatch):
        monkeypatch.setattr(console, "terminal_width", lambda: 80)
        printer = ConsolePrinter(FakeClient([10.0]), periodic_stats=True)

        for sequence in range(1, STATS_EVERY):
            printer.on_responded(AttemptResult("192.0.2.1", 80, sequence, 10.0))
        assert "tcping statistics" not in capsys.readouterr().out

        printer.on_responded(AttemptResult("192.0.2.1", 80, STATS_EVERY, 10.0))
        assert "--- 192.0.2.1 tcping statistics ---" in capsys.readouterr().out

    def test_unavailable_goes_to_stderr(self, capsys):
        printer = ConsolePrinter(FakeClient([0.0]))
        printer.print_statistics()

        captured = capsys.readouterr()
        assert STATS_UNAVAILABLE in captured.err
        assert "1 connections attempted" in captured.out
