"""Single TCP connect attempt with timing, timeout and cancellation."""

import errno
import ipaddress
import logging
import os
import selectors
import socket
import threading
import time

from tcpingmon.errors import ConnectError, ProbeCancelled, ProbeTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000

# Granularity at which a waiting connect notices the caller's cancellation
CANCEL_CHECK_INTERVAL_S = 0.01

_IN_PROGRESS = {
    errno.EINPROGRESS,
    errno.EWOULDBLOCK,
    errno.EALREADY,
    getattr(errno, "WSAEWOULDBLOCK", errno.EWOULDBLOCK),
}


def tcping(address: str, port: int, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> float:
    """Connect to address:port once and return the connect time in milliseconds.

    Blocks the calling thread until the handshake completes, fails or the
    timeout elapses. The returned time covers SYN, SYN-ACK and ACK, so it is
    roughly twice the one-way round-trip time.

    Raises:
        ProbeTimeout: timeout_ms elapsed before the connection completed.
        ConnectError: the OS reported an error (refused, unreachable, ...).
        ValueError: invalid address, port or timeout.
    """
    return _measure(address, port, timeout_ms, cancel=None, slice_s=None)


def tcping_interruptible(
    address: str, port: int, timeout_ms: int, cancel: threading.Event
) -> float:
    """Like tcping(), but gives up with ProbeCancelled once cancel is set.

    The connect wait is split into CANCEL_CHECK_INTERVAL_S slices so a stop
    request is observed quickly instead of at the timeout boundary. The
    timeout is tracked separately from cancel, so a cancelled attempt is
    never reported as a timeout.
    """
    return _measure(address, port, timeout_ms, cancel=cancel, slice_s=CANCEL_CHECK_INTERVAL_S)


def address_family(address: str) -> int:
    """Return the socket family for an IP literal, ValueError otherwise."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        raise ValueError(f"not an IP address: {address!r}") from None
    return socket.AF_INET6 if ip.version == 6 else socket.AF_INET


def _measure(
    address: str,
    port: int,
    timeout_ms: int,
    cancel: threading.Event | None,
    slice_s: float | None,
) -> float:
    if timeout_ms <= 0:
        raise ValueError("timeout_ms must be positive")
    if not 1 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    family = address_family(address)

    if cancel is not None and cancel.is_set():
        raise ProbeCancelled()

    start = time.perf_counter()
    deadline = start + timeout_ms / 1000.0

    try:
        sock = _open_socket(family)
    except OSError as e:
        raise _connect_error(e, start) from e

    with sock:
        try:
            result = sock.connect_ex((address, port))
        except OSError as e:
            raise _connect_error(e, start) from e

        if result in _IN_PROGRESS:
            while True:
                if cancel is not None and cancel.is_set():
                    raise ProbeCancelled(_elapsed_ms(start))
                remaining = deadline - time.perf_counter()
                if remaining <= 0:
                    raise ProbeTimeout(_elapsed_ms(start))
                wait_s = remaining if slice_s is None else min(remaining, slice_s)
                if _wait_writable(sock, wait_s):
                    break
            result = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)

        elapsed = _elapsed_ms(start)
        if result != 0:
            logger.debug("Connect failed: %s:%d errno=%d", address, port, result)
            raise ConnectError(result, os.strerror(result), elapsed)

    logger.debug("Connected: %s:%d time=%.3fms", address, port, elapsed)
    return elapsed


def _open_socket(family: int) -> socket.socket:
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setblocking(False)
    return sock


def _wait_writable(sock: socket.socket, timeout_s: float) -> bool:
    """Wait until a pending connect finishes, successfully or not."""
    with selectors.DefaultSelector() as selector:
        selector.register(sock, selectors.EVENT_WRITE)
        return bool(selector.select(timeout_s))


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def _connect_error(error: OSError, start: float) -> ConnectError:
    code = error.errno if error.errno is not None else -1
    return ConnectError(code, error.strerror or str(error), _elapsed_ms(start))
