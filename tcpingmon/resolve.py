"""Turn a user-supplied target into IP addresses for the engine."""

import ipaddress
import logging
import socket

logger = logging.getLogger(__name__)


class ResolveError(ValueError):
    """The target could not be turned into at least one IP address."""


def resolve_addresses(host: str, allow_multiple: bool = False) -> list[str]:
    """Resolve a host name or IP literal.

    IP literals are returned unchanged without a lookup. Host names go
    through getaddrinfo; duplicate addresses are dropped, keeping the
    resolver's order.

    Args:
        host: Host name, IPv4 or IPv6 literal
        allow_multiple: Return every address instead of only the first

    Returns:
        Non-empty list of address strings

    Raises:
        ResolveError: Empty host or lookup failure
    """
    host = host.strip() if host else ""
    if not host:
        raise ResolveError("Host cannot be empty")

    try:
        return [str(ipaddress.ip_address(host))]
    except ValueError:
        pass

    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise ResolveError(f"Cannot resolve hostname '{host}': {e}") from e

    addresses = list(dict.fromkeys(info[4][0] for info in infos))
    if not addresses:
        raise ResolveError(f"No addresses found for '{host}'")

    logger.debug("Resolved %s -> %s", host, ", ".join(addresses))
    return addresses if allow_multiple else addresses[:1]
