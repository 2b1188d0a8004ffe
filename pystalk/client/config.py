"""Client configuration."""

from dataclasses import dataclass
from typing import Optional, Tuple


DEFAULT_HOST = "localhost"
DEFAULT_PORT = 11300


def parse_address(address: str) -> Tuple[str, Optional[int]]:
    """Split ``"host"``, ``"host:port"`` or ``"[v6-host]:port"``.

    Returns:
        The host and the port, or None when the address has no port.

    Raises:
        ValueError: For a bare IPv6 literal, an empty host or a bad port.
    """
    if address.startswith("["):
        host, bracket, rest = address[1:].partition("]")
        if not bracket or (rest and not rest.startswith(":")):
            raise ValueError(f"Malformed bracketed address: {address!r}")
        port = rest[1:] if rest else None
    elif address.count(":") > 1:
        raise ValueError(f"IPv6 addresses must be bracketed: {address!r}")
    else:
        host, sep, port = address.partition(":")
        if not sep:
            port = None

    if not host:
        raise ValueError(f"Missing host in address: {address!r}")
    if port is None:
        return host, None
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"Invalid port in address: {address!r}") from None


@dataclass
class ClientConfig:
    """Configuration for a beanstalkd connection.

    ``connect_timeout`` only bounds the TCP handshake. Once connected the
    socket is blocking, so ``reserve`` without a timeout can wait forever.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    connect_timeout: Optional[float] = 10.0
    encoding: str = "utf-8"

    @classmethod
    def from_address(cls, address: str, **kwargs) -> "ClientConfig":
        """Build a config from ``"host"``, ``"host:port"`` or ``"[::1]:port"``."""
        host, port = parse_address(address)
        if port is None:
            return cls(host=host, **kwargs)
        return cls(host=host, port=port, **kwargs)
