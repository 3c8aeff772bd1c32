"""Parse ``[interface:](port | start-port)`` arguments into port queries."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .exceptions import QueryInvalidError

MIN_PORT = 1
MAX_PORT = 65535

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class Query:
    """Validated (interface, port range) filter.

    An empty ``interface`` matches any bound address.
    """

    interface: str
    start_port: int
    end_port: int

    def __post_init__(self) -> None:
        if not (MIN_PORT <= self.start_port <= self.end_port <= MAX_PORT):
            raise QueryInvalidError(
                f"invalid port range {self.start_port}-{self.end_port}",
                start_port=self.start_port,
                end_port=self.end_port,
            )

    @classmethod
    def any_port(cls) -> "Query":
        """Full port space on every interface."""
        return cls(interface="", start_port=MIN_PORT, end_port=MAX_PORT)

    def is_single_port(self) -> bool:
        return self.start_port == self.end_port

    def contains(self, port: int) -> bool:
        return self.start_port <= port <= self.end_port

    def __str__(self) -> str:
        ports = str(self.start_port) if self.is_single_port() else f"{self.start_port}-{self.end_port}"
        return f"{self.interface}:{ports}"


def parse_query(arg: str) -> Query:
    """
    Parse a port argument.

    Supported formats::

        ":3000"          any interface, port 3000
        "3000"           any interface, port 3000
        ":8080-8090"     any interface, ports 8080 through 8090
        "localhost:5432" localhost, port 5432

    Raises:
        QueryInvalidError: If the argument is empty, malformed or out of range
    """
    if not arg:
        raise QueryInvalidError("empty port argument", query=arg)

    interface = ""
    prefix, sep, port_part = arg.rpartition(":")
    if sep:
        # a numeric prefix is not an interface name
        if prefix and not _is_numeric(prefix):
            interface = prefix
    else:
        port_part = arg

    if not port_part:
        raise QueryInvalidError(f"missing port number in {arg!r}", query=arg)

    try:
        start, end = _parse_port_range(port_part)
    except QueryInvalidError as exc:
        raise QueryInvalidError(f"invalid port in {arg!r}: {exc}", query=arg) from exc

    return Query(interface=interface, start_port=start, end_port=end)


def _parse_port_range(text: str) -> tuple[int, int]:
    start_text, sep, end_text = text.partition("-")
    if not sep:
        port = _parse_port(text)
        return port, port

    start = _parse_port(start_text)
    end = _parse_port(end_text)
    if start > end:
        raise QueryInvalidError(f"invalid range: start port {start} > end port {end}")
    return start, end


def _parse_port(text: str) -> int:
    if not _is_numeric(text):
        raise QueryInvalidError(f"{text!r} is not a valid port number")
    port = int(text)
    if port < MIN_PORT or port > MAX_PORT:
        raise QueryInvalidError(f"port {port} out of range ({MIN_PORT}-{MAX_PORT})")
    return port


def _is_numeric(text: str) -> bool:
    # ASCII digits with an optional sign only
    return _INTEGER_RE.fullmatch(text) is not None


__all__ = ["MAX_PORT", "MIN_PORT", "Query", "parse_query"]
