from __future__ import annotations

"""Listener records and address matching shared by every resolver backend."""


from dataclasses import dataclass

from ..query import Query

PROTOCOLS = ("tcp", "tcp6", "udp", "udp6")
WILDCARD_ADDRESSES = frozenset({"0.0.0.0", "::"})


@dataclass(frozen=True)
class Listener:
    """A socket observed listening at resolution time.

    Not a live handle: the pid may have exited before anything acts on it.
    """

    pid: int
    port: int
    protocol: str
    interface: str


def matches_interface(query: Query, address: str) -> bool:
    """Return True when *address* satisfies the query's interface filter."""
    if not query.interface:
        return True
    return address == query.interface or address in WILDCARD_ADDRESSES


def matches_query(query: Query, port: int, address: str) -> bool:
    return query.contains(port) and matches_interface(query, address)


__all__ = ["Listener", "PROTOCOLS", "WILDCARD_ADDRESSES", "matches_interface", "matches_query"]
