"""
Listener resolution: which processes own sockets matching a port query.

The concrete backend (procfs tables or lsof) is chosen once by
:mod:`zap.host` from what the machine exposes; callers may pass any object
satisfying :class:`ListenerResolver` instead.

Usage:
    from zap.port_resolver import resolve, dedupe_by_pid
    from zap.query import parse_query

    listeners = dedupe_by_pid(resolve(parse_query(":3000")))
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Protocol

from .port_resolver_helpers import Listener
from .query import Query

logger = logging.getLogger(__name__)


class ListenerResolver(Protocol):
    """Minimal contract shared by every listener backend."""

    def resolve(self, query: Query, cancel_event: Optional[threading.Event] = None) -> List[Listener]: ...


def _default_resolver() -> ListenerResolver:
    from .host import default_services

    return default_services().listener_resolver


def resolve(
    query: Query,
    *,
    resolver: Optional[ListenerResolver] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[Listener]:
    """
    Return every listener matching *query*.

    Listeners are per socket, so one pid may appear several times; use
    :func:`dedupe_by_pid` before per-process work.

    Raises:
        ExternalToolError: Only when the external-tool backend is the sole
            discovery mechanism and it cannot run
    """
    backend = resolver or _default_resolver()
    listeners = backend.resolve(query, cancel_event=cancel_event)
    logger.debug("Resolved %d listeners for %s via %s", len(listeners), query, type(backend).__name__)
    return listeners


def resolve_all(
    *,
    resolver: Optional[ListenerResolver] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[Listener]:
    """Resolve listeners across the whole port space on every interface."""
    return resolve(Query.any_port(), resolver=resolver, cancel_event=cancel_event)


def dedupe_by_pid(listeners: Iterable[Listener]) -> List[Listener]:
    """Keep the first listener seen for each pid, preserving order."""
    seen: set[int] = set()
    unique: List[Listener] = []
    for listener in listeners:
        if listener.pid in seen:
            continue
        seen.add(listener.pid)
        unique.append(listener)
    return unique


__all__ = ["Listener", "ListenerResolver", "dedupe_by_pid", "resolve", "resolve_all"]
