"""Listener resolution through ``lsof`` for hosts without procfs socket tables.

``lsof -F`` emits one field per line, prefixed by a single identifying
character: ``p`` opens a process set, ``f`` opens a file set, ``t`` is the
file type (``IPv4``/``IPv6``) and ``n`` is the name, e.g. ``*:3000`` or
``[::1]:5432``.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Set, Tuple

from ..command_runner import CommandRunner
from ..query import Query
from .listener_models import Listener, matches_query

logger = logging.getLogger(__name__)

LSOF_COMMAND = ("lsof", "-iTCP", "-sTCP:LISTEN", "-n", "-P", "-F", "ptn")


def _normalize_address(raw: str) -> str:
    if raw in ("*", ""):
        return "0.0.0.0"
    return raw.strip("[]")


def parse_lsof_output(output: str, query: Query) -> List[Listener]:
    """Turn ``lsof -F ptn`` output into listeners matching *query*."""
    listeners: List[Listener] = []
    seen: Set[Tuple[int, int]] = set()

    pid: Optional[int] = None
    protocol = "tcp"
    for line in output.splitlines():
        if not line:
            continue
        field, value = line[0], line[1:]

        if field == "p":
            try:
                pid = int(value)
            except ValueError:  # policy_guard: allow-silent-handler
                pid = None
        elif field == "f":
            protocol = "tcp"
        elif field == "t":
            protocol = "tcp6" if value == "IPv6" else "tcp"
        elif field == "n" and pid is not None:
            address, sep, port_text = value.rpartition(":")
            if not sep:
                continue
            try:
                port = int(port_text)
            except ValueError:  # policy_guard: allow-silent-handler
                continue
            address = _normalize_address(address)
            if not matches_query(query, port, address):
                continue

            key = (pid, port)
            if key in seen:
                continue
            seen.add(key)
            listeners.append(Listener(pid=pid, port=port, protocol=protocol, interface=address))

    return listeners


class LsofListenerResolver:
    """Resolve listeners by delegating the socket/process join to ``lsof``."""

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self.runner = runner or CommandRunner()

    def resolve(self, query: Query, cancel_event: Optional[threading.Event] = None) -> List[Listener]:
        """
        Raises:
            ExternalToolError: If lsof is missing or cannot be run
        """
        result = self.runner.run(LSOF_COMMAND)
        if not result.ok and not result.stdout:
            # lsof exits 1 when nothing matches
            logger.debug("lsof reported no listening sockets (exit %d)", result.returncode)
            return []
        return parse_lsof_output(result.stdout, query)


__all__ = ["LSOF_COMMAND", "LsofListenerResolver", "parse_lsof_output"]
