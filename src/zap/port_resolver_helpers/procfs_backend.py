"""Kernel-table listener resolution.

Joins the ``/proc/net/{tcp,tcp6,udp,udp6}`` rows to processes by walking every
``/proc/<pid>/fd`` directory and matching ``socket:[<inode>]`` links. The fd
walk, not the table parse, dominates the cost.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..exceptions import DetectionUnavailableError
from ..query import Query
from .listener_models import PROTOCOLS, Listener, matches_query
from .procfs_table import TCP_LISTEN_STATE, read_socket_table

logger = logging.getLogger(__name__)

_SOCKET_LINK_PREFIX = "socket:["


class ProcfsListenerResolver:
    """Resolve listeners from procfs socket tables and per-process fd links."""

    def __init__(self, proc_root: Path | str = "/proc") -> None:
        self.proc_root = Path(proc_root)

    def resolve(self, query: Query, cancel_event: Optional[threading.Event] = None) -> List[Listener]:
        sockets = self._collect_listening_sockets(query)
        if not sockets:
            return []
        return self._join_processes(sockets, cancel_event)

    def _collect_listening_sockets(self, query: Query) -> Dict[int, Tuple[int, str, str]]:
        """Map inode -> (port, protocol, address) for every matching row."""
        sockets: Dict[int, Tuple[int, str, str]] = {}
        for protocol in PROTOCOLS:
            path = self.proc_root / "net" / protocol
            try:
                entries = read_socket_table(path)
            except DetectionUnavailableError as exc:  # policy_guard: allow-silent-handler
                logger.debug("%s", exc)
                continue
            is_udp = protocol.startswith("udp")
            for entry in entries:
                # UDP has no listen state
                if not is_udp and entry.state != TCP_LISTEN_STATE:
                    continue
                if not matches_query(query, entry.local_port, entry.local_address):
                    continue
                sockets[entry.inode] = (entry.local_port, protocol, entry.local_address)
        logger.debug("Found %d matching sockets in socket tables", len(sockets))
        return sockets

    def _join_processes(
        self,
        sockets: Dict[int, Tuple[int, str, str]],
        cancel_event: Optional[threading.Event],
    ) -> List[Listener]:
        listeners: List[Listener] = []
        seen: Set[Tuple[int, int, str]] = set()

        for pid in self._iter_pids():
            if cancel_event is not None and cancel_event.is_set():
                logger.debug("Listener resolution cancelled; returning %d partial results", len(listeners))
                break
            for inode in self._socket_inodes(pid):
                info = sockets.get(inode)
                if info is None:
                    continue
                port, protocol, address = info
                key = (pid, port, protocol)
                if key in seen:
                    continue
                seen.add(key)
                listeners.append(Listener(pid=pid, port=port, protocol=protocol, interface=address))

        return listeners

    def _iter_pids(self) -> Iterator[int]:
        try:
            names = os.listdir(self.proc_root)
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Cannot enumerate processes under %s: %s", self.proc_root, exc)
            return
        for name in names:
            if name.isdigit():
                yield int(name)

    def _socket_inodes(self, pid: int) -> Iterator[int]:
        fd_dir = self.proc_root / str(pid) / "fd"
        try:
            fds = os.listdir(fd_dir)
        except OSError:  # policy_guard: allow-silent-handler
            # exited, or owned by another user
            return
        for fd in fds:
            try:
                link = os.readlink(fd_dir / fd)
            except OSError:  # policy_guard: allow-silent-handler
                continue
            if not link.startswith(_SOCKET_LINK_PREFIX) or not link.endswith("]"):
                continue
            inode_text = link[len(_SOCKET_LINK_PREFIX) : -1]
            if inode_text.isdigit():
                yield int(inode_text)


__all__ = ["ProcfsListenerResolver"]
