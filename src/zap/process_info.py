"""Per-process metadata: command line, owner, memory, start time, family."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessInfo:
    """Snapshot of one process, built fresh on every gather.

    Fields that could not be read keep their zero value.
    """

    pid: int
    command: str = ""
    executable: str = ""
    user: str = ""
    uid: int = 0
    memory_kb: int = 0
    start_time: Optional[datetime] = None
    parent_pid: int = 0
    children: Tuple[int, ...] = field(default_factory=tuple)

    def uptime_seconds(self, now: Optional[float] = None) -> float:
        """Seconds since the process started, or 0 when the start time is unknown."""
        if self.start_time is None:
            return 0.0
        current = time.time() if now is None else now
        return max(0.0, current - self.start_time.timestamp())


class ProcessReader(Protocol):
    """Platform backend that assembles a :class:`ProcessInfo`."""

    def gather(self, pid: int) -> ProcessInfo: ...


def gather(pid: int, *, reader: Optional[ProcessReader] = None) -> ProcessInfo:
    """
    Collect information about a running process.

    Raises:
        ProcessNotFoundError: If the process does not exist at call time
    """
    if reader is None:
        from .host import default_services

        reader = default_services().process_reader
    info = reader.gather(pid)
    logger.debug("Gathered process %d: %s", pid, info.command or info.executable)
    return info


def is_privileged(info: ProcessInfo, euid: Optional[int] = None) -> bool:
    """True when terminating *info* will likely need elevated privileges."""
    caller = os.geteuid() if euid is None else euid
    return info.uid != caller and caller != 0


__all__ = ["ProcessInfo", "ProcessReader", "gather", "is_privileged"]
