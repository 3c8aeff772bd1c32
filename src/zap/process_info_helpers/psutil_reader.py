"""Assemble :class:`ProcessInfo` through psutil on hosts without procfs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

import psutil

from ..exceptions import ProcessNotFoundError
from ..process_info import ProcessInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _read_field(pid: int, name: str, getter: Callable[[], T], default: T) -> T:
    try:
        return getter()
    except (psutil.AccessDenied, psutil.ZombieProcess, psutil.NoSuchProcess, OSError) as exc:  # policy_guard: allow-silent-handler
        logger.debug("Could not read %s for process %d: %s", name, pid, exc)
        return default


class PsutilProcessReader:
    """Reads process metadata with psutil."""

    def gather(self, pid: int) -> ProcessInfo:
        try:
            proc = psutil.Process(pid)
        except psutil.NoSuchProcess as exc:
            raise ProcessNotFoundError(pid=pid) from exc

        uid = _read_field(pid, "uid", lambda: proc.uids().real, None)
        user = _read_field(pid, "user", proc.username, "")
        if not user and uid is not None:
            user = str(uid)

        return ProcessInfo(
            pid=pid,
            command=" ".join(arg for arg in _read_field(pid, "cmdline", proc.cmdline, []) if arg),
            executable=_read_field(pid, "exe", proc.exe, ""),
            user=user,
            uid=uid if uid is not None else 0,
            memory_kb=_read_field(pid, "rss", lambda: proc.memory_info().rss // 1024, 0),
            start_time=_read_field(pid, "create_time", lambda: _to_datetime(proc.create_time()), None),
            parent_pid=_read_field(pid, "ppid", proc.ppid, 0),
            children=tuple(_read_field(pid, "children", lambda: _child_pids(proc), [])),
        )


def _to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _child_pids(proc: Any) -> list[int]:
    return sorted(child.pid for child in proc.children())


__all__ = ["PsutilProcessReader"]
