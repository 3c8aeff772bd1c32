"""Assemble :class:`ProcessInfo` from ``/proc/<pid>`` records (Linux).

Every field comes from an independent record and is read failure-tolerant:
a missing or unreadable record leaves that field at its zero value.
"""

from __future__ import annotations

import logging
import os
import pwd
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..exceptions import ProcessNotFoundError
from ..process_info import ProcessInfo

logger = logging.getLogger(__name__)

# Index of starttime among the stat fields that follow the ")" closing comm
_STAT_STARTTIME_INDEX = 19


def read_record(path: Path) -> str:
    """Decode a proc record, replacing bytes that are not valid UTF-8 (comm may hold any bytes)."""
    return path.read_bytes().decode("utf-8", errors="replace")


def lookup_user(uid: int) -> str:
    """Resolve *uid* to a user name, falling back to the numeric string."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:  # policy_guard: allow-silent-handler
        return str(uid)


def parse_cmdline(raw: bytes) -> str:
    """Join NUL-separated argv tokens with spaces, dropping empty tokens."""
    parts = [part for part in raw.decode("utf-8", errors="replace").split("\x00") if part]
    return " ".join(parts)


def parse_status(content: str) -> Tuple[int, Optional[int], int]:
    """Return ``(ppid, real uid, VmRSS kB)`` from a status record."""
    ppid = 0
    uid: Optional[int] = None
    rss_kb = 0
    for line in content.splitlines():
        key, _, value = line.partition(":")
        fields = value.split()
        if not fields:
            continue
        try:
            if key == "PPid":
                ppid = int(fields[0])
            elif key == "Uid":
                uid = int(fields[0])
            elif key == "VmRSS":
                rss_kb = int(fields[0])
        except ValueError:  # policy_guard: allow-silent-handler
            logger.debug("Unparseable status line: %r", line)
    return ppid, uid, rss_kb


def parse_start_ticks(stat: str) -> Optional[int]:
    """Extract starttime (clock ticks since boot) from a stat record.

    comm is parenthesised and may contain spaces or ")", so fields are
    counted from the last ")".
    """
    idx = stat.rfind(")")
    if idx < 0:
        return None
    fields = stat[idx + 1 :].split()
    if len(fields) <= _STAT_STARTTIME_INDEX:
        return None
    try:
        return int(fields[_STAT_STARTTIME_INDEX])
    except ValueError:  # policy_guard: allow-silent-handler
        return None


def parse_boot_time(content: str) -> Optional[int]:
    """Return the ``btime`` value (epoch seconds) from the system stat record."""
    for line in content.splitlines():
        if line.startswith("btime "):
            fields = line.split()
            if len(fields) >= 2:
                try:
                    return int(fields[1])
                except ValueError:  # policy_guard: allow-silent-handler
                    return None
    return None


class ProcfsProcessReader:
    """Reads process metadata straight from the proc filesystem."""

    def __init__(
        self,
        proc_root: Path | str = "/proc",
        *,
        clock_ticks: int = 100,
        user_lookup: Callable[[int], str] = lookup_user,
    ) -> None:
        self.proc_root = Path(proc_root)
        self.clock_ticks = clock_ticks
        self._user_lookup = user_lookup

    def gather(self, pid: int) -> ProcessInfo:
        proc_dir = self.proc_root / str(pid)
        if not proc_dir.is_dir():
            raise ProcessNotFoundError(pid=pid)

        ppid, uid, rss_kb = self._read_status(proc_dir)
        user = self._user_lookup(uid) if uid is not None else ""

        return ProcessInfo(
            pid=pid,
            command=self._read_command(proc_dir),
            executable=self._read_executable(proc_dir),
            user=user,
            uid=uid if uid is not None else 0,
            memory_kb=rss_kb,
            start_time=self._read_start_time(proc_dir),
            parent_pid=ppid,
            children=tuple(self.find_children(pid)),
        )

    def _read_command(self, proc_dir: Path) -> str:
        try:
            return parse_cmdline((proc_dir / "cmdline").read_bytes())
        except OSError:  # policy_guard: allow-silent-handler
            return ""

    def _read_executable(self, proc_dir: Path) -> str:
        try:
            return os.readlink(proc_dir / "exe")
        except OSError:  # policy_guard: allow-silent-handler
            return ""

    def _read_status(self, proc_dir: Path) -> Tuple[int, Optional[int], int]:
        try:
            return parse_status(read_record(proc_dir / "status"))
        except OSError:  # policy_guard: allow-silent-handler
            return 0, None, 0

    def _read_start_time(self, proc_dir: Path) -> Optional[datetime]:
        try:
            ticks = parse_start_ticks(read_record(proc_dir / "stat"))
        except OSError:  # policy_guard: allow-silent-handler
            return None
        if ticks is None:
            return None

        boot_time = self.read_boot_time()
        if boot_time is None:
            return None
        return datetime.fromtimestamp(boot_time + ticks / self.clock_ticks, tz=timezone.utc)

    def read_boot_time(self) -> Optional[int]:
        try:
            return parse_boot_time(read_record(self.proc_root / "stat"))
        except OSError:  # policy_guard: allow-silent-handler
            return None

    def find_children(self, pid: int) -> List[int]:
        """Direct children, from the kernel's children record or a ppid scan."""
        children_path = self.proc_root / str(pid) / "task" / str(pid) / "children"
        try:
            content = read_record(children_path)
        except OSError:  # policy_guard: allow-silent-handler
            return self._scan_children(pid)
        return [int(token) for token in content.split() if token.isdigit()]

    def _scan_children(self, pid: int) -> List[int]:
        children: List[int] = []
        try:
            names = os.listdir(self.proc_root)
        except OSError:  # policy_guard: allow-silent-handler
            return children
        for name in names:
            if not name.isdigit() or int(name) == pid:
                continue
            ppid, _, _ = self._read_status(self.proc_root / name)
            if ppid == pid:
                children.append(int(name))
        return sorted(children)


__all__ = [
    "ProcfsProcessReader",
    "lookup_user",
    "parse_boot_time",
    "parse_cmdline",
    "parse_start_ticks",
    "parse_status",
    "read_record",
]
