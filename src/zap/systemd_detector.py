"""
Service-manager (systemd) unit detection.

The cgroup record is consulted first: the first ``*.service`` path segment is
the candidate unit. When the record names no service at all, ``systemctl
status <pid>`` is asked instead and its answer is only trusted when the pid is
the unit's ``MainPID``.

Units that manage sessions or container infrastructure are never reported,
since stopping them would take down far more than the target process.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .command_runner import CommandRunner
from .exceptions import ExternalToolError

logger = logging.getLogger(__name__)

SERVICE_SUFFIX = ".service"
USER_SESSION_PREFIX = "user@"

EXCLUDED_UNITS = frozenset(
    {
        # container runtimes
        "docker.service",
        "podman.service",
        "containerd.service",
        # display and session managers
        "gdm.service",
        "sddm.service",
        "lightdm.service",
        "display-manager.service",
    }
)

_STATUS_MARKERS = "●○×*↻ \t"


def is_excluded_unit(unit: str) -> bool:
    """True for units that must never be offered as a kill target."""
    if unit.startswith(USER_SESSION_PREFIX) and unit.endswith(SERVICE_SUFFIX):
        return True
    return unit in EXCLUDED_UNITS


def parse_cgroup_unit(content: str) -> Optional[str]:
    """
    Find the service unit named in a cgroup record.

    Returns:
        ``None`` when no ``.service`` segment exists, ``""`` when the first one
        found is excluded, otherwise the unit name.
    """
    for line in content.splitlines():
        parts = line.split(":", 2)
        if len(parts) < 3:
            continue
        for segment in parts[2].split("/"):
            if not segment.endswith(SERVICE_SUFFIX):
                continue
            if is_excluded_unit(segment):
                return ""
            return segment
    return None


def parse_status_unit(output: str) -> str:
    """Return the unit named on the first line of ``systemctl status`` output."""
    for line in output.splitlines():
        stripped = line.strip().lstrip(_STATUS_MARKERS)
        if not stripped:
            continue
        token = stripped.split()[0]
        return token if token.endswith(SERVICE_SUFFIX) else ""
    return ""


def parse_main_pid(output: str) -> Optional[int]:
    """Parse ``MainPID=<pid>`` from ``systemctl show`` output."""
    for line in output.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key == "MainPID":
            try:
                return int(value)
            except ValueError:  # policy_guard: allow-silent-handler
                return None
    return None


class SystemdDetector:
    """Determine the systemd unit that owns a process."""

    def __init__(self, proc_root: Path | str = "/proc", runner: Optional[CommandRunner] = None) -> None:
        self.proc_root = Path(proc_root)
        self.runner = runner or CommandRunner()

    def detect(self, pid: int) -> str:
        unit = self._detect_from_cgroup(pid)
        if unit is not None:
            return unit
        return self._detect_from_systemctl(pid)

    def _detect_from_cgroup(self, pid: int) -> Optional[str]:
        cgroup_path = self.proc_root / str(pid) / "cgroup"
        try:
            content = cgroup_path.read_bytes().decode("utf-8", errors="replace")
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Cannot read %s: %s", cgroup_path, exc)
            return None
        return parse_cgroup_unit(content)

    def _detect_from_systemctl(self, pid: int) -> str:
        try:
            output = self.runner.check_output(["systemctl", "status", str(pid)])
        except ExternalToolError as exc:  # policy_guard: allow-silent-handler
            logger.debug("systemctl status %d unavailable: %s", pid, exc)
            return ""

        unit = parse_status_unit(output)
        if not unit or is_excluded_unit(unit):
            return ""
        if not self._is_main_pid(pid, unit):
            logger.debug("Process %d runs inside %s but is not its main process", pid, unit)
            return ""
        return unit

    def _is_main_pid(self, pid: int, unit: str) -> bool:
        try:
            output = self.runner.check_output(["systemctl", "show", "--property=MainPID", unit])
        except ExternalToolError as exc:  # policy_guard: allow-silent-handler
            logger.debug("systemctl show %s failed: %s", unit, exc)
            return False
        return parse_main_pid(output) == pid


def detect(pid: int, *, detector: Optional[SystemdDetector] = None) -> str:
    """Return the managing unit for *pid*, or ``""`` when it is unmanaged."""
    if detector is None:
        from .host import default_services

        detector = default_services().systemd_detector
    return detector.detect(pid)


def is_available(runner: Optional[CommandRunner] = None) -> bool:
    """True when ``systemctl`` is on the search path."""
    return (runner or CommandRunner()).which("systemctl") is not None


def stop_unit(unit: str, *, runner: Optional[CommandRunner] = None) -> None:
    """
    Stop a unit; escalation to a hard kill is governed by the unit itself.

    Raises:
        ExternalToolError: If ``systemctl stop`` fails
    """
    (runner or CommandRunner()).check_output(["systemctl", "stop", unit])


__all__ = [
    "EXCLUDED_UNITS",
    "SystemdDetector",
    "detect",
    "is_available",
    "is_excluded_unit",
    "parse_cgroup_unit",
    "parse_main_pid",
    "parse_status_unit",
    "stop_unit",
]
