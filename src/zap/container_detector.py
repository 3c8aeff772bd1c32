"""
Container confinement detection.

Two interchangeable detectors are provided:

- :class:`CgroupContainerDetector` reads the process's cgroup record and
  resolves the container name through the runtime CLI (Linux hosts).
- :class:`PortContainerDetector` asks each installed runtime which running
  container publishes the port (hosts where containers run inside a VM and
  cgroups say nothing about them). Best effort: the first container whose
  port mapping contains ``:<port>->`` wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from .container_detector_helpers import (
    RUNTIMES,
    ContainerRuntimeCli,
    parse_cgroup,
    short_id,
)
from .exceptions import ExternalToolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerInfo:
    """Container owning a process. ``None`` in its place means not containerized."""

    id: str
    name: str
    runtime: str

    @property
    def display_name(self) -> str:
        return self.name or short_id(self.id)

    def __str__(self) -> str:
        return f"{self.runtime} container {self.display_name}"


class ContainerDetector(Protocol):
    def detect(self, pid: int, port: Optional[int] = None) -> Optional[ContainerInfo]: ...


class CgroupContainerDetector:
    """Detect containers from ``/proc/<pid>/cgroup`` scope names."""

    def __init__(self, proc_root: Path | str = "/proc", cli: Optional[ContainerRuntimeCli] = None) -> None:
        self.proc_root = Path(proc_root)
        self.cli = cli or ContainerRuntimeCli()

    def detect(self, pid: int, port: Optional[int] = None) -> Optional[ContainerInfo]:
        cgroup_path = self.proc_root / str(pid) / "cgroup"
        try:
            content = cgroup_path.read_bytes().decode("utf-8", errors="replace")
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Cannot read %s: %s", cgroup_path, exc)
            return None

        match = parse_cgroup(content)
        if match is None:
            return None

        runtime = self.cli.resolve_runtime(match.runtime_hint)
        name = self.cli.inspect_name(runtime, match.container_id)
        logger.debug("Process %d runs in %s container %s", pid, runtime, name or short_id(match.container_id))
        return ContainerInfo(id=match.container_id, name=name, runtime=runtime)


class PortContainerDetector:
    """Detect containers by the host port they publish."""

    def __init__(self, cli: Optional[ContainerRuntimeCli] = None) -> None:
        self.cli = cli or ContainerRuntimeCli()

    def detect(self, pid: int, port: Optional[int] = None) -> Optional[ContainerInfo]:
        if port is None:
            return None
        needle = f":{port}->"
        for runtime in RUNTIMES:
            if not self.cli.is_installed(runtime):
                continue
            try:
                listings = self.cli.list_running(runtime)
            except ExternalToolError as exc:  # policy_guard: allow-silent-handler
                logger.debug("%s ps failed: %s", runtime, exc)
                continue
            for listing in listings:
                if needle in listing.ports:
                    return ContainerInfo(id=listing.id, name=listing.name, runtime=runtime)
        return None


def detect(pid: int, port: Optional[int] = None, *, detector: Optional[ContainerDetector] = None) -> Optional[ContainerInfo]:
    """Return the container confining *pid*, or ``None`` when it is not containerized."""
    if detector is None:
        from .host import default_services

        detector = default_services().container_detector
    return detector.detect(pid, port)


def stop_container(info: ContainerInfo, *, force: bool = False, cli: Optional[ContainerRuntimeCli] = None) -> None:
    """
    Stop (or, with *force*, kill) a container by id.

    Raises:
        ExternalToolError: If the runtime command fails
    """
    runtime_cli = cli or ContainerRuntimeCli()
    if force:
        runtime_cli.kill(info.runtime, info.id)
    else:
        runtime_cli.stop(info.runtime, info.id)


__all__ = [
    "CgroupContainerDetector",
    "ContainerDetector",
    "ContainerInfo",
    "PortContainerDetector",
    "detect",
    "short_id",
    "stop_container",
]
