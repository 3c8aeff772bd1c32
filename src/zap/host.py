"""
Host capability probing and default service wiring.

Implementations are chosen at startup from what the machine actually exposes
rather than by platform name alone, and the result is cached until
:func:`reset_default_services` is called.
"""

from __future__ import annotations

import logging
import platform
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .command_runner import CommandRunner
from .config import ZapConfig, get_config
from .container_detector import CgroupContainerDetector, ContainerDetector, PortContainerDetector
from .container_detector_helpers import ContainerRuntimeCli
from .port_resolver import ListenerResolver
from .port_resolver_helpers import LsofListenerResolver, ProcfsListenerResolver
from .process_info import ProcessReader
from .process_info_helpers import ProcfsProcessReader, PsutilProcessReader
from .systemd_detector import SystemdDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostCapabilities:
    """What the host exposes for process and socket inspection."""

    system: str
    has_socket_tables: bool
    has_process_records: bool
    has_cgroup_records: bool


@dataclass(frozen=True)
class Services:
    """The concrete implementations every core operation runs against."""

    listener_resolver: ListenerResolver
    process_reader: ProcessReader
    container_detector: ContainerDetector
    systemd_detector: SystemdDetector
    container_cli: ContainerRuntimeCli
    runner: CommandRunner
    enrich_workers: int = 1


def probe_host(proc_root: Path | str = "/proc") -> HostCapabilities:
    root = Path(proc_root)
    return HostCapabilities(
        system=platform.system(),
        has_socket_tables=(root / "net" / "tcp").is_file(),
        has_process_records=(root / "stat").is_file(),
        has_cgroup_records=(root / "self" / "cgroup").is_file(),
    )


def build_services(
    config: Optional[ZapConfig] = None,
    *,
    capabilities: Optional[HostCapabilities] = None,
    runner: Optional[CommandRunner] = None,
) -> Services:
    """Wire default implementations for the probed host and configuration."""
    cfg = config or get_config()
    caps = capabilities or probe_host(cfg.proc_root)
    command_runner = runner or CommandRunner(timeout_seconds=cfg.command_timeout_seconds)
    cli = ContainerRuntimeCli(command_runner)

    listener_resolver: ListenerResolver
    if cfg.listener_backend == "procfs" or (cfg.listener_backend == "auto" and caps.has_socket_tables):
        listener_resolver = ProcfsListenerResolver(cfg.proc_root)
    else:
        listener_resolver = LsofListenerResolver(command_runner)

    process_reader: ProcessReader
    if caps.has_process_records:
        process_reader = ProcfsProcessReader(cfg.proc_root, clock_ticks=cfg.clock_ticks)
    else:
        process_reader = PsutilProcessReader()

    container_detector: ContainerDetector
    use_cgroups = caps.system == "Linux" and caps.has_cgroup_records
    if cfg.container_detection == "cgroup" or (cfg.container_detection == "auto" and use_cgroups):
        container_detector = CgroupContainerDetector(cfg.proc_root, cli)
    else:
        container_detector = PortContainerDetector(cli)

    logger.debug(
        "Host %s: listeners via %s, processes via %s, containers via %s",
        caps.system,
        type(listener_resolver).__name__,
        type(process_reader).__name__,
        type(container_detector).__name__,
    )
    return Services(
        listener_resolver=listener_resolver,
        process_reader=process_reader,
        container_detector=container_detector,
        systemd_detector=SystemdDetector(cfg.proc_root, command_runner),
        container_cli=cli,
        runner=command_runner,
        enrich_workers=cfg.enrich_workers,
    )


_services: Services | None = None
_services_lock = threading.Lock()


def default_services() -> Services:
    """Get or build the shared services for this host."""
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services()
        return _services


def reset_default_services() -> None:
    global _services
    with _services_lock:
        _services = None


__all__ = [
    "HostCapabilities",
    "Services",
    "build_services",
    "default_services",
    "probe_host",
    "reset_default_services",
]
