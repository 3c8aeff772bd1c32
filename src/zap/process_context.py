"""
Process enrichment: process info plus its supervision context.

Enrichment is per process, never per socket, so batches are deduplicated by
pid first. Each pid is independent and read-only, which lets
:func:`gather_contexts` spread the work across threads.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .container_detector import ContainerInfo
from .exceptions import ProcessNotFoundError
from .host import Services, default_services
from .port_resolver import dedupe_by_pid
from .port_resolver_helpers import Listener
from .process_info import ProcessInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessContext:
    """A process and whatever supervises it."""

    info: ProcessInfo
    container: Optional[ContainerInfo] = None
    systemd_unit: str = ""

    @property
    def pid(self) -> int:
        return self.info.pid

    def is_containerized(self) -> bool:
        return self.container is not None

    def is_systemd_managed(self) -> bool:
        return bool(self.systemd_unit)


@dataclass
class EnrichmentResult:
    """Contexts for every pid that could be inspected, plus per-pid warnings."""

    contexts: List[Tuple[Listener, ProcessContext]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def gather_context(pid: int, port: Optional[int] = None, *, services: Optional[Services] = None) -> ProcessContext:
    """
    Collect process info, container and systemd context for *pid*.

    *port* is only consulted by port-based container detection.

    Raises:
        ProcessNotFoundError: If the process has exited
    """
    svc = services or default_services()
    info = svc.process_reader.gather(pid)
    return ProcessContext(
        info=info,
        container=svc.container_detector.detect(pid, port),
        systemd_unit=svc.systemd_detector.detect(pid),
    )


def gather_contexts(
    listeners: Iterable[Listener],
    *,
    services: Optional[Services] = None,
    max_workers: Optional[int] = None,
) -> EnrichmentResult:
    """Enrich each distinct pid once; vanished processes become warnings."""
    svc = services or default_services()
    unique = dedupe_by_pid(listeners)
    workers = max(1, min(max_workers or svc.enrich_workers, len(unique) or 1))

    def _enrich(listener: Listener) -> Tuple[Listener, Optional[ProcessContext], Optional[str]]:
        try:
            return listener, gather_context(listener.pid, listener.port, services=svc), None
        except ProcessNotFoundError as exc:
            return listener, None, f"could not get info for PID {listener.pid}: {exc}"

    if workers == 1:
        outcomes = [_enrich(listener) for listener in unique]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="zap-enrich") as executor:
            outcomes = list(executor.map(_enrich, unique))

    result = EnrichmentResult()
    for listener, context, warning in outcomes:
        if warning is not None:
            logger.info("%s", warning)
            result.warnings.append(warning)
            continue
        if context is not None:
            result.contexts.append((listener, context))
    return result


__all__ = ["EnrichmentResult", "ProcessContext", "gather_context", "gather_contexts"]
