"""
Termination strategies: pick, describe and carry out the safest way to stop
a process.

Supervisors restart what they own, so a containerized process is stopped
through its runtime and a systemd-managed one through ``systemctl``; a raw
signal is reserved for unsupervised processes. Failures propagate to the
caller as :class:`~zap.exceptions.ExecutionError`; there is never a silent
switch to another strategy.
"""

from __future__ import annotations

import logging
import signal
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import psutil

from .container_detector import ContainerInfo, stop_container
from .container_detector_helpers import ContainerRuntimeCli
from .exceptions import ExecutionError, ExternalToolError, ProcessNotFoundError
from .host import Services, default_services
from .process_context import ProcessContext
from .systemd_detector import stop_unit

logger = logging.getLogger(__name__)


class Strategy(Enum):
    """How a process will be stopped."""

    SIGNAL = "signal"  # SIGTERM, or SIGKILL when forced
    CONTAINER = "container"  # runtime stop, or kill when forced
    SYSTEMD = "systemd"  # systemctl stop

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Action:
    """A fully determined termination request."""

    strategy: Strategy
    context: ProcessContext
    force: bool = False


def recommend(context: ProcessContext) -> Strategy:
    """Container beats systemd beats signal."""
    if context.is_containerized():
        return Strategy.CONTAINER
    if context.is_systemd_managed():
        return Strategy.SYSTEMD
    return Strategy.SIGNAL


def available_strategies(context: ProcessContext) -> List[Strategy]:
    """Every applicable strategy, in recommendation order."""
    strategies: List[Strategy] = []
    if context.is_containerized():
        strategies.append(Strategy.CONTAINER)
    if context.is_systemd_managed():
        strategies.append(Strategy.SYSTEMD)
    strategies.append(Strategy.SIGNAL)
    return strategies


def _signal_name(force: bool) -> str:
    return "SIGKILL" if force else "SIGTERM"


def describe(action: Action) -> str:
    """Canonical one-line description of exactly what :func:`execute` will do."""
    match action.strategy:
        case Strategy.SIGNAL:
            return f"kill -{_signal_name(action.force)} {action.context.info.pid}"
        case Strategy.CONTAINER:
            container = _require_container(action)
            verb = "kill" if action.force else "stop"
            return f"{container.runtime} {verb} {container.display_name}"
        case Strategy.SYSTEMD:
            return f"systemctl stop {_require_unit(action)}"
        case _:
            raise ValueError(f"unknown strategy: {action.strategy!r}")


def execute(action: Action, *, services: Optional[Services] = None) -> None:
    """
    Carry out *action*.

    Raises:
        ProcessNotFoundError: If the signal target has already exited
        ExecutionError: If the signal, runtime or systemctl call fails
    """
    logger.info("Executing: %s", describe(action))
    match action.strategy:
        case Strategy.SIGNAL:
            _execute_signal(action)
        case Strategy.CONTAINER:
            _execute_container(action, (services or default_services()).container_cli)
        case Strategy.SYSTEMD:
            _execute_systemd(action, services or default_services())
        case _:
            raise ValueError(f"unknown strategy: {action.strategy!r}")


def _require_container(action: Action) -> ContainerInfo:
    container = action.context.container
    if container is None:
        raise ValueError(f"container strategy requires container context for PID {action.context.info.pid}")
    return container


def _require_unit(action: Action) -> str:
    unit = action.context.systemd_unit
    if not unit:
        raise ValueError(f"systemd strategy requires a unit for PID {action.context.info.pid}")
    return unit


def _execute_signal(action: Action) -> None:
    pid = action.context.info.pid
    sig = signal.SIGKILL if action.force else signal.SIGTERM
    try:
        psutil.Process(pid).send_signal(sig)
    except psutil.NoSuchProcess as exc:
        raise ProcessNotFoundError(pid=pid) from exc
    except (psutil.AccessDenied, OSError) as exc:
        raise ExecutionError(
            f"failed to send {_signal_name(action.force)} to PID {pid}: {exc}",
            strategy=action.strategy,
            pid=pid,
        ) from exc


def _execute_container(action: Action, cli: ContainerRuntimeCli) -> None:
    container = _require_container(action)
    try:
        stop_container(container, force=action.force, cli=cli)
    except ExternalToolError as exc:
        raise ExecutionError(
            f"{describe(action)} failed: {exc}",
            strategy=action.strategy,
            pid=action.context.info.pid,
            returncode=getattr(exc, "returncode", None),
            stderr=getattr(exc, "stderr", ""),
        ) from exc


def _execute_systemd(action: Action, services: Services) -> None:
    # force has no effect: the unit's own configuration governs escalation
    try:
        stop_unit(_require_unit(action), runner=services.runner)
    except ExternalToolError as exc:
        raise ExecutionError(
            f"{describe(action)} failed: {exc}",
            strategy=action.strategy,
            pid=action.context.info.pid,
            returncode=getattr(exc, "returncode", None),
            stderr=getattr(exc, "stderr", ""),
        ) from exc


__all__ = ["Action", "Strategy", "available_strategies", "describe", "execute", "recommend"]
