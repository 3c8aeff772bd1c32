"""
Runtime settings for listener resolution and process enrichment.

Every value is read from ``ZAP_*`` environment variables (or a ``.env`` file)
when a :class:`ZapConfig` is constructed, so tests and callers can override
behaviour without touching call sites.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Optional

from .runtime import env_choice, env_float, env_int, env_str

LISTENER_BACKENDS = ("auto", "procfs", "lsof")
CONTAINER_DETECTION_MODES = ("auto", "cgroup", "port")

DEFAULT_PROC_ROOT = "/proc"
DEFAULT_COMMAND_TIMEOUT_SECONDS = 5.0
DEFAULT_ENRICH_WORKERS = 4
DEFAULT_CLOCK_TICKS = 100


def _proc_root() -> Path:
    return Path(env_str("ZAP_PROC_ROOT", DEFAULT_PROC_ROOT) or DEFAULT_PROC_ROOT)


def _command_timeout() -> float:
    value = env_float("ZAP_COMMAND_TIMEOUT_SECONDS", DEFAULT_COMMAND_TIMEOUT_SECONDS)
    return DEFAULT_COMMAND_TIMEOUT_SECONDS if value is None else value


@dataclass(frozen=True)
class ZapConfig:
    """
    Snapshot of environment-driven settings.

    Attributes:
        proc_root: Root of the kernel process filesystem
        listener_backend: ``auto``, ``procfs`` or ``lsof``
        container_detection: ``auto``, ``cgroup`` or ``port``
        command_timeout_seconds: Timeout applied to every external CLI call
        enrich_workers: Thread count for batch enrichment (1 runs inline)
        clock_ticks: Kernel clock ticks per second used for start times
        log_file: Optional log file path
    """

    proc_root: Path = field(default_factory=_proc_root)
    listener_backend: str = field(default_factory=partial(env_choice, "ZAP_LISTENER_BACKEND", LISTENER_BACKENDS, "auto"))
    container_detection: str = field(
        default_factory=partial(env_choice, "ZAP_CONTAINER_DETECTION", CONTAINER_DETECTION_MODES, "auto")
    )
    command_timeout_seconds: float = field(default_factory=_command_timeout)
    enrich_workers: int = field(default_factory=partial(env_int, "ZAP_ENRICH_WORKERS", DEFAULT_ENRICH_WORKERS, minimum=1))
    clock_ticks: int = field(default_factory=partial(env_int, "ZAP_CLOCK_TICKS", DEFAULT_CLOCK_TICKS, minimum=1))
    log_file: Optional[str] = field(default_factory=partial(env_str, "ZAP_LOG_FILE"))

    @classmethod
    def from_env(cls) -> "ZapConfig":
        return cls()


# Lazy load configuration to avoid reading the environment at import time
_config: ZapConfig | None = None


def get_config() -> ZapConfig:
    """Get or initialize the shared configuration snapshot."""
    global _config
    if _config is None:
        _config = ZapConfig.from_env()
    return _config


def reset_config() -> None:
    global _config
    _config = None


__all__ = [
    "CONTAINER_DETECTION_MODES",
    "LISTENER_BACKENDS",
    "ZapConfig",
    "get_config",
    "reset_config",
]
