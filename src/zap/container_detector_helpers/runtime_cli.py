"""Docker/podman CLI adapter: runtime discovery, inspect, ps, stop and kill."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import orjson

from ..command_runner import CommandRunner
from ..exceptions import ExternalToolError

logger = logging.getLogger(__name__)

RUNTIMES = ("docker", "podman")
SHORT_ID_LENGTH = 12


def short_id(container_id: str) -> str:
    """First 12 characters of a container id, or the whole id if shorter."""
    return container_id[:SHORT_ID_LENGTH]


@dataclass(frozen=True)
class ContainerListing:
    """One row of ``<runtime> ps --format '{{json .}}'``."""

    id: str
    name: str
    ports: str


def _names_field(value: Any) -> str:
    if isinstance(value, list):
        value = value[0] if value else ""
    return str(value or "").lstrip("/")


def _ports_field(value: Any) -> str:
    # docker emits a preformatted string, podman a list of mapping objects
    if isinstance(value, str):
        return value
    if not isinstance(value, list):
        return ""
    mappings = []
    for item in value:
        if not isinstance(item, dict):
            continue
        host_ip = item.get("host_ip") or "0.0.0.0"
        mappings.append(f"{host_ip}:{item.get('host_port')}->{item.get('container_port')}/{item.get('protocol', 'tcp')}")
    return ", ".join(mappings)


def parse_ps_output(output: str) -> List[ContainerListing]:
    """Parse JSON-lines ``ps`` output, skipping lines that do not decode."""
    listings: List[ContainerListing] = []
    for line in output.strip().splitlines():
        if not line.strip():
            continue
        try:
            entry = orjson.loads(line)
        except orjson.JSONDecodeError:  # policy_guard: allow-silent-handler
            logger.debug("Skipping undecodable container listing: %r", line)
            continue
        if not isinstance(entry, dict):
            continue
        listings.append(
            ContainerListing(
                id=str(entry.get("ID") or entry.get("Id") or ""),
                name=_names_field(entry.get("Names")),
                ports=_ports_field(entry.get("Ports")),
            )
        )
    return listings


class ContainerRuntimeCli:
    """Issues container runtime commands through a :class:`CommandRunner`."""

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self.runner = runner or CommandRunner()

    def is_installed(self, runtime: str) -> bool:
        return self.runner.which(runtime) is not None

    def resolve_runtime(self, hint: str) -> str:
        """Pick the runtime to talk to, preferring podman only when hinted."""
        if hint == "podman" and self.is_installed("podman"):
            return "podman"
        if self.is_installed("docker"):
            return "docker"
        if self.is_installed("podman"):
            return "podman"
        return hint

    def inspect_name(self, runtime: str, container_id: str) -> str:
        """Resolve a container's name by full id, then by short id; empty on failure."""
        candidates = [container_id]
        if len(container_id) > SHORT_ID_LENGTH:
            candidates.append(short_id(container_id))
        for candidate in candidates:
            try:
                output = self.runner.check_output([runtime, "inspect", "--format", "{{.Name}}", candidate])
            except ExternalToolError as exc:  # policy_guard: allow-silent-handler
                logger.debug("%s inspect %s failed: %s", runtime, candidate, exc)
                continue
            return output.strip().lstrip("/")
        return ""

    def list_running(self, runtime: str) -> List[ContainerListing]:
        """
        Raises:
            ExternalToolError: If the runtime cannot list containers
        """
        output = self.runner.check_output([runtime, "ps", "--format", "{{json .}}"])
        return parse_ps_output(output)

    def stop(self, runtime: str, container_id: str) -> None:
        self.runner.check_output([runtime, "stop", container_id])

    def kill(self, runtime: str, container_id: str) -> None:
        self.runner.check_output([runtime, "kill", container_id])


__all__ = [
    "ContainerListing",
    "ContainerRuntimeCli",
    "RUNTIMES",
    "SHORT_ID_LENGTH",
    "parse_ps_output",
    "short_id",
]
