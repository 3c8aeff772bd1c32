"""Recognise container scopes in ``/proc/<pid>/cgroup`` records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# Checked in order on each line; the first hit on the first matching line wins.
_SCOPE_PATTERNS = (
    (re.compile(r"libpod-([0-9a-f]{64})"), "podman"),
    (re.compile(r"docker-([0-9a-f]{64})"), "docker"),
    (re.compile(r"/docker/([0-9a-f]{64})"), "docker"),
    (re.compile(r"/lxc/([0-9a-f]{64})"), "docker"),
)


@dataclass(frozen=True)
class CgroupMatch:
    container_id: str
    runtime_hint: str


def parse_cgroup(content: str) -> Optional[CgroupMatch]:
    """Return the container id and runtime hint found in a cgroup record, if any."""
    for line in content.splitlines():
        for pattern, runtime in _SCOPE_PATTERNS:
            match = pattern.search(line)
            if match:
                return CgroupMatch(container_id=match.group(1), runtime_hint=runtime)
    return None


__all__ = ["CgroupMatch", "parse_cgroup"]
