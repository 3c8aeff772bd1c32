"""Helpers for container detection."""

from .cgroup_parser import CgroupMatch, parse_cgroup
from .runtime_cli import (
    RUNTIMES,
    SHORT_ID_LENGTH,
    ContainerListing,
    ContainerRuntimeCli,
    parse_ps_output,
    short_id,
)

__all__ = [
    "CgroupMatch",
    "ContainerListing",
    "ContainerRuntimeCli",
    "RUNTIMES",
    "SHORT_ID_LENGTH",
    "parse_cgroup",
    "parse_ps_output",
    "short_id",
]
