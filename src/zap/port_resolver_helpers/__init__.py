"""Backends and records for listener resolution."""

from .listener_models import PROTOCOLS, WILDCARD_ADDRESSES, Listener, matches_interface, matches_query
from .lsof_backend import LsofListenerResolver, parse_lsof_output
from .procfs_backend import ProcfsListenerResolver
from .procfs_table import ProcNetEntry, decode_hex_address, parse_proc_net, read_socket_table

__all__ = [
    "Listener",
    "LsofListenerResolver",
    "PROTOCOLS",
    "ProcNetEntry",
    "ProcfsListenerResolver",
    "WILDCARD_ADDRESSES",
    "decode_hex_address",
    "matches_interface",
    "matches_query",
    "parse_lsof_output",
    "parse_proc_net",
    "read_socket_table",
]
