"""Find the process behind a listening port and stop it the safe way.

Core operations::

    resolve(query) / resolve_all()      listening sockets -> Listener records
    gather_context(pid, port)           ProcessInfo + container + systemd unit
    recommend(context)                  Strategy to use
    available_strategies(context)       every applicable Strategy
    describe(action) / execute(action)  what will happen / make it happen
"""

__version__ = "0.1.0"

from .container_detector import ContainerInfo, short_id
from .exceptions import (
    DetectionUnavailableError,
    ExecutionError,
    ExternalToolError,
    ProcessNotFoundError,
    QueryInvalidError,
    ZapError,
)
from .kill_strategy import Action, Strategy, available_strategies, describe, execute, recommend
from .port_resolver import dedupe_by_pid, resolve, resolve_all
from .port_resolver_helpers import Listener
from .process_context import EnrichmentResult, ProcessContext, gather_context, gather_contexts
from .process_info import ProcessInfo, gather, is_privileged
from .query import Query, parse_query

__all__ = [
    "Action",
    "ContainerInfo",
    "DetectionUnavailableError",
    "EnrichmentResult",
    "ExecutionError",
    "ExternalToolError",
    "Listener",
    "ProcessContext",
    "ProcessInfo",
    "ProcessNotFoundError",
    "Query",
    "QueryInvalidError",
    "Strategy",
    "ZapError",
    "available_strategies",
    "dedupe_by_pid",
    "describe",
    "execute",
    "gather",
    "gather_context",
    "gather_contexts",
    "is_privileged",
    "parse_query",
    "recommend",
    "resolve",
    "resolve_all",
    "short_id",
]
