"""Command-line entry point: kill whatever listens on a port.

Usage:
    zap                     list every listening port
    zap :3000               stop the process listening on port 3000
    zap -f :8080-8090       force-stop everything listening on 8080-8090
    zap -n localhost:5432   show what would be stopped without doing it
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from . import __version__
from .config import ConfigurationError
from .exceptions import ExecutionError, ExternalToolError, ProcessNotFoundError, QueryInvalidError
from .host import Services, default_services
from .kill_strategy import Action, describe, execute, recommend
from .logging_config import setup_logging
from .port_resolver import resolve, resolve_all
from .port_resolver_helpers import Listener
from .process_context import ProcessContext, gather_contexts
from .query import Query, parse_query

logger = logging.getLogger(__name__)

_CONTEXT_COMMAND_WIDTH = 40
_LIST_COMMAND_WIDTH = 60


def _console(message: str) -> None:
    print(message)


def _error(message: str) -> None:
    print(message, file=sys.stderr)


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zap",
        description="Kill processes by port number.",
    )
    parser.add_argument(
        "ports",
        nargs="*",
        metavar="port",
        help="port to target (e.g. :3000, :8080-8090, localhost:5432); lists all listening ports when omitted",
    )
    parser.add_argument("-f", "--force", action="store_true", help="use SIGKILL / container kill instead of a graceful stop")
    parser.add_argument("-n", "--dry-run", action="store_true", help="show what would be killed without doing it")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"zap {__version__}")
    return parser


def format_context(context: ProcessContext, listener: Listener) -> str:
    """Summarize a process for the line printed next to its action."""
    parts = [f" (PID {context.info.pid}, port {listener.port}/{listener.protocol}"]
    if context.info.command:
        parts.append(f", {_truncate(context.info.command, _CONTEXT_COMMAND_WIDTH)}")
    if context.container is not None:
        parts.append(f", {context.container}")
    if context.is_systemd_managed():
        parts.append(f", systemd {context.systemd_unit}")
    return "".join(parts) + ")"


def format_listeners(listeners: Sequence[Listener], services: Services) -> List[str]:
    """One line per port/protocol, naming every owning process."""
    groups: Dict[Tuple[int, str], List[int]] = defaultdict(list)
    for listener in listeners:
        pids = groups[(listener.port, listener.protocol)]
        if listener.pid not in pids:
            pids.append(listener.pid)

    lines = []
    for (port, protocol), pids in sorted(groups.items()):
        owners = []
        for pid in pids:
            label = f"PID {pid}"
            try:
                info = services.process_reader.gather(pid)
            except ProcessNotFoundError:  # policy_guard: allow-silent-handler
                logger.debug("Process %d exited while listing", pid)
            else:
                if info.command:
                    label = f"PID {pid} ({_truncate(info.command, _LIST_COMMAND_WIDTH)})"
            owners.append(label)
        lines.append(f":{port}/{protocol}  {', '.join(owners)}")
    return lines


def _list_all(services: Services) -> int:
    try:
        listeners = resolve_all(resolver=services.listener_resolver)
    except ExternalToolError as exc:
        _error(f"error detecting ports: {exc}")
        return 1
    if not listeners:
        _console("No listening ports found.")
        return 0
    for line in format_listeners(listeners, services):
        _console(line)
    return 0


def _kill_query(arg: str, query: Query, services: Services, *, force: bool, dry_run: bool) -> bool:
    """Handle one query; returns False when anything about it failed."""
    listeners = resolve(query, resolver=services.listener_resolver)
    if not listeners:
        _error(f"no processes found listening on {arg}")
        return False

    ok = True
    enrichment = gather_contexts(listeners, services=services)
    for warning in enrichment.warnings:
        _error(f"warning: {warning}")

    for listener, context in enrichment.contexts:
        action = Action(strategy=recommend(context), context=context, force=force)
        line = f"{describe(action)}{format_context(context, listener)}"

        if dry_run:
            _console(f"[dry-run] {line}")
            if context.info.children:
                _console(f"  child PIDs: {list(context.info.children)}")
            continue

        _console(line)
        try:
            execute(action, services=services)
        except (ExecutionError, ProcessNotFoundError) as exc:
            _error(f"  error: {exc}")
            ok = False
    return ok


def main(argv: Optional[Sequence[str]] = None, *, services: Optional[Services] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        setup_logging(verbose=args.verbose)
        svc = services or default_services()
    except ConfigurationError as exc:
        _error(f"error: {exc}")
        return 1

    if not args.ports:
        return _list_all(svc)

    try:
        queries = [(arg, parse_query(arg)) for arg in args.ports]
    except QueryInvalidError as exc:
        _error(f"error: {exc}")
        return 1

    ok = True
    for arg, query in queries:
        try:
            ok = _kill_query(arg, query, svc, force=args.force, dry_run=args.dry_run) and ok
        except ExternalToolError as exc:
            _error(f"error detecting processes on {arg}: {exc}")
            return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
