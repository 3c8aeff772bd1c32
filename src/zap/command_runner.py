"""Thin adapter around external CLI invocation.

Detectors and the kill engine never call :mod:`subprocess` directly; they take
a :class:`CommandRunner` so tests can inject canned results.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from .exceptions import ExternalToolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs commands with a fixed timeout and captures their text output."""

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self.timeout_seconds = timeout_seconds

    def which(self, name: str) -> Optional[str]:
        """Resolve an executable on the search path."""
        return shutil.which(name)

    def run(self, args: Sequence[str]) -> CommandResult:
        """
        Run a command and return its result regardless of exit status.

        Raises:
            ExternalToolError: If the executable is missing or the call times out
        """
        argv = tuple(args)
        try:
            completed = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ExternalToolError(f"command not found: {argv[0]}", command=argv) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError(
                f"command timed out after {self.timeout_seconds}s: {' '.join(argv)}",
                command=argv,
            ) from exc
        except OSError as exc:
            raise ExternalToolError(f"failed to run {' '.join(argv)}: {exc}", command=argv) from exc

        logger.debug("Ran %s (exit %d)", " ".join(argv), completed.returncode)
        return CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def check_output(self, args: Sequence[str]) -> str:
        """
        Run a command and return stdout, treating a non-zero exit as failure.

        Raises:
            ExternalToolError: If the command is missing, times out or exits non-zero
        """
        result = self.run(args)
        if not result.ok:
            raise ExternalToolError(
                f"{' '.join(result.args)} exited with status {result.returncode}: {result.stderr.strip()}",
                command=result.args,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result.stdout


__all__ = ["CommandResult", "CommandRunner"]
