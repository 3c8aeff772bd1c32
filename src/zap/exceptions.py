"""Exception hierarchy for port resolution, detection and termination.

All errors raised by the package inherit from :class:`ZapError`.

Exception classes support two patterns:
1. No-argument raise: raise ProcessNotFoundError()
2. Contextual attributes: err = ProcessNotFoundError(pid=123); raise err
"""

from typing import Any


class ZapError(Exception):
    """Base exception for all zap errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "zap error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class QueryInvalidError(ZapError, ValueError):
    """Port query string is malformed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Port query string is malformed"
        super().__init__(message, **kwargs)


class ProcessNotFoundError(ZapError):
    """Process no longer exists."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            pid = kwargs.get("pid")
            message = f"process {pid} not found" if pid is not None else "Process no longer exists"
        super().__init__(message, **kwargs)


class DetectionUnavailableError(ZapError):
    """A kernel table or control-group record could not be read."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Detection data source is unavailable"
        super().__init__(message, **kwargs)


class ExternalToolError(ZapError):
    """An external command is missing, timed out or failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "External command failed"
        super().__init__(message, **kwargs)


class ExecutionError(ZapError):
    """Termination of the target failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Termination of the target failed"
        super().__init__(message, **kwargs)


__all__ = [
    "DetectionUnavailableError",
    "ExecutionError",
    "ExternalToolError",
    "ProcessNotFoundError",
    "QueryInvalidError",
    "ZapError",
]
