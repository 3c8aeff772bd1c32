"""
Centralized logging configuration.

``setup_logging`` configures the root logger once per process with:
- Console output on stderr (WARNING by default, DEBUG when verbose)
- Optional file output (``ZAP_LOG_FILE`` or an explicit path), appended
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from zap.config import get_config

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_TECHNICAL_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ZAP_HANDLER_ATTR = "_zap_handler"


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if not getattr(handler, _ZAP_HANDLER_ATTR, False):
            continue
        try:
            handler.close()
        except OSError as e:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            _MODULE_LOGGER.debug("Handler close failed: %s", e)
        logger.removeHandler(handler)


def _build_console_handler(verbose: bool) -> logging.Handler:
    if verbose:
        formatter = logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT)
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return console_handler


def _build_file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    file_handler.setLevel(logging.DEBUG)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    logging.getLogger("psutil").setLevel(logging.WARNING)


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure logging for the command-line tool.

    Calling it again replaces the handlers installed by the previous call and
    leaves any handlers installed by other code alone.
    """

    with _config_lock:
        root_logger = logging.getLogger()
        _close_handlers(root_logger)

        console_handler = _build_console_handler(verbose)
        setattr(console_handler, _ZAP_HANDLER_ATTR, True)
        root_logger.addHandler(console_handler)

        target = log_file or get_config().log_file
        if target:
            file_handler = _build_file_handler(Path(target).expanduser())
            setattr(file_handler, _ZAP_HANDLER_ATTR, True)
            root_logger.addHandler(file_handler)

        root_logger.setLevel(logging.DEBUG if verbose or target else logging.INFO)
        _suppress_noisy_third_parties()


__all__ = ["setup_logging"]
