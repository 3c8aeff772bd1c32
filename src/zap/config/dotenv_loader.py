"""Read ``ZAP_*`` defaults from ``.env``-style files.

Lines look like ``KEY=value`` or ``export KEY="value"``; comments, blank lines
and keys outside the prefix are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_EXPORT_PREFIX = "export "


def parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    """Split one line into ``(key, value)``, or ``None`` when it carries no assignment."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key, raw_value = stripped.split("=", 1)
    key = key.strip()
    if key.startswith(_EXPORT_PREFIX):
        key = key[len(_EXPORT_PREFIX) :].strip()
    if not key:
        return None
    return key, raw_value.strip().strip("'").strip('"')


class DotenvLoader:
    """Collects prefixed keys from a list of candidate files."""

    def __init__(self, prefix: str = "ZAP_") -> None:
        self.prefix = prefix

    def load_file(self, path: Path) -> Dict[str, str]:
        """
        Raises:
            ConfigurationError: If the file exists but cannot be read
        """
        if not path.is_file():
            return {}
        try:
            lines = path.read_text(errors="replace").splitlines()
        except OSError as exc:
            raise ConfigurationError(f"Failed to load configuration from {path}") from exc

        values: Dict[str, str] = {}
        for line in lines:
            parsed = parse_env_line(line)
            if parsed is None or not parsed[0].startswith(self.prefix):
                continue
            values[parsed[0]] = parsed[1]
        return values

    def load_candidates(self, paths: Iterable[Path]) -> Dict[str, str]:
        """Merge candidate files in order; the first file declaring a key wins."""
        merged: Dict[str, str] = {}
        for path in paths:
            loaded = self.load_file(path)
            if loaded:
                logger.debug("Loaded %d settings from %s", len(loaded), path)
            for key, value in loaded.items():
                merged.setdefault(key, value)
        return merged


__all__ = ["DotenvLoader", "parse_env_line"]
