"""Platform readers for process metadata."""

from .procfs_reader import ProcfsProcessReader, lookup_user
from .psutil_reader import PsutilProcessReader

__all__ = ["ProcfsProcessReader", "PsutilProcessReader", "lookup_user"]
