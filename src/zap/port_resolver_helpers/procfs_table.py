"""Parsing for the kernel socket tables under ``/proc/net``.

Each data row looks like::

    sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode
    0: 0100007F:1F90 00000000:0000 0A 00000000:00000000 00:00000000 00000000  1000        0 123456 ...

Addresses are hex-encoded in host (little-endian) byte order, one 32-bit word
at a time; ports are big-endian hex.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..exceptions import DetectionUnavailableError

logger = logging.getLogger(__name__)

TCP_LISTEN_STATE = 0x0A

_MIN_FIELDS = 10
_IPV4_HEX_LEN = 8
_IPV6_HEX_LEN = 32


@dataclass(frozen=True)
class ProcNetEntry:
    local_address: str
    local_port: int
    state: int
    inode: int


def decode_hex_address(text: str) -> tuple[str, int]:
    """
    Decode ``ADDR:PORT`` from a socket table row.

    Raises:
        ValueError: If the field is not valid hex or has an unexpected shape
    """
    hex_addr, sep, hex_port = text.partition(":")
    if not sep:
        raise ValueError(f"invalid address format: {text}")

    port = int(hex_port, 16)
    raw = bytes.fromhex(hex_addr)
    if len(hex_addr) == _IPV4_HEX_LEN:
        address = str(ipaddress.IPv4Address(raw[::-1]))
    elif len(hex_addr) == _IPV6_HEX_LEN:
        words = b"".join(raw[i : i + 4][::-1] for i in range(0, 16, 4))
        address = str(ipaddress.IPv6Address(words))
    else:
        address = hex_addr
    return address, port


def parse_proc_net(content: str) -> List[ProcNetEntry]:
    """Parse a socket table, skipping the header and any malformed rows."""
    entries: List[ProcNetEntry] = []
    for line in content.splitlines()[1:]:
        fields = line.split()
        if len(fields) < _MIN_FIELDS:
            continue
        try:
            address, port = decode_hex_address(fields[1])
            state = int(fields[3], 16)
            inode = int(fields[9])
        except ValueError:  # policy_guard: allow-silent-handler
            logger.debug("Skipping malformed socket table row: %r", line)
            continue
        entries.append(ProcNetEntry(local_address=address, local_port=port, state=state, inode=inode))
    return entries


def read_socket_table(path: Path) -> List[ProcNetEntry]:
    """
    Read and parse one socket table.

    Raises:
        DetectionUnavailableError: If the table cannot be read
    """
    try:
        content = path.read_bytes().decode("utf-8", errors="replace")
    except OSError as exc:
        raise DetectionUnavailableError(f"cannot read socket table {path}", path=str(path)) from exc
    return parse_proc_net(content)


__all__ = ["ProcNetEntry", "TCP_LISTEN_STATE", "decode_hex_address", "parse_proc_net", "read_socket_table"]
