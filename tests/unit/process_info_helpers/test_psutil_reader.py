"""Tests for the psutil-backed process reader."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import psutil
import pytest

from zap.exceptions import ProcessNotFoundError
from zap.process_info_helpers import PsutilProcessReader

_PROCESS = "zap.process_info_helpers.psutil_reader.psutil.Process"


def _fake_process() -> MagicMock:
    proc = MagicMock()
    proc.uids.return_value = SimpleNamespace(real=501, effective=501, saved=501)
    proc.username.return_value = "alice"
    proc.cmdline.return_value = ["/usr/local/bin/node", "", "server.js"]
    proc.exe.return_value = "/usr/local/bin/node"
    proc.memory_info.return_value = SimpleNamespace(rss=10 * 1024 * 1024)
    proc.create_time.return_value = 1_700_000_000.5
    proc.ppid.return_value = 1
    proc.children.return_value = [SimpleNamespace(pid=903), SimpleNamespace(pid=901)]
    return proc


class TestPsutilProcessReader:
    """Tests for PsutilProcessReader.gather."""

    def test_gathers_all_fields(self) -> None:
        """psutil attributes map onto ProcessInfo fields."""
        with patch(_PROCESS, return_value=_fake_process()):
            info = PsutilProcessReader().gather(900)

        assert info.pid == 900
        assert info.command == "/usr/local/bin/node server.js"
        assert info.executable == "/usr/local/bin/node"
        assert info.user == "alice"
        assert info.uid == 501
        assert info.memory_kb == 10 * 1024
        assert info.start_time == datetime.fromtimestamp(1_700_000_000.5, tz=timezone.utc)
        assert info.parent_pid == 1
        assert info.children == (901, 903)

    def test_missing_process_raises_not_found(self) -> None:
        """NoSuchProcess at lookup becomes ProcessNotFoundError."""
        with patch(_PROCESS, side_effect=psutil.NoSuchProcess(77)):
            with pytest.raises(ProcessNotFoundError) as excinfo:
                PsutilProcessReader().gather(77)

        assert excinfo.value.pid == 77

    def test_access_denied_fields_keep_zero_values(self) -> None:
        """Fields psutil refuses to read are left empty."""
        proc = _fake_process()
        proc.cmdline.side_effect = psutil.AccessDenied(900)
        proc.exe.side_effect = psutil.AccessDenied(900)
        proc.memory_info.side_effect = psutil.AccessDenied(900)
        proc.username.side_effect = psutil.AccessDenied(900)

        with patch(_PROCESS, return_value=proc):
            info = PsutilProcessReader().gather(900)

        assert info.command == ""
        assert info.executable == ""
        assert info.memory_kb == 0
        assert info.user == "501"
        assert info.uid == 501
