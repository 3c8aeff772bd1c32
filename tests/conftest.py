"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

from tests.helpers.fakes import FakeProc, FakeRunner
from zap.config import reset_config, reset_default_values
from zap.host import reset_default_services


@pytest.fixture(autouse=True)
def _isolated_configuration(monkeypatch):
    """Keep host .env files, ZAP_* variables and cached services out of every test."""
    for name in list(os.environ):
        if name.startswith("ZAP_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("zap.config.runtime._DOTENV_CANDIDATES", ())
    reset_default_values()
    reset_config()
    reset_default_services()
    yield
    reset_default_values()
    reset_config()
    reset_default_services()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_proc(tmp_path) -> FakeProc:
    return FakeProc(tmp_path / "proc")
