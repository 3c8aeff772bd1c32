"""Tests for host probing and service wiring."""

from __future__ import annotations

from unittest.mock import patch

from tests.helpers.fakes import FakeRunner
from zap.config import ZapConfig
from zap.container_detector import CgroupContainerDetector, PortContainerDetector
from zap.host import HostCapabilities, build_services, default_services, probe_host, reset_default_services
from zap.port_resolver_helpers import LsofListenerResolver, ProcfsListenerResolver
from zap.process_info_helpers import ProcfsProcessReader, PsutilProcessReader

LINUX = HostCapabilities(system="Linux", has_socket_tables=True, has_process_records=True, has_cgroup_records=True)
DARWIN = HostCapabilities(system="Darwin", has_socket_tables=False, has_process_records=False, has_cgroup_records=False)


class TestProbeHost:
    """Tests for probe_host."""

    def test_detects_records(self, fake_proc) -> None:
        """Each capability follows the presence of its record."""
        fake_proc.add_socket_table("tcp")
        fake_proc.write("stat", "btime 1\n")
        fake_proc.write("self/cgroup", "0::/\n")

        caps = probe_host(fake_proc.root)

        assert caps.has_socket_tables is True
        assert caps.has_process_records is True
        assert caps.has_cgroup_records is True

    def test_empty_root(self, tmp_path) -> None:
        """A bare directory exposes nothing."""
        caps = probe_host(tmp_path)

        assert (caps.has_socket_tables, caps.has_process_records, caps.has_cgroup_records) == (False, False, False)


class TestBuildServices:
    """Tests for build_services."""

    def test_linux_uses_kernel_records(self) -> None:
        """procfs backends and cgroup detection on Linux."""
        services = build_services(ZapConfig(), capabilities=LINUX, runner=FakeRunner())

        assert isinstance(services.listener_resolver, ProcfsListenerResolver)
        assert isinstance(services.process_reader, ProcfsProcessReader)
        assert isinstance(services.container_detector, CgroupContainerDetector)

    def test_darwin_uses_tools(self) -> None:
        """lsof, psutil and port-based detection elsewhere."""
        services = build_services(ZapConfig(), capabilities=DARWIN, runner=FakeRunner())

        assert isinstance(services.listener_resolver, LsofListenerResolver)
        assert isinstance(services.process_reader, PsutilProcessReader)
        assert isinstance(services.container_detector, PortContainerDetector)

    def test_configuration_overrides_probe(self, monkeypatch) -> None:
        """Explicit backend settings win over capabilities."""
        monkeypatch.setenv("ZAP_LISTENER_BACKEND", "lsof")
        monkeypatch.setenv("ZAP_CONTAINER_DETECTION", "port")
        monkeypatch.setenv("ZAP_ENRICH_WORKERS", "2")

        services = build_services(ZapConfig(), capabilities=LINUX, runner=FakeRunner())

        assert isinstance(services.listener_resolver, LsofListenerResolver)
        assert isinstance(services.container_detector, PortContainerDetector)
        assert services.enrich_workers == 2

    def test_shared_runner(self) -> None:
        """Every component shares one command runner."""
        runner = FakeRunner()

        services = build_services(ZapConfig(), capabilities=LINUX, runner=runner)

        assert services.runner is runner
        assert services.container_cli.runner is runner
        assert services.systemd_detector.runner is runner


class TestDefaultServices:
    """Tests for the cached default services."""

    def test_cached_until_reset(self) -> None:
        """The same instance is returned until reset."""
        with patch("zap.host.probe_host", return_value=DARWIN):
            first = default_services()
            assert default_services() is first
            reset_default_services()
            assert default_services() is not first
