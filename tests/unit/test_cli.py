"""Tests for the zap command-line entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from tests.helpers.fakes import CONTAINER_ID, FakeRunner, make_services
from zap.cli import format_context, format_listeners, main
from zap.container_detector import ContainerInfo
from zap.config import ConfigurationError
from zap.exceptions import ExternalToolError
from zap.port_resolver_helpers import Listener
from zap.process_context import ProcessContext
from zap.process_info import ProcessInfo

_PROCESS = "zap.kill_strategy.psutil.Process"


def _listener(pid: int, port: int, protocol: str = "tcp", interface: str = "0.0.0.0") -> Listener:
    return Listener(pid=pid, port=port, protocol=protocol, interface=interface)


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("zap.cli.setup_logging"):
        yield


class TestFormatContext:
    """Tests for format_context."""

    def test_plain_process(self) -> None:
        """PID, port and command are shown."""
        context = ProcessContext(info=ProcessInfo(pid=4321, command="node server.js"))

        assert format_context(context, _listener(4321, 3000)) == " (PID 4321, port 3000/tcp, node server.js)"

    def test_long_command_truncated(self) -> None:
        """Commands are cut to 40 characters."""
        context = ProcessContext(info=ProcessInfo(pid=1, command="x" * 50))

        assert format_context(context, _listener(1, 80)) == f" (PID 1, port 80/tcp, {'x' * 37}...)"

    def test_supervised_process(self) -> None:
        """Container and unit are appended."""
        context = ProcessContext(
            info=ProcessInfo(pid=7),
            container=ContainerInfo(id=CONTAINER_ID, name="", runtime="docker"),
            systemd_unit="app.service",
        )

        assert format_context(context, _listener(7, 8080, "tcp6")) == (
            f" (PID 7, port 8080/tcp6, docker container {CONTAINER_ID[:12]}, systemd app.service)"
        )


class TestFormatListeners:
    """Tests for format_listeners."""

    def test_groups_by_port_and_protocol(self) -> None:
        """One line per port/protocol, sorted by port."""
        services = make_services(infos=[ProcessInfo(pid=1, command="sshd"), ProcessInfo(pid=2, command="y" * 70)])
        listeners = [
            _listener(2, 8080),
            _listener(1, 22),
            _listener(1, 22, "tcp6", "::"),
            _listener(3, 8080),
        ]

        assert format_listeners(listeners, services) == [
            ":22/tcp  PID 1 (sshd)",
            ":22/tcp6  PID 1 (sshd)",
            f":8080/tcp  PID 2 ({'y' * 57}...), PID 3",
        ]


class TestMainListing:
    """Tests for main without port arguments."""

    def test_lists_listeners(self, capsys) -> None:
        """Every listening port is printed."""
        services = make_services(listeners=[_listener(1, 22)], infos=[ProcessInfo(pid=1, command="sshd")])

        assert main([], services=services) == 0
        assert capsys.readouterr().out == ":22/tcp  PID 1 (sshd)\n"

    def test_nothing_listening(self, capsys) -> None:
        """An empty host is reported."""
        assert main([], services=make_services()) == 0
        assert capsys.readouterr().out == "No listening ports found.\n"


class TestMainKill:
    """Tests for main with port arguments."""

    def test_invalid_query(self, capsys) -> None:
        """A malformed query fails before anything is resolved."""
        services = make_services(listeners=[_listener(1, 3000)])

        assert main([":3000", ":abc"], services=services) == 1
        assert capsys.readouterr().err.startswith("error: ")
        assert services.listener_resolver.queries == []

    def test_no_listener(self, capsys) -> None:
        """Unmatched queries are reported and fail the run."""
        assert main([":3000"], services=make_services()) == 1
        assert "no processes found listening on :3000" in capsys.readouterr().err

    def test_dry_run(self, capsys) -> None:
        """Dry runs describe without executing."""
        services = make_services(
            listeners=[_listener(4321, 3000)],
            infos=[ProcessInfo(pid=4321, command="node server.js", children=(4322, 4323))],
        )

        with patch(_PROCESS) as process_cls:
            assert main(["-n", ":3000"], services=services) == 0

        process_cls.assert_not_called()
        assert capsys.readouterr().out == (
            "[dry-run] kill -SIGTERM 4321 (PID 4321, port 3000/tcp, node server.js)\n  child PIDs: [4322, 4323]\n"
        )

    def test_force_kill_signal(self, capsys) -> None:
        """--force escalates the signal."""
        services = make_services(listeners=[_listener(4321, 3000)], infos=[ProcessInfo(pid=4321)])

        with patch(_PROCESS) as process_cls:
            assert main(["--force", ":3000"], services=services) == 0

        assert capsys.readouterr().out == "kill -SIGKILL 4321 (PID 4321, port 3000/tcp)\n"
        process_cls.return_value.send_signal.assert_called_once()

    def test_container_stop(self, capsys) -> None:
        """Containerized processes are stopped through the runtime."""
        runner = FakeRunner({("docker", "stop", CONTAINER_ID): ""})
        services = make_services(
            listeners=[_listener(555, 8080)],
            infos=[ProcessInfo(pid=555)],
            containers={555: ContainerInfo(id=CONTAINER_ID, name="web", runtime="docker")},
            runner=runner,
        )

        assert main([":8080"], services=services) == 0
        assert capsys.readouterr().out == "docker stop web (PID 555, port 8080/tcp, docker container web)\n"
        assert runner.calls == [("docker", "stop", CONTAINER_ID)]

    def test_execution_failure(self, capsys) -> None:
        """Failed actions are reported and fail the run."""
        services = make_services(listeners=[_listener(812, 80)], infos=[ProcessInfo(pid=812)], units={812: "nginx.service"})

        assert main([":80"], services=services) == 1
        captured = capsys.readouterr()
        assert captured.out == "systemctl stop nginx.service (PID 812, port 80/tcp, systemd nginx.service)\n"
        assert captured.err.startswith("  error: systemctl stop nginx.service failed")

    def test_vanished_process_warns(self, capsys) -> None:
        """Processes that exit before enrichment become warnings."""
        services = make_services(listeners=[_listener(99, 3000)])

        assert main(["-n", ":3000"], services=services) == 0
        assert capsys.readouterr().err == "warning: could not get info for PID 99: process 99 not found\n"

    def test_resolution_failure_is_fatal(self, capsys) -> None:
        """A backend that cannot run aborts the whole invocation."""
        services = make_services()
        services.listener_resolver.error = ExternalToolError("command not found: lsof")

        assert main([":3000", ":4000"], services=services) == 1
        assert capsys.readouterr().err == "error detecting processes on :3000: command not found: lsof\n"
        assert len(services.listener_resolver.queries) == 1

    def test_version(self, capsys) -> None:
        """--version prints and exits."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])

        assert excinfo.value.code == 0
        assert capsys.readouterr().out.startswith("zap ")


class TestMainConfiguration:
    """Tests for configuration errors surfaced by main."""

    def test_invalid_environment_value(self, monkeypatch, capsys) -> None:
        """A malformed ZAP_* variable is reported without a traceback."""
        monkeypatch.setenv("ZAP_ENRICH_WORKERS", "0")

        assert main([":3000"]) == 1
        err = capsys.readouterr().err
        assert err.startswith("error: Invalid value for ZAP_ENRICH_WORKERS")
        assert "Traceback" not in err

    def test_logging_configuration_failure(self, capsys) -> None:
        """Errors raised while configuring logging are reported the same way."""
        with patch("zap.cli.setup_logging", side_effect=ConfigurationError("ZAP_LOG_FILE is unusable")):
            assert main([], services=make_services()) == 1

        assert capsys.readouterr().err == "error: ZAP_LOG_FILE is unusable\n"
