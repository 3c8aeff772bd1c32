"""Tests for container detection and stopping."""

from __future__ import annotations

import pytest

from tests.helpers.fakes import CONTAINER_ID, FakeRunner, failed
from zap.container_detector import (
    CgroupContainerDetector,
    ContainerInfo,
    PortContainerDetector,
    detect,
    stop_container,
)
from zap.container_detector_helpers import ContainerRuntimeCli
from zap.exceptions import ExternalToolError

_PS = ("ps", "--format", "{{json .}}")


class TestContainerInfo:
    """Tests for ContainerInfo."""

    def test_display_name_prefers_name(self) -> None:
        """The name is shown when known."""
        assert ContainerInfo(id=CONTAINER_ID, name="web", runtime="docker").display_name == "web"

    def test_display_name_falls_back_to_short_id(self) -> None:
        """Unnamed containers show the short id."""
        info = ContainerInfo(id=CONTAINER_ID, name="", runtime="podman")

        assert info.display_name == CONTAINER_ID[:12]
        assert str(info) == f"podman container {CONTAINER_ID[:12]}"


class TestCgroupContainerDetector:
    """Tests for CgroupContainerDetector."""

    def test_detects_docker_container(self, fake_proc) -> None:
        """A docker scope resolves to a named docker container."""
        fake_proc.write("10/cgroup", f"0::/system.slice/docker-{CONTAINER_ID}.scope\n")
        runner = FakeRunner(
            {("docker", "inspect", "--format", "{{.Name}}", CONTAINER_ID): "/web\n"},
            installed=("docker",),
        )

        info = CgroupContainerDetector(fake_proc.root, ContainerRuntimeCli(runner)).detect(10)

        assert info == ContainerInfo(id=CONTAINER_ID, name="web", runtime="docker")

    def test_unnamed_container_still_detected(self, fake_proc) -> None:
        """Inspect failures leave the name empty."""
        fake_proc.write("11/cgroup", f"0::/machine.slice/libpod-{CONTAINER_ID}.scope\n")

        info = CgroupContainerDetector(fake_proc.root, ContainerRuntimeCli(FakeRunner())).detect(11)

        assert info is not None
        assert info.name == ""
        assert info.runtime == "podman"

    def test_host_process(self, fake_proc) -> None:
        """No container scope means None."""
        fake_proc.write("12/cgroup", "0::/user.slice/user-1000.slice/session-2.scope\n")

        assert CgroupContainerDetector(fake_proc.root, ContainerRuntimeCli(FakeRunner())).detect(12) is None

    def test_undecodable_cgroup_bytes(self, fake_proc) -> None:
        """Invalid UTF-8 elsewhere in the record does not hide the scope."""
        fake_proc.write("14/cgroup", b"1:name=\xff\xfe:/\n" + f"0::/system.slice/docker-{CONTAINER_ID}.scope\n".encode())

        info = CgroupContainerDetector(fake_proc.root, ContainerRuntimeCli(FakeRunner())).detect(14)

        assert info is not None
        assert info.id == CONTAINER_ID

    def test_unreadable_cgroup(self, fake_proc) -> None:
        """A missing record means None."""
        assert CgroupContainerDetector(fake_proc.root, ContainerRuntimeCli(FakeRunner())).detect(13) is None


class TestPortContainerDetector:
    """Tests for PortContainerDetector."""

    def test_matches_published_port(self) -> None:
        """The container publishing the port is returned."""
        runner = FakeRunner(
            {
                ("docker", *_PS): (
                    '{"ID":"aaa","Names":"db","Ports":"0.0.0.0:5432->5432/tcp"}\n'
                    '{"ID":"bbb","Names":"web","Ports":"0.0.0.0:8080->80/tcp"}\n'
                ),
            },
            installed=("docker",),
        )

        info = PortContainerDetector(ContainerRuntimeCli(runner)).detect(4321, 8080)

        assert info == ContainerInfo(id="bbb", name="web", runtime="docker")

    def test_port_prefix_does_not_match(self) -> None:
        """Port 80 does not match a mapping for 8080."""
        runner = FakeRunner(
            {("docker", *_PS): '{"ID":"bbb","Names":"web","Ports":"0.0.0.0:8080->80/tcp"}\n'},
            installed=("docker",),
        )

        assert PortContainerDetector(ContainerRuntimeCli(runner)).detect(1, 80) is None

    def test_falls_through_to_podman(self) -> None:
        """A failing docker listing does not stop the podman query."""
        runner = FakeRunner(
            {
                ("docker", *_PS): failed(("docker", *_PS), 1, "daemon not running"),
                ("podman", *_PS): '{"Id":"ccc","Names":["api"],"Ports":"0.0.0.0:3000->3000/tcp"}\n',
            },
            installed=("docker", "podman"),
        )

        info = PortContainerDetector(ContainerRuntimeCli(runner)).detect(1, 3000)

        assert info is not None
        assert info.runtime == "podman"

    def test_no_port_means_no_detection(self) -> None:
        """Without a port nothing is queried."""
        runner = FakeRunner(installed=("docker",))

        assert PortContainerDetector(ContainerRuntimeCli(runner)).detect(1) is None
        assert runner.calls == []

    def test_no_runtimes_installed(self) -> None:
        """Uninstalled runtimes are skipped."""
        runner = FakeRunner()

        assert PortContainerDetector(ContainerRuntimeCli(runner)).detect(1, 3000) is None
        assert runner.calls == []


class TestDetect:
    """Tests for the module-level detect."""

    def test_delegates_to_detector(self) -> None:
        """The supplied detector answers."""

        class _Detector:
            def detect(self, pid, port=None):
                return ContainerInfo(id="x", name=f"{pid}:{port}", runtime="docker")

        assert detect(5, 80, detector=_Detector()).name == "5:80"


class TestStopContainer:
    """Tests for stop_container."""

    def test_graceful_stop(self) -> None:
        """Without force the runtime stops the container."""
        runner = FakeRunner({("podman", "stop", CONTAINER_ID): ""})

        stop_container(ContainerInfo(id=CONTAINER_ID, name="api", runtime="podman"), cli=ContainerRuntimeCli(runner))

        assert runner.calls == [("podman", "stop", CONTAINER_ID)]

    def test_forced_kill(self) -> None:
        """With force the runtime kills the container."""
        runner = FakeRunner({("docker", "kill", CONTAINER_ID): ""})

        stop_container(ContainerInfo(id=CONTAINER_ID, name="", runtime="docker"), force=True, cli=ContainerRuntimeCli(runner))

        assert runner.calls == [("docker", "kill", CONTAINER_ID)]

    def test_failure_propagates(self) -> None:
        """A failing runtime command raises."""
        args = ("docker", "stop", CONTAINER_ID)
        runner = FakeRunner({args: failed(args, 1, "No such container")})

        with pytest.raises(ExternalToolError) as excinfo:
            stop_container(ContainerInfo(id=CONTAINER_ID, name="", runtime="docker"), cli=ContainerRuntimeCli(runner))

        assert excinfo.value.returncode == 1
