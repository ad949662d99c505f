"""Tests for buildorch.services.dispatch."""

from __future__ import annotations

from pathlib import Path

from buildorch.core.result import Err, Ok
from buildorch.core.workspace import Workspace
from buildorch.output.console import MockConsole
from buildorch.services.catalog import build_registry
from buildorch.services.dispatch import Dispatcher, create_dispatcher
from buildorch.services.errors import Interrupted, SandboxUnavailable, TaskFailed, UnknownTask
from buildorch.services.tasks import Placement, Task, TaskRegistry, cmd
from buildorch.test.fakes import FakeRunner, make_snapshot


def _task(name: str, *prerequisites: str, placement: Placement = Placement.INHERIT) -> Task:
    return Task(
        name,
        f"{name} task",
        prerequisites=prerequisites,
        commands=lambda _: (cmd(f"./{name}.sh"),),
        placement=placement,
    )


def _dispatcher(tmp_path: Path, registry: TaskRegistry, runner: FakeRunner) -> Dispatcher:
    return create_dispatcher(
        registry=registry,
        workspace=Workspace(root=tmp_path),
        console=MockConsole(),
        runner=runner,
        base_env={},
    )


def _with_sandbox_runner(root: Path) -> None:
    (root / "build").mkdir(exist_ok=True)
    (root / "build" / "run-in-docker.sh").write_text("#!/bin/sh\n")


class TestPrerequisites:
    def test_diamond_runs_shared_prerequisite_once(self, tmp_path: Path) -> None:
        registry = TaskRegistry(
            [
                _task("top", "left", "right"),
                _task("left", "base"),
                _task("right", "base"),
                _task("base"),
            ]
        )
        runner = FakeRunner()

        result = _dispatcher(tmp_path, registry, runner).run("top", make_snapshot(USE_SANDBOX="false"))

        assert isinstance(result, Ok)
        assert result.value.executed == ["base", "left", "right", "top"]
        assert runner.streamed() == [("./base.sh",), ("./left.sh",), ("./right.sh",), ("./top.sh",)]

    def test_same_task_twice_in_one_invocation(self, tmp_path: Path) -> None:
        runner = FakeRunner()
        dispatcher = _dispatcher(tmp_path, TaskRegistry([_task("base")]), runner)
        snapshot = make_snapshot(USE_SANDBOX="false")

        dispatcher.run("base", snapshot)
        dispatcher.run("base", snapshot)

        assert runner.streamed() == [("./base.sh",)]

    def test_distinct_configuration_runs_again(self, tmp_path: Path) -> None:
        runner = FakeRunner()
        dispatcher = _dispatcher(tmp_path, TaskRegistry([_task("base")]), runner)

        dispatcher.run("base", make_snapshot(USE_SANDBOX="false", ARCH="amd64"))
        dispatcher.run("base", make_snapshot(USE_SANDBOX="false", ARCH="arm64"))

        assert len(runner.streamed()) == 2

    def test_failing_prerequisite_stops_invocation(self, tmp_path: Path) -> None:
        registry = TaskRegistry([_task("top", "first", "second"), _task("first"), _task("second")])
        runner = FakeRunner()
        runner.on("./first.sh", returncode=4)
        dispatcher = _dispatcher(tmp_path, registry, runner)

        result = dispatcher.run("top", make_snapshot(USE_SANDBOX="false"))

        assert isinstance(result, Err)
        assert result.error == TaskFailed(task="first", exit_code=4, command=("./first.sh",))
        assert runner.streamed() == [("./first.sh",)]
        assert dispatcher.report.executed == []

    def test_interrupt_stops_invocation(self, tmp_path: Path) -> None:
        registry = TaskRegistry([_task("top", "first", "second"), _task("first"), _task("second")])
        runner = FakeRunner()
        runner.on("./first.sh", interrupt=True)

        result = _dispatcher(tmp_path, registry, runner).run("top", make_snapshot(USE_SANDBOX="false"))

        assert isinstance(result, Err)
        assert result.error == Interrupted(task="first")
        assert runner.streamed() == [("./first.sh",)]


class TestUnknownTask:
    def test_unknown_task_runs_nothing(self, tmp_path: Path) -> None:
        runner = FakeRunner()

        result = _dispatcher(tmp_path, build_registry(), runner).run("unknown-task", make_snapshot())

        assert isinstance(result, Err)
        assert isinstance(result.error, UnknownTask)
        assert result.error.name == "unknown-task"
        assert runner.calls == []


class TestStrategy:
    def test_direct_test_task_skips_sandbox(self, tmp_path: Path) -> None:
        runner = FakeRunner()

        result = _dispatcher(tmp_path, build_registry(), runner).run(
            "test", make_snapshot(USE_SANDBOX="false")
        )

        assert isinstance(result, Ok)
        assert runner.streamed() == [("hack/check-go-version.sh",), ("build/test.sh",)]
        assert runner.captured() == []
        call = runner.calls[-1]
        assert call.cwd == tmp_path
        assert call.env is not None
        assert call.env["USE_SANDBOX"] == "false"
        assert call.env["ARCH"] == "amd64"

    def test_sandboxed_build_goes_through_runner(self, tmp_path: Path) -> None:
        _with_sandbox_runner(tmp_path)
        runner = FakeRunner()

        result = _dispatcher(tmp_path, build_registry(), runner).run("build", make_snapshot())

        assert isinstance(result, Ok)
        check, build = runner.streamed()
        assert check[0] == build[0] == "build/run-in-docker.sh"
        assert check[-1] == "hack/check-go-version.sh"
        assert build[-1] == "build/build.sh"
        assert runner.captured() == [("docker", "info")]

    def test_sandbox_unavailable_does_not_fall_back(self, tmp_path: Path) -> None:
        runner = FakeRunner()

        result = _dispatcher(tmp_path, build_registry(), runner).run("build", make_snapshot())

        assert isinstance(result, Err)
        assert isinstance(result.error, SandboxUnavailable)
        assert runner.streamed() == []

    def test_interrupt_while_checking_sandbox(self, tmp_path: Path) -> None:
        _with_sandbox_runner(tmp_path)
        runner = FakeRunner()
        runner.on("docker", "info", interrupt=True)

        result = _dispatcher(tmp_path, build_registry(), runner).run("build", make_snapshot())

        assert isinstance(result, Err)
        assert result.error == Interrupted(task="check-go-version")
        assert runner.streamed() == []

    def test_host_tasks_ignore_sandbox(self, tmp_path: Path) -> None:
        runner = FakeRunner()

        result = _dispatcher(tmp_path, build_registry(), runner).run("clean", make_snapshot())

        assert isinstance(result, Ok)
        assert runner.streamed() == [("rm", "-rf", "bin/", ".gocache/", ".cache/")]

    def test_inside_sandbox_runs_directly(self, tmp_path: Path) -> None:
        runner = FakeRunner()

        result = _dispatcher(tmp_path, build_registry(), runner).run(
            "print-e2e-suite", make_snapshot(DIND_TASKS="")
        )

        assert isinstance(result, Ok)
        assert runner.streamed()[-1] == ("hack/print-e2e-suite.sh",)


def test_header_per_task(tmp_path: Path) -> None:
    console = MockConsole()
    dispatcher = create_dispatcher(
        registry=TaskRegistry([_task("base")]),
        workspace=Workspace(root=tmp_path),
        console=console,
        runner=FakeRunner(),
        base_env={},
    )

    dispatcher.run("base", make_snapshot(USE_SANDBOX="false", ARCH="arm64"))

    assert console.messages == ["base (arm64)"]
