"""Tests for buildorch.platform.process."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from buildorch.core.result import Err, Ok
from buildorch.platform.process import (
    COMMAND_NOT_FOUND,
    ProcessError,
    SubprocessRunner,
    run,
    run_silent,
)

PY = sys.executable


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("docker", "buildx", "build", "--push", "rootfs"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "docker buildx build ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "import sys; sys.exit(42)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 42

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == COMMAND_NOT_FOUND
        assert result.error.stderr

    def test_uses_cwd_and_env(self, tmp_path: Path) -> None:
        (tmp_path / "marker.txt").write_text("x")
        env = {**os.environ, "BUILDORCH_TEST_VAR": "value"}

        result = run(
            [PY, "-c", "import os; print(os.listdir('.'), os.environ['BUILDORCH_TEST_VAR'])"],
            cwd=tmp_path,
            env=env,
        )

        assert isinstance(result, Ok)
        assert "marker.txt" in result.value
        assert "value" in result.value


class TestRunSilent:
    def test_success_returns_none(self, tmp_path: Path) -> None:
        result = run_silent([PY, "-c", "pass"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value is None

    def test_failure_keeps_exit_code(self, tmp_path: Path) -> None:
        result = run_silent([PY, "-c", "import sys; sys.exit(3)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 3


def test_subprocess_runner_delegates(tmp_path: Path) -> None:
    runner = SubprocessRunner()

    captured = runner.capture([PY, "-c", "print('x')"], tmp_path)
    streamed = runner.stream([PY, "-c", "pass"], tmp_path)

    assert isinstance(captured, Ok)
    assert captured.value.strip() == "x"
    assert isinstance(streamed, Ok)
