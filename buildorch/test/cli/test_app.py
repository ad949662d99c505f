from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from buildorch import __version__
from buildorch.cli.app import app
from buildorch.core.errors import ErrorCode

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_workspace_must_be_a_directory(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    result = runner.invoke(app, ["--workspace", str(missing), "list"])

    assert result.exit_code == int(ErrorCode.USAGE)
