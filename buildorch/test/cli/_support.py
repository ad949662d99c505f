from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import pytest

from buildorch.cli.context import CLIContext
from buildorch.core.workspace import MARKER_FILE, Workspace
from buildorch.output.console import MockConsole
from buildorch.services.catalog import build_registry
from buildorch.test.fakes import FakeRunner


def make_context(
    tmp_path: Path,
    *,
    runner: FakeRunner | None = None,
    environ: Mapping[str, str] | None = None,
    options: str = "",
) -> CLIContext:
    (tmp_path / MARKER_FILE).write_text(options, encoding="utf-8")
    if runner is None:
        runner = FakeRunner()
        runner.on("go", "env", "GOARCH", stdout="amd64\n")
        runner.on("git", "rev-parse", "--short", "HEAD", stdout="abc1234\n")
    return CLIContext(
        workspace=Workspace(root=tmp_path),
        console=MockConsole(),
        registry=build_registry(),
        runner=runner,
        environ=dict(environ or {}),
    )


def use_context(monkeypatch: pytest.MonkeyPatch, module: object, ctx: CLIContext) -> None:
    monkeypatch.setattr(module, "build_context", lambda: ctx)
