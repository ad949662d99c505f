from __future__ import annotations

from pathlib import Path

import pytest

import buildorch.cli.commands.list_cmd as list_cmd
from buildorch.output.console import MockConsole, Style
from buildorch.test.fakes import FakeRunner

from ._support import make_context, use_context


def test_lists_every_task_without_running_anything(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx = make_context(tmp_path)
    use_context(monkeypatch, list_cmd, ctx)

    list_cmd.list_cmd(prerequisites=False)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.count(Style.HEADER) == 1
    for name in ctx.registry.names():
        assert ctx.console.find(f"  {name} ")
    assert isinstance(ctx.runner, FakeRunner)
    assert ctx.runner.calls == []


def test_prerequisites_shown_on_request(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_context(tmp_path)
    use_context(monkeypatch, list_cmd, ctx)

    list_cmd.list_cmd(prerequisites=True)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("(after: init-docker-buildx, clean)")
