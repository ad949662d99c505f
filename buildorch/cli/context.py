from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

import typer

from buildorch.core.config import (
    ConfigurationError,
    OverrideLayer,
    Snapshot,
    environment_layer,
    load_options_file,
    resolve,
)
from buildorch.core.errors import ErrorCode
from buildorch.core.options import OPTIONS
from buildorch.core.result import Err, Result
from buildorch.core.workspace import Workspace, detect_workspace
from buildorch.output.console import ConsoleProtocol, RichConsole
from buildorch.platform.detection import collect_host_facts
from buildorch.platform.process import ProcessRunner, SubprocessRunner
from buildorch.services.catalog import build_registry
from buildorch.services.tasks import TaskRegistry


def _process_environ() -> Mapping[str, str]:
    return dict(os.environ)


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    console: ConsoleProtocol
    registry: TaskRegistry
    runner: ProcessRunner = field(default_factory=SubprocessRunner)
    environ: Mapping[str, str] = field(default_factory=_process_environ)

    def resolve(self, overrides: Mapping[str, str]) -> Result[Snapshot, ConfigurationError]:
        """Resolve the configuration snapshot for this invocation."""
        file_layer = load_options_file(self.workspace.config_path)
        if isinstance(file_layer, Err):
            return file_layer
        layers = (
            file_layer.value,
            environment_layer(self.environ),
            OverrideLayer(name="command line", values=dict(overrides), passthrough=True),
        )
        host = collect_host_facts(self.workspace.root, self.runner)
        return resolve(OPTIONS, layers, host)


def build_context() -> CLIContext:
    workspace_result = detect_workspace()
    if isinstance(workspace_result, Err):
        typer.echo(f"error: {workspace_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USAGE))

    return CLIContext(
        workspace=workspace_result.value,
        console=RichConsole(),
        registry=build_registry(),
    )
