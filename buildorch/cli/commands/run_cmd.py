from __future__ import annotations

import typer

from buildorch.cli.context import build_context
from buildorch.core.config import parse_assignments
from buildorch.core.errors import ErrorCode
from buildorch.core.result import Err, Ok
from buildorch.output.console import Style
from buildorch.output.errors import error_exit_code, print_error
from buildorch.services.dispatch import create_dispatcher


def run(
    task: str = typer.Argument(..., help="Task to run (see: buildorch list)."),
    assignments: list[str] | None = typer.Argument(
        None,
        metavar="[KEY=VALUE]...",
        help="Option overrides, e.g. ARCH=arm64 USE_SANDBOX=false.",
    ),
) -> None:
    """Run a task and its prerequisites."""
    ctx = build_context()

    overrides = parse_assignments(assignments or [])
    if isinstance(overrides, Err):
        ctx.console.error(overrides.error.message)
        raise typer.Exit(code=int(ErrorCode.USAGE))

    found = ctx.registry.lookup(task)
    if isinstance(found, Err):
        print_error(found.error, ctx.console)
        raise typer.Exit(code=error_exit_code(found.error))

    snapshot = ctx.resolve(overrides.value)
    if isinstance(snapshot, Err):
        print_error(snapshot.error, ctx.console)
        raise typer.Exit(code=error_exit_code(snapshot.error))

    dispatcher = create_dispatcher(
        registry=ctx.registry,
        workspace=ctx.workspace,
        console=ctx.console,
        runner=ctx.runner,
        base_env=ctx.environ,
    )

    match dispatcher.run(task, snapshot.value):
        case Ok(report):
            ctx.console.success(f"{task} ({len(report.executed)} tasks)")
            ctx.console.print(" -> ".join(report.executed), Style.DIM)
        case Err(error):
            print_error(error, ctx.console)
            raise typer.Exit(code=error_exit_code(error))
