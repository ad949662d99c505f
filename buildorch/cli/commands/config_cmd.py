from __future__ import annotations

import typer

from buildorch.cli.context import build_context
from buildorch.core.config import parse_assignments
from buildorch.core.errors import ErrorCode
from buildorch.core.result import Err
from buildorch.output.errors import error_exit_code, print_error


def config(
    assignments: list[str] | None = typer.Argument(
        None,
        metavar="[KEY=VALUE]...",
        help="Option overrides to apply before printing.",
    ),
) -> None:
    """Print the resolved configuration without running anything."""
    ctx = build_context()

    overrides = parse_assignments(assignments or [])
    if isinstance(overrides, Err):
        ctx.console.error(overrides.error.message)
        raise typer.Exit(code=int(ErrorCode.USAGE))

    snapshot = ctx.resolve(overrides.value)
    if isinstance(snapshot, Err):
        print_error(snapshot.error, ctx.console)
        raise typer.Exit(code=error_exit_code(snapshot.error))

    for line in snapshot.value.assignments():
        ctx.console.print(line)
