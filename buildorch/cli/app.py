from __future__ import annotations

import os
from pathlib import Path

import typer

from buildorch import __version__
from buildorch.cli.commands.config_cmd import config
from buildorch.cli.commands.list_cmd import list_cmd, print_listing
from buildorch.cli.commands.run_cmd import run
from buildorch.cli.context import build_context
from buildorch.core.errors import ErrorCode
from buildorch.core.workspace import ROOT_ENV_VAR


app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


app.command()(run)
app.command("list")(list_cmd)
app.command()(config)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        help="Workspace root (overrides auto detection).",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if workspace is not None:
        try:
            root = workspace.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --workspace: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USAGE))

        if not root.is_dir():
            typer.echo(f"error: --workspace '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USAGE))

        os.environ[ROOT_ENV_VAR] = str(root)

    if ctx.invoked_subcommand is None:
        cli = build_context()
        print_listing(cli.registry, cli.console)


def main() -> None:
    app()
