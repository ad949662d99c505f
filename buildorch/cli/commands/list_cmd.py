from __future__ import annotations

import typer

from buildorch.cli.context import build_context
from buildorch.output.console import ConsoleProtocol, Style
from buildorch.services.help import format_listing, list_tasks
from buildorch.services.tasks import TaskRegistry


def print_listing(
    registry: TaskRegistry,
    console: ConsoleProtocol,
    *,
    with_prerequisites: bool = False,
) -> None:
    console.print("Usage:", Style.INFO)
    console.print("  buildorch run <task> [KEY=VALUE]...")
    console.header("Tasks")
    for line in format_listing(list_tasks(registry), with_prerequisites=with_prerequisites):
        console.print(line)


def list_cmd(
    prerequisites: bool = typer.Option(
        False, "--prerequisites", "-p", help="Also show each task's prerequisites."
    ),
) -> None:
    """List every task with its description."""
    ctx = build_context()
    print_listing(ctx.registry, ctx.console, with_prerequisites=prerequisites)
