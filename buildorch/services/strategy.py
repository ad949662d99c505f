"""Execution strategy selection and command wrapping.

`wrap` is the single seam between a task's commands and where they run.
Under DIRECT the commands are returned untouched. Under SANDBOXED they are
folded into one call of the sandbox runner script, which receives every
snapshot value as a KEY=VALUE argument followed by the command to run:

    build/run-in-docker.sh TAG=0.32.0 ARCH=amd64 ... build/build.sh

Several commands become one strict shell body (errexit, pipefail), so the
first failing command stops the sequence inside the sandbox too.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from enum import Enum, auto

from buildorch.core.config import Snapshot

from .tasks import SHELL, Command, Placement

__all__ = ["ExecutionStrategy", "select_strategy", "strategy_for", "wrap", "render_script"]


class ExecutionStrategy(Enum):
    DIRECT = auto()
    SANDBOXED = auto()

    def __str__(self) -> str:
        return self.name.lower()


def select_strategy(snapshot: Snapshot) -> ExecutionStrategy:
    """Strategy configured for this invocation.

    Inside the sandbox (DIND_TASKS set) everything runs directly, whatever
    USE_SANDBOX says.
    """
    if snapshot.flag("DIND_TASKS"):
        return ExecutionStrategy.DIRECT
    if snapshot.flag("USE_SANDBOX"):
        return ExecutionStrategy.SANDBOXED
    return ExecutionStrategy.DIRECT


def strategy_for(placement: Placement, snapshot: Snapshot) -> ExecutionStrategy:
    """Effective strategy for a task with the given placement."""
    if placement is Placement.HOST or snapshot.flag("DIND_TASKS"):
        return ExecutionStrategy.DIRECT
    if placement is Placement.SANDBOX:
        return ExecutionStrategy.SANDBOXED
    return select_strategy(snapshot)


def _render(command: Command) -> str:
    line = shlex.join(command.argv)
    if command.env:
        assignments = " ".join(f"{k}={shlex.quote(v)}" for k, v in command.env.items())
        line = f"env {assignments} {line}"
    if command.allow_failure:
        line = f"{line} || true"
    return line


def render_script(commands: Sequence[Command]) -> str:
    """Fold commands into one shell body, one command per line."""
    return "\n".join(_render(c) for c in commands)


def _body(commands: Sequence[Command]) -> tuple[str, ...]:
    if len(commands) == 1:
        only = commands[0]
        if not only.env and not only.allow_failure:
            return only.argv
    return (*SHELL, render_script(commands))


def wrap(
    commands: Sequence[Command],
    strategy: ExecutionStrategy,
    snapshot: Snapshot,
) -> tuple[Command, ...]:
    """Commands that implement `commands` under `strategy`."""
    if strategy is ExecutionStrategy.DIRECT or not commands:
        return tuple(commands)

    banners = [c.banner for c in commands if c.banner]
    runner = snapshot.text("SANDBOX_RUNNER")
    return (
        Command(
            argv=(runner, *snapshot.assignments(), *_body(commands)),
            banner=banners[0] if banners else None,
        ),
    )
