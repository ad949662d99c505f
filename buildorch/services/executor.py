"""Runs a task's (already wrapped) commands, one at a time, fail-fast."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from buildorch.core.config import Snapshot
from buildorch.core.result import Err, Ok, Result
from buildorch.output.console import ConsoleProtocol
from buildorch.platform.process import ProcessRunner

from .errors import Interrupted, OrchestrationError, TaskFailed
from .tasks import Command

__all__ = ["ActionExecutor"]


class ActionExecutor:
    """Spawn commands from the workspace root with the snapshot as environment."""

    def __init__(
        self,
        *,
        runner: ProcessRunner,
        root: Path,
        console: ConsoleProtocol,
        base_env: Mapping[str, str],
    ) -> None:
        self._runner = runner
        self._root = root
        self._console = console
        self._base_env = dict(base_env)

    def environment(self, snapshot: Snapshot) -> dict[str, str]:
        return {**self._base_env, **snapshot.as_env()}

    def execute(
        self,
        task: str,
        commands: Sequence[Command],
        snapshot: Snapshot,
    ) -> Result[None, OrchestrationError]:
        """Run commands in order; the first failure stops the task.

        Returns:
            Ok(None) when every command succeeded (or was allowed to fail)
            Err(TaskFailed) with the failing command's exit code
            Err(Interrupted) when the user interrupted a running command
        """
        env = self.environment(snapshot)
        verbose = snapshot.flag("VERBOSE")

        for command in commands:
            if command.banner:
                self._console.info(command.banner)
            if verbose:
                self._console.command(command.argv)

            try:
                result = self._runner.stream(command.argv, self._root, {**env, **command.env})
            except KeyboardInterrupt:
                return Err(Interrupted(task=task))

            if isinstance(result, Err) and not command.allow_failure:
                return Err(
                    TaskFailed(
                        task=task,
                        exit_code=result.error.returncode,
                        command=command.argv,
                    )
                )

        return Ok(None)
