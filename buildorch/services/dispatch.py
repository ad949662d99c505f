"""Task dispatch.

`Dispatcher.run()` resolves a task, runs its prerequisites depth-first in
declaration order, then its own action through the execution strategy.
Within one invocation a task runs at most once per configuration snapshot,
however many prerequisite paths reach it. The first error stops everything,
and an interrupt anywhere in a task surfaces as `Interrupted`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from buildorch.core.config import Snapshot
from buildorch.core.result import Err, Ok, Result
from buildorch.core.workspace import Workspace
from buildorch.output.console import ConsoleProtocol, Style
from buildorch.platform.process import ProcessRunner, SubprocessRunner

from .errors import Interrupted, OrchestrationError
from .executor import ActionExecutor
from .release import ReleaseDriver
from .sandbox import BuilderLifecycle, SandboxCheck
from .strategy import ExecutionStrategy, strategy_for, wrap
from .tasks import Task, TaskRegistry

__all__ = ["Dispatcher", "RunReport", "create_dispatcher"]


def _empty_names() -> list[str]:
    return []


@dataclass
class RunReport:
    """Tasks executed by one invocation, in execution order."""

    executed: list[str] = field(default_factory=_empty_names)


class Dispatcher:
    def __init__(
        self,
        *,
        registry: TaskRegistry,
        executor: ActionExecutor,
        sandbox: SandboxCheck,
        lifecycle: BuilderLifecycle,
        release: ReleaseDriver,
        console: ConsoleProtocol,
    ) -> None:
        self._registry = registry
        self._executor = executor
        self._sandbox = sandbox
        self._lifecycle = lifecycle
        self._release = release
        self._console = console
        self._done: set[tuple[str, tuple[tuple[str, str], ...]]] = set()
        self._report = RunReport()

    @property
    def report(self) -> RunReport:
        return self._report

    def run(self, name: str, snapshot: Snapshot) -> Result[RunReport, OrchestrationError]:
        """Run a task and everything it depends on.

        Returns:
            Ok(RunReport) when every task succeeded
            Err(OrchestrationError) for the first failure
        """
        found = self._registry.lookup(name)
        if isinstance(found, Err):
            return found
        task = found.value

        key = (task.name, snapshot.fingerprint)
        if key in self._done:
            return Ok(self._report)

        for prerequisite in task.prerequisites:
            result = self.run(prerequisite, snapshot)
            if isinstance(result, Err):
                return result

        self._console.header(_title(task, snapshot))

        try:
            if task.needs_builder:
                ready = self._lifecycle.ensure_ready(snapshot)
                if isinstance(ready, Err):
                    return ready

            if task.fanout is not None:
                released = self._release.release(task.fanout, snapshot, self.run)
                if isinstance(released, Err):
                    return released

            action = self._action(task, snapshot)
            if isinstance(action, Err):
                return action
        except KeyboardInterrupt:
            return Err(Interrupted(task=task.name))

        self._done.add(key)
        self._report.executed.append(task.name)
        return Ok(self._report)

    def _action(self, task: Task, snapshot: Snapshot) -> Result[None, OrchestrationError]:
        commands = tuple(task.commands(snapshot))
        if not commands:
            return Ok(None)

        strategy = strategy_for(task.placement, snapshot)
        if strategy is ExecutionStrategy.SANDBOXED:
            checked = self._sandbox.verify(snapshot)
            if isinstance(checked, Err):
                return checked
            if snapshot.flag("VERBOSE"):
                self._console.print(f"strategy: {strategy}", Style.DIM)

        return self._executor.execute(task.name, wrap(commands, strategy, snapshot), snapshot)


def _title(task: Task, snapshot: Snapshot) -> str:
    if task.fanout is None and "ARCH" in snapshot:
        return f"{task.name} ({snapshot.text('ARCH')})"
    return task.name


def create_dispatcher(
    *,
    registry: TaskRegistry,
    workspace: Workspace,
    console: ConsoleProtocol,
    runner: ProcessRunner | None = None,
    base_env: Mapping[str, str] | None = None,
) -> Dispatcher:
    """Wire a dispatcher for one invocation."""
    r = runner or SubprocessRunner()
    lifecycle = BuilderLifecycle(runner=r, root=workspace.root, console=console)
    return Dispatcher(
        registry=registry,
        executor=ActionExecutor(
            runner=r,
            root=workspace.root,
            console=console,
            base_env=os.environ if base_env is None else base_env,
        ),
        sandbox=SandboxCheck(runner=r, root=workspace.root),
        lifecycle=lifecycle,
        release=ReleaseDriver(lifecycle=lifecycle, workspace=workspace, console=console),
        console=console,
    )
