"""Task declarations and the task registry.

A task is a declarative record: a name, a description, prerequisite task
names and a command builder turning a configuration snapshot into the
external commands to run. The registry holds tasks in declaration order
and validates the prerequisite graph once every task is declared.

Usage:
    registry = TaskRegistry()
    registry.declare(Task("clean", "Remove build output.", commands=lambda s: [cmd("rm", "-rf", "bin/")]))
    registry.declare(Task("build", prerequisites=("clean",), commands=...))
    registry.validate()

    match registry.lookup("biuld"):
        case Err(UnknownTask(suggestions=s)):
            print(f"did you mean: {s}")
"""

from __future__ import annotations

import difflib
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from buildorch.core.config import Snapshot
from buildorch.core.result import Err, Ok, Result

from .errors import UnknownTask

__all__ = [
    "Command",
    "CommandBuilder",
    "FanOut",
    "Placement",
    "Task",
    "TaskRegistry",
    "cmd",
    "shell",
]

SHELL = ("bash", "-o", "pipefail", "-o", "errexit", "-c")


def _no_env() -> Mapping[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class Command:
    """One external command line.

    Attributes:
        argv: Program and arguments
        env: Extra environment for this command only
        allow_failure: A non-zero exit is ignored (`cmd || true`)
        banner: Message printed before the command runs
    """

    argv: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=_no_env)
    allow_failure: bool = False
    banner: str | None = None


def cmd(
    *argv: str,
    env: Mapping[str, str] | None = None,
    allow_failure: bool = False,
    banner: str | None = None,
) -> Command:
    return Command(argv=argv, env=dict(env or {}), allow_failure=allow_failure, banner=banner)


def shell(script: str, *, banner: str | None = None) -> Command:
    """A command needing shell features (pipes, globs, substitution)."""
    return Command(argv=(*SHELL, script), banner=banner)


CommandBuilder = Callable[[Snapshot], Sequence[Command]]


def _no_commands(_: Snapshot) -> Sequence[Command]:
    return ()


class Placement(Enum):
    """Where a task's commands may run."""

    INHERIT = auto()  # follows the configured execution strategy
    HOST = auto()  # always directly on the host
    SANDBOX = auto()  # always in the sandbox, unless already inside one


@dataclass(frozen=True, slots=True)
class FanOut:
    """Run `task` once per item of list option `over`, bound to `option`."""

    task: str = "build"
    option: str = "ARCH"
    over: str = "PLATFORMS"


@dataclass(frozen=True, slots=True)
class Task:
    """A named unit of orchestrated work.

    Attributes:
        name: Unique task name
        description: One-line summary shown by `buildorch list`
        prerequisites: Tasks run first, in this order
        commands: Builds the commands from the configuration snapshot
        placement: Execution strategy constraint
        needs_builder: The multi-platform builder must be ready first
        fanout: Per-platform fan-out run before the task's own commands
    """

    name: str
    description: str = ""
    prerequisites: tuple[str, ...] = ()
    commands: CommandBuilder = _no_commands
    placement: Placement = Placement.INHERIT
    needs_builder: bool = False
    fanout: FanOut | None = None

    def dependencies(self) -> tuple[str, ...]:
        """All tasks this task can invoke, prerequisites first."""
        if self.fanout is not None:
            return (*self.prerequisites, self.fanout.task)
        return self.prerequisites


class TaskRegistry:
    """Tasks by name, in declaration order."""

    def __init__(self, tasks: Sequence[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {}
        for task in tasks:
            self.declare(task)

    def declare(self, task: Task) -> None:
        """Add a task.

        Raises:
            ValueError: A task with the same name is already declared.
        """
        if task.name in self._tasks:
            raise ValueError(f"task declared twice: {task.name}")
        self._tasks[task.name] = task

    def get(self, name: str) -> Task | None:
        return self._tasks.get(name)

    def lookup(self, name: str) -> Result[Task, UnknownTask]:
        """Resolve a task name, suggesting close names when unknown."""
        task = self._tasks.get(name)
        if task is not None:
            return Ok(task)
        suggestions = difflib.get_close_matches(name, list(self._tasks), n=3, cutoff=0.6)
        return Err(UnknownTask(name=name, suggestions=tuple(suggestions)))

    def names(self) -> tuple[str, ...]:
        return tuple(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def validate(self) -> None:
        """Check the dependency graph: every edge known, no cycles.

        Raises:
            ValueError: Unknown prerequisite or dependency cycle.
        """
        for task in self._tasks.values():
            for dep in task.dependencies():
                if dep not in self._tasks:
                    raise ValueError(f"task {task.name} depends on unknown task {dep}")

        done: set[str] = set()

        def visit(name: str, path: tuple[str, ...]) -> None:
            if name in path:
                cycle = " -> ".join((*path[path.index(name) :], name))
                raise ValueError(f"dependency cycle: {cycle}")
            if name in done:
                return
            for dep in self._tasks[name].dependencies():
                visit(dep, (*path, name))
            done.add(name)

        for name in self._tasks:
            visit(name, ())
