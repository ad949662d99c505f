"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from buildorch.core.config import ConfigurationError
from buildorch.core.errors import ErrorCode, signal_exit_code
from buildorch.output.console import Style
from buildorch.services.errors import (
    Interrupted,
    OrchestrationError,
    SandboxUnavailable,
    TaskFailed,
    UnknownTask,
    UnsupportedHostEngine,
)

if TYPE_CHECKING:
    from buildorch.output.console import ConsoleProtocol

__all__ = ["print_error", "error_exit_code"]


def print_error(error: OrchestrationError, console: ConsoleProtocol) -> None:
    """Print an orchestration error with its hint, if any."""
    match error:
        case ConfigurationError(option=option, message=message, hint=hint):
            console.error(f"{option}: {message}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case UnknownTask(name=name, suggestions=suggestions):
            console.error(f"unknown task: {name}")
            if suggestions:
                console.print(f"did you mean: {', '.join(suggestions)}", Style.DIM)
            console.print("hint: run 'buildorch list' to see all tasks", Style.DIM)
        case SandboxUnavailable(reason=reason, hint=hint):
            console.error(f"sandbox unavailable: {reason}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case UnsupportedHostEngine(capability=capability):
            console.error(f"host container engine lacks required capability: {capability}")
        case TaskFailed(task=task, exit_code=code, command=command):
            console.error(f"task {task} failed (exit {code})")
            if command:
                console.print(shlex.join(command), Style.DIM)
        case Interrupted(task=task):
            console.error(f"interrupted while running task {task}")


def error_exit_code(error: OrchestrationError) -> int:
    """Get the process exit code for an orchestration error."""
    match error:
        case ConfigurationError():
            return int(ErrorCode.CONFIG)
        case UnknownTask():
            return int(ErrorCode.USAGE)
        case SandboxUnavailable() | UnsupportedHostEngine():
            return int(ErrorCode.UNAVAILABLE)
        case TaskFailed(exit_code=code):
            return signal_exit_code(code) or 1
        case Interrupted():
            return int(ErrorCode.INTERRUPTED)
