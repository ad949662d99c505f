"""Subprocess execution with Result-based error handling.

Two flavours, as used by the orchestrator:
- `run` captures output; used for read-only probes (toolchain, git,
  builder inspection).
- `run_silent` streams output to the terminal; used for task actions.

`ProcessRunner` is the seam services depend on, so tests can swap in a
recording fake.

Usage:
    result = run(["go", "env", "GOARCH"], cwd=Path("."))
    match result:
        case Ok(stdout):
            print(stdout.strip())
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from buildorch.core.result import Err, Ok, Result

__all__ = [
    "COMMAND_NOT_FOUND",
    "ProcessError",
    "ProcessRunner",
    "SubprocessRunner",
    "run",
    "run_silent",
]

# Shell convention for "command not found / not executable".
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (negative: killed by signal).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error."""
    try:
        proc = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=COMMAND_NOT_FOUND,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def run_silent(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Execute a command, streaming its output to the terminal.

    Blocks until the command exits. A KeyboardInterrupt kills the child
    (subprocess.run does that) and propagates to the caller.
    """
    try:
        proc = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            check=False,
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=COMMAND_NOT_FOUND,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout="",
                stderr="",
            )
        )

    return Ok(None)


class ProcessRunner(Protocol):
    """Spawns external commands on behalf of the services."""

    def capture(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, ProcessError]: ...

    def stream(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[None, ProcessError]: ...


class SubprocessRunner:
    """Production runner backed by `run` and `run_silent`."""

    def capture(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        return run(cmd, cwd, env)

    def stream(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[None, ProcessError]:
        return run_silent(cmd, cwd, env)
