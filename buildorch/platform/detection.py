"""Host fact probing.

Probes the host toolchain and checkout once, before configuration is
resolved, so resolution itself never touches the host. A probe that fails
(tool missing, not a git checkout) simply leaves the fact unset.
"""

from __future__ import annotations

from pathlib import Path

from buildorch.core.config import HostFacts
from buildorch.core.result import Ok

from .process import ProcessRunner, SubprocessRunner

__all__ = ["collect_host_facts"]


def _first_line(runner: ProcessRunner, cmd: list[str], cwd: Path) -> str | None:
    result = runner.capture(cmd, cwd)
    if not isinstance(result, Ok):
        return None
    for line in result.value.splitlines():
        line = line.strip()
        if line:
            return line
    return None


def collect_host_facts(root: Path, runner: ProcessRunner | None = None) -> HostFacts:
    """Probe architecture and git metadata from the host."""
    r = runner or SubprocessRunner()
    return HostFacts(
        go_arch=_first_line(r, ["go", "env", "GOARCH"], root),
        git_commit=_first_line(r, ["git", "rev-parse", "--short", "HEAD"], root),
        repo_info=_first_line(r, ["git", "config", "--get", "remote.origin.url"], root),
    )
