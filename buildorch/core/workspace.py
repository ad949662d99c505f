"""Workspace detection and paths.

The workspace is the checkout the tasks operate on. Every action runs with
the workspace root as its working directory. The root is identified by a
`buildorch.toml` file; without one, the current directory is used.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "Workspace",
    "WorkspaceError",
    "detect_workspace",
    "find_workspace_upward",
    "is_workspace_root",
    "MARKER_FILE",
    "ROOT_ENV_VAR",
]

MARKER_FILE = "buildorch.toml"
ROOT_ENV_VAR = "BUILDORCH_ROOT"


@dataclass(frozen=True)
class WorkspaceError:
    """Error when the workspace root is not usable."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    """The checkout tasks run in."""

    root: Path

    @property
    def config_path(self) -> Path:
        """Path to buildorch.toml (may not exist)."""
        return self.root / MARKER_FILE

    @property
    def bin_dir(self) -> Path:
        """Directory per-platform binaries are written to."""
        return self.root / "bin"

    @property
    def rootfs_dir(self) -> Path:
        """Image build context."""
        return self.root / "rootfs"

    def artifact_dir(self, platform: str) -> Path:
        return self.bin_dir / platform

    def __str__(self) -> str:
        return str(self.root)


def is_workspace_root(path: Path) -> bool:
    return (path / MARKER_FILE).is_file()


def find_workspace_upward(start: Path) -> Path | None:
    """Search upward from start for a directory holding buildorch.toml."""
    for parent in (start, *start.parents):
        if is_workspace_root(parent):
            return parent
    return None


def detect_workspace(
    *,
    start_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Result[Workspace, WorkspaceError]:
    """Detect the workspace root.

    Detection order:
    1. BUILDORCH_ROOT environment variable (must be an existing directory)
    2. Nearest ancestor of start_dir (or cwd) holding buildorch.toml
    3. start_dir (or cwd) itself
    """
    env = os.environ if environ is None else environ
    env_value = env.get(ROOT_ENV_VAR, "").strip()
    if env_value:
        root = Path(env_value).expanduser().resolve()
        if not root.is_dir():
            return Err(
                WorkspaceError(
                    message=f"{ROOT_ENV_VAR} is not a directory: {root}",
                    searched_from=root,
                )
            )
        return Ok(Workspace(root=root))

    start = (start_dir or Path.cwd()).resolve()
    found = find_workspace_upward(start)
    return Ok(Workspace(root=found or start))
