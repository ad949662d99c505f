"""Release fan-out: one build per platform, then one multi-platform publish.

The driver only performs the fan-out half; the publish is the release
task's own command list, run by the dispatcher once the fan-out succeeded.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from buildorch.core.config import ConfigurationError, Snapshot
from buildorch.core.result import Err, Ok, Result
from buildorch.core.workspace import Workspace
from buildorch.output.console import ConsoleProtocol, Style

from .errors import OrchestrationError
from .sandbox import BuilderLifecycle
from .tasks import FanOut

__all__ = ["ReleaseDriver", "ReleaseReport"]

BuildFn = Callable[[str, Snapshot], Result[object, OrchestrationError]]


@dataclass(frozen=True, slots=True)
class ReleaseReport:
    platforms: tuple[str, ...]
    artifacts: tuple[Path, ...]


class ReleaseDriver:
    def __init__(
        self,
        *,
        lifecycle: BuilderLifecycle,
        workspace: Workspace,
        console: ConsoleProtocol,
    ) -> None:
        self._lifecycle = lifecycle
        self._workspace = workspace
        self._console = console

    def release(
        self,
        fanout: FanOut,
        snapshot: Snapshot,
        build: BuildFn,
    ) -> Result[ReleaseReport, OrchestrationError]:
        """Build `fanout.task` once per configured platform, in order.

        The builder is made ready before the first build. The first failing
        platform stops the fan-out; later platforms are not attempted.
        """
        platforms = snapshot.items(fanout.over)
        if not platforms:
            return Err(
                ConfigurationError(
                    option=fanout.over,
                    message="no platforms configured for the release",
                )
            )

        ready = self._lifecycle.ensure_ready(snapshot)
        if isinstance(ready, Err):
            return ready

        artifacts: list[Path] = []
        for platform in platforms:
            scoped = snapshot.with_overrides({fanout.option: platform})
            if isinstance(scoped, Err):
                return scoped

            built = build(fanout.task, scoped.value)
            if isinstance(built, Err):
                return built

            artifact = self._workspace.artifact_dir(platform)
            self._console.print(f"{fanout.task} ({platform}): {artifact}", Style.DIM)
            artifacts.append(artifact)

        return Ok(ReleaseReport(platforms=platforms, artifacts=tuple(artifacts)))
