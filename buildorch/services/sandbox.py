"""Sandbox reachability and the multi-platform builder lifecycle.

The builder moves through three states:

    ABSENT --create--> CREATED --bootstrap--> BOOTSTRAPPED

`BuilderLifecycle.ensure_ready()` drives it to BOOTSTRAPPED. Each step
tolerates finding the builder already past it, so two invocations racing
on the same builder both succeed; there is no lock. Once an invocation has
seen the builder bootstrapped it never touches it again.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

from buildorch.core.config import Snapshot
from buildorch.core.result import Err, Ok, Result
from buildorch.output.console import ConsoleProtocol, Style
from buildorch.platform.process import ProcessRunner

from .errors import OrchestrationError, SandboxUnavailable, UnsupportedHostEngine

__all__ = [
    "BUILDX_CAPABILITY",
    "BuilderInfo",
    "BuilderLifecycle",
    "BuilderState",
    "SandboxCheck",
    "missing_platforms",
    "parse_inspect",
]

BUILDX_CAPABILITY = (
    "docker buildx (Docker 19.03 or higher is required with experimental features enabled)"
)

_ALREADY_EXISTS = ("existing instance", "already exists")


class BuilderState(Enum):
    ABSENT = auto()
    CREATED = auto()
    BOOTSTRAPPED = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class BuilderInfo:
    """What `buildx inspect` reported about a builder."""

    state: BuilderState
    platforms: tuple[str, ...] = ()


def parse_inspect(output: str) -> BuilderInfo:
    """Parse `buildx inspect` output of an existing builder.

    The builder counts as bootstrapped when any node reports
    `Status: running`.
    """
    running = False
    platforms: list[str] = []
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        if key == "status" and value.strip().lower() == "running":
            running = True
        elif key == "platforms":
            for item in value.split(","):
                item = item.strip().rstrip("*")
                if item and item not in platforms:
                    platforms.append(item)
    state = BuilderState.BOOTSTRAPPED if running else BuilderState.CREATED
    return BuilderInfo(state=state, platforms=tuple(platforms))


def _supports(platform: str, advertised: Sequence[str]) -> bool:
    wanted = platform if "/" in platform else f"linux/{platform}"
    return any(a == wanted or a.startswith(wanted + "/") for a in advertised)


def missing_platforms(platforms: Sequence[str], advertised: Sequence[str]) -> tuple[str, ...]:
    """Configured platforms the builder does not advertise."""
    return tuple(p for p in platforms if not _supports(p, advertised))


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


class SandboxCheck:
    """Verifies, once per invocation, that sandboxed actions can run."""

    def __init__(self, *, runner: ProcessRunner, root: Path) -> None:
        self._runner = runner
        self._root = root
        self._verified = False

    def verify(self, snapshot: Snapshot) -> Result[None, SandboxUnavailable]:
        if self._verified:
            return Ok(None)

        script = self._root / snapshot.text("SANDBOX_RUNNER")
        if not script.is_file():
            return Err(
                SandboxUnavailable(
                    reason=f"sandbox runner not found: {script}",
                    hint="set SANDBOX_RUNNER, or USE_SANDBOX=false to run on the host",
                )
            )

        engine = snapshot.text("CONTAINER_ENGINE")
        result = self._runner.capture([engine, "info"], self._root)
        if isinstance(result, Err):
            detail = _first_line(result.error.stderr) or str(result.error)
            return Err(
                SandboxUnavailable(
                    reason=f"{engine} is not reachable: {detail}",
                    hint=f"start the {engine} daemon, or USE_SANDBOX=false to run on the host",
                )
            )

        self._verified = True
        return Ok(None)


class BuilderLifecycle:
    """Provisions the shared multi-platform builder."""

    def __init__(self, *, runner: ProcessRunner, root: Path, console: ConsoleProtocol) -> None:
        self._runner = runner
        self._root = root
        self._console = console
        self._state: BuilderState | None = None

    @property
    def state(self) -> BuilderState | None:
        """Last observed state, None before the first observation."""
        return self._state

    def probe(self, snapshot: Snapshot) -> Result[None, UnsupportedHostEngine]:
        """Check the engine can build for several platforms at all."""
        engine = snapshot.text("CONTAINER_ENGINE")
        result = self._runner.capture([engine, "buildx", "version"], self._root)
        if isinstance(result, Err):
            return Err(UnsupportedHostEngine(capability=BUILDX_CAPABILITY))
        return Ok(None)

    def inspect(self, snapshot: Snapshot) -> BuilderInfo:
        engine = snapshot.text("CONTAINER_ENGINE")
        name = snapshot.text("BUILDER_NAME")
        result = self._runner.capture([engine, "buildx", "inspect", name], self._root)
        if isinstance(result, Err):
            return BuilderInfo(state=BuilderState.ABSENT)
        return parse_inspect(result.value)

    def ensure_ready(self, snapshot: Snapshot) -> Result[None, OrchestrationError]:
        """Bring the builder to BOOTSTRAPPED for the configured platforms.

        Returns immediately when already done in this invocation, and does
        nothing inside the sandbox (the outer invocation owns the builder).
        """
        if self._state is BuilderState.BOOTSTRAPPED:
            return Ok(None)
        if snapshot.flag("DIND_TASKS"):
            self._console.print("builder: managed by the outer invocation", Style.DIM)
            return Ok(None)

        probed = self.probe(snapshot)
        if isinstance(probed, Err):
            return probed

        name = snapshot.text("BUILDER_NAME")
        platforms = snapshot.items("PLATFORMS")
        info = self.inspect(snapshot)
        self._state = info.state
        if info.state is BuilderState.BOOTSTRAPPED and not missing_platforms(
            platforms, info.platforms
        ):
            return Ok(None)

        if info.state is BuilderState.ABSENT:
            created = self._create(snapshot)
            if isinstance(created, Err):
                return created
            self._state = BuilderState.CREATED

        if self._state is BuilderState.CREATED or missing_platforms(platforms, info.platforms):
            booted = self._bootstrap(snapshot)
            if isinstance(booted, Err):
                return booted

        info = self.inspect(snapshot)
        if info.state is not BuilderState.BOOTSTRAPPED:
            self._state = info.state
            return Err(
                SandboxUnavailable(
                    reason=f"builder {name} is {info.state} after bootstrap",
                    hint=f"inspect it with: docker buildx inspect {name}",
                )
            )
        missing = missing_platforms(platforms, info.platforms)
        if missing:
            return Err(
                SandboxUnavailable(
                    reason=f"builder {name} cannot build for: {', '.join(missing)}",
                    hint="check BINFMT_IMAGE installs emulators for these platforms",
                )
            )

        self._state = BuilderState.BOOTSTRAPPED
        self._console.print(f"builder {name}: ready ({', '.join(platforms)})", Style.DIM)
        return Ok(None)

    def _create(self, snapshot: Snapshot) -> Result[None, SandboxUnavailable]:
        engine = snapshot.text("CONTAINER_ENGINE")
        name = snapshot.text("BUILDER_NAME")
        argv = [engine, "buildx", "create", "--name", name, "--use"]
        if snapshot.flag("VERBOSE"):
            self._console.command(argv)
        result = self._runner.capture(argv, self._root)
        if isinstance(result, Err):
            stderr = result.error.stderr.lower()
            if any(marker in stderr for marker in _ALREADY_EXISTS):
                return Ok(None)
            return Err(
                SandboxUnavailable(
                    reason=f"could not create builder {name}: "
                    f"{_first_line(result.error.stderr) or result.error}",
                )
            )
        return Ok(None)

    def _bootstrap(self, snapshot: Snapshot) -> Result[None, SandboxUnavailable]:
        engine = snapshot.text("CONTAINER_ENGINE")
        name = snapshot.text("BUILDER_NAME")
        platforms = ",".join(snapshot.items("PLATFORMS"))
        binfmt = snapshot.text("BINFMT_IMAGE")
        steps = (
            [engine, "run", "--rm", "--privileged", binfmt, "--install", platforms],
            [engine, "buildx", "inspect", "--bootstrap", name],
        )
        for argv in steps:
            if snapshot.flag("VERBOSE"):
                self._console.command(argv)
            result = self._runner.stream(argv, self._root)
            if isinstance(result, Err):
                return Err(
                    SandboxUnavailable(
                        reason=f"bootstrapping builder {name} failed: {result.error}",
                    )
                )
        return Ok(None)
