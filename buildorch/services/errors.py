from __future__ import annotations

from dataclasses import dataclass

from buildorch.core.config import ConfigurationError


@dataclass(frozen=True, slots=True)
class UnknownTask:
    name: str
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SandboxUnavailable:
    reason: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class UnsupportedHostEngine:
    capability: str


@dataclass(frozen=True, slots=True)
class TaskFailed:
    task: str
    exit_code: int
    command: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Interrupted:
    task: str


OrchestrationError = (
    ConfigurationError
    | UnknownTask
    | SandboxUnavailable
    | UnsupportedHostEngine
    | TaskFailed
    | Interrupted
)
