"""Task listing for `buildorch list`.

A pure projection of the registry: nothing here runs or mutates a task.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tasks import TaskRegistry

__all__ = ["TaskInfo", "format_listing", "list_tasks"]


@dataclass(frozen=True, slots=True)
class TaskInfo:
    name: str
    description: str
    prerequisites: tuple[str, ...] = ()


def list_tasks(registry: TaskRegistry) -> tuple[TaskInfo, ...]:
    """Every declared task, in declaration order."""
    return tuple(
        TaskInfo(name=t.name, description=t.description, prerequisites=t.prerequisites)
        for t in registry
    )


def format_listing(tasks: tuple[TaskInfo, ...], *, with_prerequisites: bool = False) -> list[str]:
    """Aligned `name  description` lines."""
    width = max((len(t.name) for t in tasks), default=0)
    lines: list[str] = []
    for t in tasks:
        line = f"  {t.name:<{width}}  {t.description}".rstrip()
        if with_prerequisites and t.prerequisites:
            line += f" (after: {', '.join(t.prerequisites)})"
        lines.append(line)
    return lines
