"""Tests for buildorch.services.help."""

from __future__ import annotations

from buildorch.services.catalog import build_registry
from buildorch.services.help import TaskInfo, format_listing, list_tasks
from buildorch.services.tasks import Task, TaskRegistry


def test_list_tasks_in_declaration_order() -> None:
    registry = TaskRegistry([Task("b", "second"), Task("a", "first", prerequisites=("b",))])

    assert list_tasks(registry) == (
        TaskInfo(name="b", description="second"),
        TaskInfo(name="a", description="first", prerequisites=("b",)),
    )


def test_catalog_listing_covers_every_task() -> None:
    registry = build_registry()

    infos = list_tasks(registry)

    assert [i.name for i in infos] == list(registry.names())
    assert infos[0].name == "image"


def test_format_listing_aligns_descriptions() -> None:
    tasks = (TaskInfo("build", "Build it."), TaskInfo("release", "Ship it."))

    assert format_listing(tasks) == [
        "  build    Build it.",
        "  release  Ship it.",
    ]


def test_format_listing_with_prerequisites() -> None:
    tasks = (TaskInfo("clean", "Clean."), TaskInfo("build", "Build.", ("clean",)))

    lines = format_listing(tasks, with_prerequisites=True)

    assert lines == ["  clean  Clean.", "  build  Build. (after: clean)"]


def test_format_listing_empty() -> None:
    assert format_listing(()) == []
