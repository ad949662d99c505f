"""Tests for the ingress controller task catalog."""

from __future__ import annotations

import pytest

from buildorch.services.catalog import TASKS, build_registry
from buildorch.services.tasks import SHELL, FanOut, Placement, TaskRegistry
from buildorch.test.fakes import make_snapshot


@pytest.fixture
def registry() -> TaskRegistry:
    return build_registry()


def test_every_task_is_described(registry: TaskRegistry) -> None:
    assert len(registry) == len(TASKS)
    assert all(task.description for task in registry)


def test_names_are_unique() -> None:
    names = [t.name for t in TASKS]
    assert len(names) == len(set(names))


def test_release_fans_out_build_over_platforms(registry: TaskRegistry) -> None:
    release = registry.lookup("release").unwrap()

    assert release.fanout == FanOut(task="build", option="ARCH", over="PLATFORMS")
    assert release.prerequisites == ("init-docker-buildx", "clean")
    assert release.placement is Placement.HOST


def test_builder_task_has_no_commands(registry: TaskRegistry) -> None:
    task = registry.lookup("init-docker-buildx").unwrap()

    assert task.needs_builder
    assert tuple(task.commands(make_snapshot())) == ()


@pytest.mark.parametrize(
    ("name", "placement"),
    [
        ("build", Placement.INHERIT),
        ("test", Placement.INHERIT),
        ("static-check", Placement.INHERIT),
        ("print-e2e-suite", Placement.SANDBOX),
        ("dev-env", Placement.HOST),
        ("kind-e2e-test", Placement.HOST),
        ("image", Placement.HOST),
    ],
)
def test_placements(registry: TaskRegistry, name: str, placement: Placement) -> None:
    assert registry.lookup(name).unwrap().placement is placement


def test_go_tasks_check_the_toolchain_first(registry: TaskRegistry) -> None:
    for name in ("build", "build-plugin", "test", "e2e-test", "dev-env", "cover"):
        assert registry.lookup(name).unwrap().prerequisites[:1] == ("check-go-version",)


def test_image_uses_snapshot(registry: TaskRegistry) -> None:
    snapshot = make_snapshot(ARCH="arm64", TAG="1.2.3", CONTAINER_ENGINE="podman")

    copy, build = registry.lookup("image").unwrap().commands(snapshot)

    assert copy.argv == ("cp", "-R", "bin/", "rootfs/")
    assert build.argv[:2] == ("podman", "build")
    assert "TARGETARCH=arm64" in build.argv
    assert "VERSION=1.2.3" in build.argv
    assert build.argv[-3:] == (
        "-t",
        "quay.io/kubernetes-ingress-controller/nginx-ingress-controller:1.2.3",
        "rootfs",
    )


def test_clean_image_tolerates_missing_image(registry: TaskRegistry) -> None:
    (remove,) = registry.lookup("clean-image").unwrap().commands(make_snapshot())

    assert remove.allow_failure
    assert remove.argv[:3] == ("docker", "rmi", "-f")


def test_dep_ensure_turns_modules_on(registry: TaskRegistry) -> None:
    tidy, prune, vendor = registry.lookup("dep-ensure").unwrap().commands(make_snapshot())

    assert tidy.env == {"GO111MODULE": "on"}
    assert prune.env == {}
    assert vendor.argv == ("go", "mod", "vendor")


def test_vet_needs_a_shell(registry: TaskRegistry) -> None:
    (vet,) = registry.lookup("vet").unwrap().commands(make_snapshot())

    assert vet.argv[: len(SHELL)] == SHELL
    assert "${PKG}/internal/..." in vet.argv[-1]


def test_publish_targets_every_platform(registry: TaskRegistry) -> None:
    snapshot = make_snapshot(PLATFORMS="amd64 arm64 s390x", TAG="0.33.0")

    _, publish = registry.lookup("release").unwrap().commands(snapshot)

    assert publish.argv[:3] == ("docker", "buildx", "build")
    assert "--push" in publish.argv
    assert publish.argv[publish.argv.index("--builder") + 1] == "ingress-nginx"
    assert publish.argv[publish.argv.index("--platform") + 1] == "amd64,arm64,s390x"


def test_show_version(registry: TaskRegistry) -> None:
    (show,) = registry.lookup("show-version").unwrap().commands(make_snapshot(TAG="9.9.9"))

    assert show.argv == ("printf", "%s", "9.9.9")
