"""The ingress controller's task catalog.

Scripts under build/, hack/ and test/ are opaque collaborators: each task
only decides which of them to call, with which arguments, and where.
"""

from __future__ import annotations

from collections.abc import Sequence

from buildorch.core.config import Snapshot

from .tasks import Command, FanOut, Placement, Task, TaskRegistry, cmd, shell

__all__ = ["build_registry", "TASKS"]

_AWESOME_BOT_IMAGE = "aledbf/awesome_bot:0.1"
_MKDOCS_IMAGE = "squidfunk/mkdocs-material:5.1.0"
_MISSPELL_PATHS = "cmd/* internal/* deploy/* docs/* design/* test/* README.md"


def _image_ref(s: Snapshot) -> str:
    return f"{s.text('REGISTRY')}/{s.text('IMAGE_NAME')}:{s.text('TAG')}"


class _Fixed:
    """Command builder for a command line that ignores the snapshot."""

    def __init__(self, commands: tuple[Command, ...]) -> None:
        self._commands = commands

    def __call__(self, _: Snapshot) -> Sequence[Command]:
        return self._commands


def _run(program: str, *args: str) -> _Fixed:
    return _Fixed((cmd(program, *args),))


def _image(s: Snapshot) -> Sequence[Command]:
    engine = s.text("CONTAINER_ENGINE")
    return (
        cmd("cp", "-R", "bin/", "rootfs/", banner=f"Building docker image ({s.text('ARCH')})..."),
        cmd(
            engine,
            "build",
            "--no-cache",
            "--build-arg",
            f"BASE_IMAGE={s.text('BASE_IMAGE')}",
            "--build-arg",
            f"VERSION={s.text('TAG')}",
            "--build-arg",
            f"TARGETARCH={s.text('ARCH')}",
            "-t",
            _image_ref(s),
            "rootfs",
        ),
    )


def _clean_image(s: Snapshot) -> Sequence[Command]:
    ref = f"{s.text('BASE_IMAGE')}:{s.text('TAG')}"
    return (
        cmd(
            s.text("CONTAINER_ENGINE"),
            "rmi",
            "-f",
            ref,
            allow_failure=True,
            banner=f"removing old image {ref}",
        ),
    )


def _cover(_: Snapshot) -> Sequence[Command]:
    return (
        cmd("build/cover.sh"),
        shell("curl -s https://codecov.io/bash | bash", banner="Uploading coverage results..."),
    )


def _vet(_: Snapshot) -> Sequence[Command]:
    return (shell('go vet $(go list "${PKG}/internal/..." | grep -v vendor)'),)


def _check_dead_links(_: Snapshot) -> Sequence[Command]:
    return (
        shell(
            f'"${{CONTAINER_ENGINE}}" run -t -v "$PWD:/tmp" {_AWESOME_BOT_IMAGE} '
            "--allow-dupe --allow-redirect "
            "$(find \"$PWD\" -mindepth 1 -name '*.md' -printf '%P\\n' "
            "| grep -v vendor | grep -v Changelog.md)"
        ),
    )


def _dep_ensure(_: Snapshot) -> Sequence[Command]:
    modules_on = {"GO111MODULE": "on"}
    return (
        cmd("go", "mod", "tidy", "-v", env=modules_on),
        cmd("find", "vendor", "-name", "*_test.go", "-delete"),
        cmd("go", "mod", "vendor", env=modules_on),
    )


def _dev_env_stop(s: Snapshot) -> Sequence[Command]:
    return (cmd("kind", "delete", "cluster", "--name", s.text("DEV_CLUSTER")),)


def _live_docs(s: Snapshot) -> Sequence[Command]:
    return (
        shell(
            f'"${{CONTAINER_ENGINE}}" run --rm -it -p 8000:8000 -v "$PWD:/docs" {_MKDOCS_IMAGE}'
        ),
    )


def _misspell(_: Snapshot) -> Sequence[Command]:
    return (
        cmd("go", "get", "github.com/client9/misspell/cmd/misspell"),
        shell(f"misspell -locale US -error {_MISSPELL_PATHS}"),
    )


def _show_version(s: Snapshot) -> Sequence[Command]:
    return (cmd("printf", "%s", s.text("TAG")),)


def _publish(s: Snapshot) -> Sequence[Command]:
    engine = s.text("CONTAINER_ENGINE")
    return (
        cmd("cp", "-R", "bin/", "rootfs/"),
        cmd(
            engine,
            "buildx",
            "build",
            "--builder",
            s.text("BUILDER_NAME"),
            "--no-cache",
            "--push",
            "--progress",
            "plain",
            "--platform",
            ",".join(s.items("PLATFORMS")),
            "--build-arg",
            f"BASE_IMAGE={s.text('BASE_IMAGE')}",
            "--build-arg",
            f"VERSION={s.text('TAG')}",
            "-t",
            _image_ref(s),
            "rootfs",
            banner="Building and pushing ingress-nginx image...",
        ),
    )


_GO = ("check-go-version",)

TASKS: tuple[Task, ...] = (
    Task(
        "image",
        "Build image for a particular arch.",
        prerequisites=("clean-image",),
        commands=_image,
        placement=Placement.HOST,
    ),
    Task("clean-image", "Removes local image.", commands=_clean_image, placement=Placement.HOST),
    Task(
        "build",
        "Build ingress controller, debug tool and pre-stop hook.",
        prerequisites=_GO,
        commands=_run("build/build.sh"),
    ),
    Task(
        "build-plugin",
        "Build ingress-nginx krew plugin.",
        prerequisites=_GO,
        commands=_run("build/build-plugin.sh"),
    ),
    Task(
        "clean",
        "Remove .gocache directory.",
        commands=_run("rm", "-rf", "bin/", ".gocache/", ".cache/"),
        placement=Placement.HOST,
    ),
    Task(
        "static-check",
        "Run verification script for boilerplate, codegen, gofmt, golint, lualint and chart-lint.",
        commands=_run("hack/verify-all.sh"),
    ),
    Task("test", "Run go unit tests.", prerequisites=_GO, commands=_run("build/test.sh")),
    Task("lua-test", "Run lua unit tests.", commands=_run("build/test-lua.sh")),
    Task(
        "e2e-test",
        "Run e2e tests (expects access to a working Kubernetes cluster).",
        prerequisites=_GO,
        commands=_run("build/run-e2e-suite.sh"),
        placement=Placement.HOST,
    ),
    Task(
        "e2e-test-image",
        "Build image for e2e tests.",
        commands=_run("make", "-C", "test/e2e-image"),
        placement=Placement.HOST,
    ),
    Task(
        "e2e-test-binary",
        "Build ginkgo binary for e2e tests.",
        prerequisites=_GO,
        commands=_run("ginkgo", "build", "./test/e2e"),
    ),
    Task(
        "print-e2e-suite",
        "Prints information about the suite of e2e tests.",
        prerequisites=("e2e-test-binary",),
        commands=_run("hack/print-e2e-suite.sh"),
        placement=Placement.SANDBOX,
    ),
    Task(
        "cover",
        "Run go coverage unit tests.",
        prerequisites=_GO,
        commands=_cover,
        placement=Placement.HOST,
    ),
    Task("vet", "Run go vet on internal packages.", commands=_vet, placement=Placement.HOST),
    Task(
        "check-dead-links",
        "Check if the documentation contains dead links.",
        commands=_check_dead_links,
        placement=Placement.HOST,
    ),
    Task(
        "dep-ensure",
        "Update and vendor go dependencies.",
        prerequisites=_GO,
        commands=_dep_ensure,
        placement=Placement.HOST,
    ),
    Task(
        "dev-env",
        "Starts a local Kubernetes cluster using kind, building and deploying the ingress controller.",
        prerequisites=_GO,
        commands=_run("build/dev-env.sh"),
        placement=Placement.HOST,
    ),
    Task(
        "dev-env-stop",
        "Deletes local Kubernetes cluster created by kind.",
        commands=_dev_env_stop,
        placement=Placement.HOST,
    ),
    Task(
        "live-docs",
        "Build and launch a local copy of the documentation website in http://localhost:3000",
        commands=_live_docs,
        placement=Placement.HOST,
    ),
    Task(
        "misspell",
        "Check for spelling errors.",
        prerequisites=_GO,
        commands=_misspell,
        placement=Placement.HOST,
    ),
    Task(
        "kind-e2e-test",
        "Run e2e tests using kind.",
        prerequisites=_GO,
        commands=_run("test/e2e/run.sh"),
        placement=Placement.HOST,
    ),
    Task(
        "kind-e2e-chart-tests",
        "Run helm chart e2e tests.",
        commands=_run("test/e2e/run-chart-test.sh"),
        placement=Placement.HOST,
    ),
    Task(
        "run-ingress-controller",
        "Run the ingress controller locally using a kubectl proxy connection.",
        commands=_run("build/run-ingress-controller.sh"),
        placement=Placement.HOST,
    ),
    Task(
        "check-go-version",
        "Verify the go toolchain version.",
        commands=_run("hack/check-go-version.sh"),
    ),
    Task(
        "init-docker-buildx",
        "Create and bootstrap the multi-platform builder.",
        needs_builder=True,
        placement=Placement.HOST,
    ),
    Task(
        "show-version",
        "Print the version label.",
        commands=_show_version,
        placement=Placement.HOST,
    ),
    Task(
        "release",
        "Build a multi-arch docker image.",
        prerequisites=("init-docker-buildx", "clean"),
        commands=_publish,
        placement=Placement.HOST,
        fanout=FanOut(task="build", option="ARCH", over="PLATFORMS"),
    ),
)


def build_registry() -> TaskRegistry:
    """Registry holding the full catalog, validated."""
    registry = TaskRegistry(TASKS)
    registry.validate()
    return registry
