"""Built-in option table for the ingress controller build."""

from __future__ import annotations

from collections.abc import Mapping

from .config import HostFacts, Option, OptionKind, OptionValue

__all__ = ["OPTIONS", "DEFAULT_PLATFORMS", "option_names"]

DEFAULT_PLATFORMS = "amd64 arm arm64 s390x"

_BASE_IMAGE_DIGEST = "e3c49c52f4b74fe47ad65d6f3266a02e8b6b622f"
_BINFMT_IMAGE = "tonistiigi/binfmt:latest"


def _host_arch(_: Mapping[str, OptionValue], host: HostFacts) -> str | None:
    return host.go_arch


def _git_commit(_: Mapping[str, OptionValue], host: HostFacts) -> str | None:
    if host.git_commit:
        return f"git-{host.git_commit}"
    return None


def _repo_info(_: Mapping[str, OptionValue], host: HostFacts) -> str | None:
    return host.repo_info


def _base_image(resolved: Mapping[str, OptionValue], _: HostFacts) -> str | None:
    return f"{resolved['REGISTRY']}/nginx:{_BASE_IMAGE_DIGEST}"


def _goarch(resolved: Mapping[str, OptionValue], _: HostFacts) -> str | None:
    arch = resolved["ARCH"]
    return arch if isinstance(arch, str) else None


OPTIONS: tuple[Option, ...] = (
    # Use the 0.0 tag for testing, it shouldn't clobber any release builds
    Option("TAG", default="0.32.0", help="Version label of produced artifacts."),
    Option(
        "USE_SANDBOX",
        default="true",
        kind=OptionKind.BOOL,
        aliases=("USE_DOCKER",),
        help="Run sandbox-capable tasks inside the build container.",
    ),
    Option(
        "DIND_TASKS",
        kind=OptionKind.FLAG,
        help="Set when already running inside the build container.",
    ),
    Option("FOCUS", default=".*", help="Regexp limiting the e2e tests to run."),
    Option("E2E_NODES", default="15", help="Number of parallel e2e test nodes."),
    Option("SLOW_E2E_THRESHOLD", default="50", help="Seconds after which an e2e test is slow."),
    Option("E2E_CHECK_LEAKS", help="Also run the memory leak e2e tests."),
    Option("BUSTED_ARGS", help="Extra arguments for the lua test runner."),
    Option("GOBUILD_FLAGS", help="Extra go build flags."),
    Option("REPO_INFO", derive=_repo_info, help="Remote origin URL."),
    Option("GIT_COMMIT", derive=_git_commit, help="Commit label embedded in binaries."),
    Option("PKG", default="k8s.io/ingress-nginx", help="Go package path."),
    Option(
        "ARCH",
        mandatory=True,
        derive=_host_arch,
        help="Target architecture of single-target tasks.",
        hint="set ARCH when calling the command or make sure 'go env GOARCH' works",
    ),
    Option(
        "REGISTRY",
        default="quay.io/kubernetes-ingress-controller",
        help="Registry prefix images are addressed with.",
    ),
    Option("IMAGE_NAME", default="nginx-ingress-controller", help="Controller image name."),
    Option("BASE_IMAGE", derive=_base_image, help="Base image of the controller image."),
    Option("GOARCH", fixed=True, derive=_goarch, help="Always equal to ARCH."),
    # use vendor directory instead of go modules
    Option("GO111MODULE", default="off", fixed=True, help="Go modules mode."),
    Option(
        "PLATFORMS",
        default=DEFAULT_PLATFORMS,
        kind=OptionKind.LIST,
        help="Target architectures of a release.",
    ),
    Option("BUILDER_NAME", default="ingress-nginx", help="Multi-platform builder name."),
    Option("BINFMT_IMAGE", default=_BINFMT_IMAGE, help="Image installing platform emulators."),
    Option(
        "SANDBOX_RUNNER",
        default="build/run-in-docker.sh",
        help="Script running a command inside the build container.",
    ),
    Option("CONTAINER_ENGINE", default="docker", help="Container engine executable."),
    Option("DEV_CLUSTER", default="ingress-nginx-dev", help="Local kind cluster name."),
    Option("VERBOSE", default="false", kind=OptionKind.BOOL, help="Echo every command."),
)


def option_names() -> tuple[str, ...]:
    return tuple(o.name for o in OPTIONS)
