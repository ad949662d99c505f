"""Platform abstraction layer: subprocesses and host probing."""

from .detection import collect_host_facts
from .process import (
    ProcessError,
    ProcessRunner,
    SubprocessRunner,
    run,
    run_silent,
)

__all__ = [
    # detection
    "collect_host_facts",
    # process
    "ProcessError",
    "ProcessRunner",
    "SubprocessRunner",
    "run",
    "run_silent",
]
