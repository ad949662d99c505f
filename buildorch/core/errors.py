"""Exit codes for CLI commands.

Failing tasks exit with the failing command's own exit code, so the codes
below follow sysexits(3) to stay clear of the small values build tools
usually return.
"""

from enum import IntEnum

__all__ = ["ErrorCode", "signal_exit_code"]


class ErrorCode(IntEnum):
    """Exit codes for errors that never reached (or never finished) a task.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 64: Usage error (unknown task, malformed KEY=VALUE argument)
    - 69: Sandbox unavailable or host engine lacks a required capability
    - 78: Configuration error (mandatory option unresolved or invalid)
    - 130: Interrupted by the user
    """

    OK = 0
    USAGE = 64
    UNAVAILABLE = 69
    CONFIG = 78
    INTERRUPTED = 130

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


def signal_exit_code(returncode: int) -> int:
    """Map a subprocess return code to a shell-style exit code.

    Negative return codes mean the child died from a signal; shells report
    those as 128 + signal number.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode
