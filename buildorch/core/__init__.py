"""Core domain types: configuration, results, exit codes, workspace."""

from .config import (
    ConfigurationError,
    HostFacts,
    Option,
    OptionKind,
    OverrideLayer,
    Snapshot,
    resolve,
)
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok
from .workspace import Workspace, WorkspaceError, detect_workspace

__all__ = [
    # config
    "ConfigurationError",
    "HostFacts",
    "Option",
    "OptionKind",
    "OverrideLayer",
    "Snapshot",
    "resolve",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
    # workspace
    "Workspace",
    "WorkspaceError",
    "detect_workspace",
]
