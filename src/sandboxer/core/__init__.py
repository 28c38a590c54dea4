"""Core modules for sandboxer - centralized definitions and utilities."""

from sandboxer.core.errors import (
    AuthError,
    BuildError,
    DeployError,
    ExitCode,
    FetchError,
    MissingCredential,
    MissingSelection,
    OperationDeclined,
    PackageError,
    PipelineError,
    PreflightError,
    RemoteError,
    RemoteOperationError,
    SandboxerError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "SandboxerError",
    "PreflightError",
    "MissingCredential",
    "MissingSelection",
    "OperationDeclined",
    "RemoteError",
    "AuthError",
    "RemoteOperationError",
    "DeployError",
    "PipelineError",
    "FetchError",
    "BuildError",
    "PackageError",
    "main_with_error_handling",
    "format_error_message",
]
