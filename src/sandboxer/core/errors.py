"""
Unified error handling for sandboxer commands.

Every error is fatal to the current run. Pre-flight errors abort before any
remote side effect; pipeline errors carry the stage and run log path so the
operator can inspect the exact tool output.

Exit Codes:
- 0: Success
- 1: Aborted (missing credential, missing selection, declined confirmation)
- 11: Remote error (authentication or sandbox API rejection)
- 12: Pipeline error (clone, build or packaging failure)
- 127: Unknown/internal error
- 130: Interrupted
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    ABORTED = 1
    REMOTE_ERROR = 11
    PIPELINE_ERROR = 12
    UNKNOWN_ERROR = 127
    INTERRUPTED = 130


class SandboxerError(Exception):
    """Base exception for sandboxer errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    label: str = "Error"
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PreflightError(SandboxerError):
    """Raised before any remote call is attempted."""

    exit_code = ExitCode.ABORTED


class MissingCredential(PreflightError):
    """A required credential key is unset."""

    label = "Missing credential"

    def __init__(self, key: str):
        super().__init__(f"Credential '{key}' is not set", {"key": key})
        self.key = key


class MissingSelection(PreflightError):
    """No active realm or sandbox when one is required."""

    label = "Missing selection"

    def __init__(self, what: str):
        super().__init__(f"No active {what} selected", {"selection": what})
        self.what = what


class OperationDeclined(PreflightError):
    """The operator answered no to a confirmation prompt."""

    label = "Aborted"


class RemoteError(SandboxerError):
    """Raised when the remote sandbox API rejects a call."""

    exit_code = ExitCode.REMOTE_ERROR
    label = "Remote error"


class AuthError(RemoteError):
    """Remote authentication rejected."""

    label = "Authentication failed"


class RemoteOperationError(RemoteError):
    """A remote call was rejected or returned an error payload."""


class DeployError(RemoteOperationError):
    """Code upload to the sandbox was rejected."""

    label = "Deploy failed"


class PipelineError(SandboxerError):
    """Raised when a local pipeline stage fails."""

    exit_code = ExitCode.PIPELINE_ERROR


class FetchError(PipelineError):
    """Source clone failed."""

    label = "Fetch failed"


class BuildError(PipelineError):
    """A build step exited non-zero."""

    label = "Build failed"


class PackageError(PipelineError):
    """An expected build artifact is missing."""

    label = "Packaging failed"


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI entry points that converts errors into exit codes.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - SandboxerError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130
        - Other exceptions: Returns 127
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            from sandboxer.cli.ux import error as print_error

            try:
                return func(*args, **kwargs)
            except SandboxerError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **e.details,
                    )
                print_error(format_error_message(e))
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return ExitCode.INTERRUPTED
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=int(ExitCode.UNKNOWN_ERROR),
                    )
                print_error(f"Unexpected error: {e}")
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: SandboxerError) -> str:
    """Format an error message for display to operators."""
    msg = f"{error.label}: {error.message}"
    log_path = error.details.get("log_path")
    if log_path:
        msg = f"{msg}\n  See log: {log_path}"
    return msg
