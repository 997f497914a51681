"""
Error handling for the matthiashihic CLI.

This module provides the CLI exception hierarchy and the top-level handler
that formats diagnostics and picks the process exit status.
"""

import os
import sys
import traceback
from typing import Any, Dict, Optional

from ..errors import HihiError
from ..llm.base import LLMError

# Maximum length for traceback output in CLI
_CLI_TRACE_LIMIT = 4000


class CLIError(Exception):
    """
    Base exception for all CLI operations.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code
        hint: Optional suggestion for resolving the error
        context: Additional metadata about the error
        exit_code: Process exit status used by :func:`handle_cli_exception`
    """

    exit_code = 1

    def __init__(
        self,
        message: str,
        *,
        code: str,
        hint: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class CLIConfigError(CLIError):
    """Configuration file or workspace setup errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "CLI_CONFIG_ERROR")
        super().__init__(message, **kwargs)


class CLIValidationError(CLIError):
    """Invalid or missing command arguments."""

    exit_code = 2

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "CLI_VALIDATION_ERROR")
        super().__init__(message, **kwargs)


class CLIFileNotFoundError(CLIError):
    """Source file or directory not found."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "CLI_FILE_NOT_FOUND")
        super().__init__(message, **kwargs)


def format_cli_error(
    exc: BaseException,
    *,
    verbose: bool = False,
    include_traceback: bool = False,
) -> str:
    """
    Format exception for CLI display with context and hints.

    Args:
        exc: Exception to format
        verbose: Include additional context and metadata
        include_traceback: Include full Python traceback

    Returns:
        Formatted error message suitable for CLI output

    Examples:
        >>> print(format_cli_error(CLIValidationError("No source file specified")))
        Error [CLI_VALIDATION_ERROR]: No source file specified
    """
    lines = []

    if isinstance(exc, HihiError):
        lines.append(f"Error: {exc.format()}")
    elif isinstance(exc, CLIError):
        lines.append(f"Error [{exc.code}]: {exc.message}")
        if exc.hint:
            lines.append(f"Hint: {exc.hint}")
        if verbose and exc.context:
            lines.append("\nContext:")
            for key, value in exc.context.items():
                lines.append(f"  {key}: {value}")
    elif isinstance(exc, LLMError):
        lines.append(f"Error: {exc}")
    else:
        lines.append(f"Error: {exc.__class__.__name__}: {exc}")

    if include_traceback:
        lines.append("\nTraceback:")
        lines.append(format_traceback_excerpt())

    return "\n".join(lines)


def format_traceback_excerpt() -> str:
    """Current exception traceback, truncated to the CLI limit."""
    trace = traceback.format_exc().strip()
    if len(trace) <= _CLI_TRACE_LIMIT:
        return trace
    return f"{trace[:_CLI_TRACE_LIMIT - 3]}..."


def _env_flag(name: str) -> bool:
    val = os.getenv(name)
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "yes", "on"}


def cli_verbose_enabled(verbose_flag: bool = False) -> bool:
    """
    Determine whether verbose error output is enabled.

    Respects an explicit flag and the MATTHIASHIHIC_VERBOSE /
    MATTHIASHIHIC_DEBUG environment variables.
    """
    return verbose_flag or _env_flag("MATTHIASHIHIC_VERBOSE") or _env_flag("MATTHIASHIHIC_DEBUG")


def cli_reraise_enabled() -> bool:
    """Re-raise instead of exiting (MATTHIASHIHIC_RERAISE or MATTHIASHIHIC_DEBUG)."""
    return _env_flag("MATTHIASHIHIC_RERAISE") or _env_flag("MATTHIASHIHIC_DEBUG")


def exit_code_for(exc: BaseException) -> int:
    return int(getattr(exc, "exit_code", 1))


def handle_cli_exception(exc: BaseException, *, verbose: bool = False) -> None:
    """
    Report ``exc`` on stderr and exit.

    The exit status comes from the exception: 2 for malformed programs and
    invalid arguments, 1 for everything else.

    Note:
        This function calls sys.exit() and does not return.
    """
    verbose_effective = cli_verbose_enabled(verbose)
    if cli_reraise_enabled():
        raise exc

    print(
        format_cli_error(exc, verbose=verbose_effective, include_traceback=verbose_effective),
        file=sys.stderr,
    )
    sys.exit(exit_code_for(exc))
