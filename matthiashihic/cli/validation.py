"""
Validation helpers for CLI arguments.
"""

import os
from pathlib import Path
from typing import Any, Iterable, Optional

from .errors import CLIFileNotFoundError, CLIValidationError


def validate_path(value: Any, *, allow_none: bool = False, must_exist: bool = False) -> Optional[Path]:
    """
    Validate and convert value to Path.

    Args:
        value: Value to validate (string, PathLike, or None)
        allow_none: Whether None is acceptable
        must_exist: Whether the path must exist on the filesystem

    Returns:
        Path object or None if allow_none=True and value is None

    Raises:
        CLIValidationError: If value is not a valid path type
        CLIFileNotFoundError: If must_exist=True and the path is missing

    Examples:
        >>> validate_path("/tmp/file.txt")
        PosixPath('/tmp/file.txt')
        >>> validate_path(None, allow_none=True)
    """
    if value is None:
        if allow_none:
            return None
        raise CLIValidationError(
            "Path value cannot be None",
            hint="Provide a valid file or directory path",
        )

    if isinstance(value, (str, os.PathLike)):
        path = Path(value)
        if must_exist and not path.exists():
            raise CLIFileNotFoundError(
                f"Source file does not exist: {path}",
                hint="Check the path passed on the command line",
            )
        return path

    raise CLIValidationError(
        f"Expected path-like value, got {type(value).__name__}",
        hint="Provide a string or Path object",
    )


def validate_string(value: Any, *, allow_none: bool = False) -> Optional[str]:
    """
    Validate that value is a non-empty string.

    Examples:
        >>> validate_string("gpt-4")
        'gpt-4'
    """
    if value is None:
        if allow_none:
            return None
        raise CLIValidationError(
            "String value cannot be None",
            hint="Provide a valid string value",
        )

    if not isinstance(value, str):
        raise CLIValidationError(
            f"Expected string value, got {type(value).__name__}",
            hint="Provide a string value",
        )
    if not value.strip():
        raise CLIValidationError("String value cannot be empty")
    return value


def validate_choice(value: Any, choices: Iterable[str], *, name: str) -> str:
    """Validate that ``value`` is one of ``choices``."""
    options = list(choices)
    if value not in options:
        raise CLIValidationError(
            f"Invalid {name} '{value}'",
            hint=f"Valid options: {', '.join(options)}",
        )
    return value
