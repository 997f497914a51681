"""
Output formatting for CLI operations.
"""

import sys

from ..ir import ProgramDescriptor


def print_success(message: str) -> None:
    """
    Print success message with checkmark prefix.

    Examples:
        >>> print_success("Built executable: hello")
        ✓ Built executable: hello
    """
    print(f"✓ {message}")


def print_progress(message: str) -> None:
    """Progress notes go to stderr so stdout stays pipeable."""
    print(message, file=sys.stderr)


def print_program_summary(descriptor: ProgramDescriptor) -> None:
    """
    Print a short summary of a compiled program.

    Examples:
        >>> print_program_summary(descriptor)  # doctest: +SKIP
        hello.matthiashihic: OK
          statements: 1
          required stdin lines: 0
          model: gpt-4
    """
    print(f"{descriptor.source_path or '<string>'}: OK")
    print(f"  statements: {descriptor.statement_count}")
    print(f"  required stdin lines: {descriptor.required_argument_count}")
    print(f"  model: {descriptor.model_identifier}")
    for statement in descriptor.resolved_statements:
        print(f"    {statement.source.line}: {statement.reconstruct()}")
