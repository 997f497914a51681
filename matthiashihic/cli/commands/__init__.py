"""
CLI command modules.

Each module implements one subcommand and registers its parser through an
``add_*_command`` function.
"""

from .build import add_build_command, cmd_build
from .check import add_check_command, cmd_check
from .run import add_run_command, cmd_run

__all__ = [
    "add_build_command",
    "add_check_command",
    "add_run_command",
    "cmd_build",
    "cmd_check",
    "cmd_run",
]
