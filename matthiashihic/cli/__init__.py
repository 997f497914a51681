"""
matthiashihic CLI entry point.

Dispatches subcommands to the focused command modules and keeps the
original single-command usage working::

    matthiashihic program.matthiashihic --api-key <KEY> [--model <MODEL>] [-o <output>]

is treated as ``matthiashihic build program.matthiashihic ...``.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from matthiashihic import __version__
from matthiashihic.config import ConfigError, load_workspace_config
from matthiashihic.lang import SOURCE_SUFFIX

from .commands import add_build_command, add_check_command, add_run_command
from .context import CLIContext
from .errors import CLIConfigError, handle_cli_exception

_COMMANDS = {"build", "check", "run", "help"}
_GLOBAL_FLAGS = {"--verbose"}
_GLOBAL_OPTIONS = {"--config", "--workspace", "--log-level"}


def _configure_logging(args) -> None:
    """Configure the ``matthiashihic`` logger from --log-level or the environment."""
    log_level = (
        getattr(args, "log_level", None) or
        os.getenv("MATTHIASHIHIC_LOG_LEVEL", "warning")
    ).lower()

    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    numeric_level = level_map.get(log_level, logging.WARNING)

    package_logger = logging.getLogger("matthiashihic")
    package_logger.setLevel(numeric_level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        package_logger.addHandler(handler)
        # Prevent propagation to root logger to avoid duplicate messages
        package_logger.propagate = False


def _legacy_build_index(argv: List[str]) -> Optional[int]:
    """Position of a bare source path following any global options, if any."""
    index = 0
    while index < len(argv):
        arg = argv[index]
        if arg in _GLOBAL_FLAGS:
            index += 1
        elif arg in _GLOBAL_OPTIONS:
            index += 2
        elif arg.partition("=")[0] in _GLOBAL_OPTIONS:
            index += 1
        else:
            break
    if index >= len(argv):
        return None
    first = argv[index]
    if (
        not first.startswith("-")
        and first not in _COMMANDS
        and (first.endswith(SOURCE_SUFFIX) or Path(first).exists())
    ):
        return index
    return None


def _is_legacy_invocation(argv: List[str]) -> bool:
    return _legacy_build_index(argv) is not None


def build_parser(workspace_root: Path, config_path: Optional[Path]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="matthiashihic compiler – turn quoted pseudocode into programs run by a language model",
        prog="matthiashihic",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        default=str(config_path) if config_path else None,
        help="Path to a matthiashihic.toml configuration file",
    )
    parser.add_argument(
        "--workspace",
        default=str(workspace_root),
        help="Workspace root directory (defaults to current working directory)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print full tracebacks and detailed CLI errors (or set MATTHIASHIHIC_VERBOSE=1)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warn", "error"],
        default=None,
        help="Set logging level (or set MATTHIASHIHIC_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    add_build_command(subparsers)
    add_check_command(subparsers)
    add_run_command(subparsers)
    return parser


def main(argv: Optional[list] = None) -> None:
    """
    Main CLI entrypoint with subcommand support.

    Args:
        argv: Command-line arguments (None uses sys.argv[1:])

    Examples:
        Build a program:
        >>> main(['build', 'hello.matthiashihic', '--api-key', 'sk-...'])  # doctest: +SKIP

        Check a program:
        >>> main(['check', 'hello.matthiashihic'])  # doctest: +SKIP
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    legacy_index = _legacy_build_index(argv)
    if legacy_index is not None:
        argv = argv[:legacy_index] + ["build"] + argv[legacy_index:]

    # Pre-parse to locate the workspace configuration
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config")
    pre_parser.add_argument("--workspace")
    pre_args, _ = pre_parser.parse_known_args(argv)

    workspace_root = Path(pre_args.workspace).resolve() if pre_args.workspace else Path.cwd()
    config_path = Path(pre_args.config).resolve() if pre_args.config else None

    parser = build_parser(workspace_root, config_path)
    args = parser.parse_args(argv)
    args.verbose = getattr(args, "verbose", False)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        sys.exit(2)

    _configure_logging(args)

    try:
        config = load_workspace_config(workspace_root, config_path)
    except ConfigError as exc:
        handle_cli_exception(CLIConfigError(str(exc)), verbose=args.verbose)
        return

    args.cli_context = CLIContext(workspace_root=workspace_root, config=config)
    args.func(args)


if __name__ == '__main__':  # pragma: no cover
    main()
