"""
Run command implementation.

Compiles a program and executes it immediately, reading its input lines
from stdin and streaming the backend reply to stdout, exactly as a built
program would.
"""

import argparse
import sys

from matthiashihic.compiler import compile_file
from matthiashihic.llm import create_llm
from matthiashihic.runtime import execute

from ..context import (
    get_cli_context,
    require_credential,
    resolve_api_base,
    resolve_model,
)
from ..errors import CLIValidationError, handle_cli_exception
from ..validation import validate_path


def cmd_run(args: argparse.Namespace) -> None:
    """
    Handle the 'run' subcommand.

    Raises:
        SystemExit: 2 when too few stdin lines are available, 1 when the
            backend fails
    """
    try:
        ctx = get_cli_context(args)
        source_path = validate_path(args.file, must_exist=True)
        entry = ctx.config.match(source_path)
        api_base = resolve_api_base(ctx, entry)
        descriptor = compile_file(
            source_path,
            model=resolve_model(args, ctx, entry),
            api_base=api_base,
        )

        if descriptor.required_argument_count and sys.stdin.isatty():
            raise CLIValidationError(
                f"This program expects {descriptor.required_argument_count} line(s) from stdin",
                hint=f"echo 'value' | matthiashihic run {source_path}",
            )

        with create_llm(
            source_path.stem or "program",
            getattr(args, "provider", None) or "openai",
            descriptor.model_identifier,
            {"api_key": require_credential(args, ctx), "api_base": api_base},
        ) as llm:
            execute(descriptor, llm, sys.stdin, sys.stdout)
    except Exception as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))


def add_run_command(subparsers) -> None:
    run_parser = subparsers.add_parser(
        "run",
        help="Compile and execute a program without building an artifact",
    )
    run_parser.add_argument("file", help="Path to the .matthiashihic source file")
    run_parser.add_argument(
        "--api-key",
        dest="api_key",
        default=None,
        help="OpenAI API key (default: api_key in the config or $OPENAI_API_KEY)",
    )
    run_parser.add_argument("--model", default=None, help="Model identifier (default: gpt-4)")
    run_parser.add_argument(
        "--provider",
        default="openai",
        help="LLM provider used to execute the program (default: openai)",
    )
    run_parser.set_defaults(func=cmd_run)
