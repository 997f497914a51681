"""
Check command implementation.

Runs the front-end pipeline only and reports what the program needs at run
time, without generating or building anything.
"""

import argparse
import json

from matthiashihic.compiler import compile_file
from matthiashihic.ir import serialize_descriptor

from ..context import get_cli_context, resolve_api_base, resolve_model
from ..errors import handle_cli_exception
from ..output import print_program_summary
from ..validation import validate_path


def cmd_check(args: argparse.Namespace) -> None:
    """
    Handle the 'check' subcommand.

    Prints a summary, or the program descriptor as JSON with ``--json``.
    The credential is never printed.
    """
    try:
        ctx = get_cli_context(args)
        source_path = validate_path(args.file, must_exist=True)
        entry = ctx.config.match(source_path)
        descriptor = compile_file(
            source_path,
            model=resolve_model(args, ctx, entry),
            api_base=resolve_api_base(ctx, entry),
        )
        if getattr(args, "json", False):
            print(json.dumps(serialize_descriptor(descriptor), indent=2, ensure_ascii=False))
        else:
            print_program_summary(descriptor)
    except Exception as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))


def add_check_command(subparsers) -> None:
    check_parser = subparsers.add_parser(
        "check",
        help="Validate a program and show what it needs at run time",
    )
    check_parser.add_argument("file", help="Path to the .matthiashihic source file")
    check_parser.add_argument("--model", default=None, help="Model identifier to record")
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the compiled program descriptor as JSON",
    )
    check_parser.set_defaults(func=cmd_check)
