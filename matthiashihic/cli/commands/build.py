"""
Build command implementation.

Compiles a ``.matthiashihic`` source file and packages the generated
program as an executable zipapp (or writes the plain Python source).
"""

import argparse
import logging
from pathlib import Path

from matthiashihic.build import build_artifact
from matthiashihic.compiler import compile_file

from ..context import (
    get_cli_context,
    require_credential,
    resolve_api_base,
    resolve_emit,
    resolve_model,
    resolve_output,
)
from ..errors import handle_cli_exception
from ..output import print_progress, print_success
from ..validation import validate_choice, validate_path

logger = logging.getLogger(__name__)


def cmd_build(args: argparse.Namespace) -> None:
    """
    Handle the 'build' subcommand.

    This command:
    1. Validates the source path and resolves settings
    2. Runs the front-end pipeline (parse, resolve placeholders, describe)
    3. Renders the Python program and packages it in a temporary workspace
    4. Moves the finished artifact to the output path

    Args:
        args: Parsed command-line arguments containing:
            - file: Path to the source file
            - api_key: Credential embedded in the program (optional when
              configured elsewhere)
            - model: Model identifier (optional)
            - output: Output artifact path (optional)
            - emit: ``zipapp`` or ``source`` (optional)
            - python: ``#!`` interpreter for zipapps (optional)
            - bundle_deps: Bundle runtime dependencies (optional)

    Raises:
        SystemExit: On any error during the build

    Examples:
        >>> args = argparse.Namespace(file='hello.matthiashihic', ...)
        >>> cmd_build(args)  # doctest: +SKIP
        Compiling hello.matthiashihic -> hello ...
        ✓ Built executable: hello
    """
    try:
        ctx = get_cli_context(args)
        source_path = validate_path(args.file, must_exist=True)
        entry = ctx.config.match(source_path)
        defaults = ctx.config.defaults

        emit = validate_choice(resolve_emit(args, ctx, entry), ("zipapp", "source"), name="emit mode")
        output = resolve_output(args, ctx, entry, source_path, emit)
        credential = require_credential(args, ctx)
        model = resolve_model(args, ctx, entry)

        descriptor = compile_file(
            source_path,
            model=model,
            credential=credential,
            api_base=resolve_api_base(ctx, entry),
        )

        print_progress(f"Compiling {source_path} -> {output} ...")
        result = build_artifact(
            descriptor,
            output,
            emit=emit,
            interpreter=getattr(args, "python", None) or defaults.python,
            bundle_deps=bool(getattr(args, "bundle_deps", False) or defaults.bundle_deps),
            api_key_env=defaults.api_key_env,
        )
        if result.emit == "source":
            print_success(f"Generated source: {result.output}")
        else:
            print_success(f"Built executable: {result.output}")
    except Exception as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))


def add_build_command(subparsers) -> None:
    build_parser = subparsers.add_parser(
        "build",
        help="Compile a program into an executable",
    )
    build_parser.add_argument("file", help="Path to the .matthiashihic source file")
    build_parser.add_argument(
        "--api-key",
        dest="api_key",
        default=None,
        help="OpenAI API key embedded (obfuscated) in the program; "
             "defaults to api_key in the config or $OPENAI_API_KEY",
    )
    build_parser.add_argument(
        "--model",
        default=None,
        help="Model used by the program (default: gpt-4)",
    )
    build_parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output artifact path (default: source file name without extension)",
    )
    build_parser.add_argument(
        "--emit",
        choices=["zipapp", "source"],
        default=None,
        help="Artifact kind: executable zipapp or plain Python source (default: zipapp)",
    )
    build_parser.add_argument(
        "--python",
        default=None,
        help="Interpreter line for zipapps (default: /usr/bin/env python3)",
    )
    build_parser.add_argument(
        "--bundle-deps",
        action="store_true",
        help="Install the program's runtime dependencies into the zipapp",
    )
    build_parser.set_defaults(func=cmd_build)
