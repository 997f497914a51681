"""
CLI context and settings resolution.

Every setting is resolved in the same order: command line flag, matching
``[programs.*]`` entry, ``[defaults]`` table, built-in default.
"""

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..build import default_output_path
from ..config import ProgramConfig, WorkspaceConfig, resolve_credential
from .errors import CLIConfigError, CLIValidationError
from .validation import validate_string


@dataclass
class CLIContext:
    """
    Shared context resolved from workspace configuration.

    Attributes:
        workspace_root: Root directory of the workspace
        config: Parsed workspace configuration
    """

    workspace_root: Path
    config: WorkspaceConfig


def get_cli_context(args: argparse.Namespace) -> CLIContext:
    """
    Retrieve CLIContext from parsed arguments.

    Raises:
        CLIConfigError: If context was not initialized
    """
    ctx = getattr(args, "cli_context", None)
    if ctx is None:
        raise CLIConfigError(
            "CLI context was not initialized before command execution",
            hint="This is an internal error - please report it",
            code="CLI_CONTEXT_NOT_INITIALIZED",
        )
    return ctx


def resolve_model(args: argparse.Namespace, ctx: CLIContext, entry: Optional[ProgramConfig]) -> str:
    explicit = validate_string(getattr(args, "model", None), allow_none=True)
    if explicit:
        return explicit
    if entry and entry.model:
        return entry.model
    return ctx.config.defaults.model


def resolve_api_base(ctx: CLIContext, entry: Optional[ProgramConfig]) -> str:
    if entry and entry.api_base:
        return entry.api_base
    return ctx.config.defaults.api_base


def resolve_emit(args: argparse.Namespace, ctx: CLIContext, entry: Optional[ProgramConfig]) -> str:
    explicit = getattr(args, "emit", None)
    if explicit:
        return explicit
    if entry and entry.emit:
        return entry.emit
    return ctx.config.defaults.emit


def resolve_output(
    args: argparse.Namespace,
    ctx: CLIContext,
    entry: Optional[ProgramConfig],
    source_path: Path,
    emit: str,
) -> Path:
    explicit = getattr(args, "output", None)
    if explicit:
        return Path(explicit)
    if entry and entry.output:
        return entry.output
    default = default_output_path(source_path, emit=emit)
    if ctx.config.defaults.output_dir is not None:
        return ctx.config.defaults.output_dir / default.name
    return default


def require_credential(args: argparse.Namespace, ctx: CLIContext) -> str:
    """
    Credential from ``--api-key``, the config file or the environment.

    Raises:
        CLIValidationError: If none of them provides one
    """
    defaults = ctx.config.defaults
    credential = resolve_credential(getattr(args, "api_key", None), defaults)
    if not credential:
        raise CLIValidationError(
            "No API key provided",
            hint=(
                f"Pass --api-key, set api_key in matthiashihic.toml "
                f"or export {defaults.api_key_env}"
            ),
        )
    return credential
