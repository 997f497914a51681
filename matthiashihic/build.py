"""
Packaging of generated programs.

The toolchain for the Python target is the interpreter itself: generated
source is byte-compiled by a child interpreter (``python -m py_compile``)
and packed into an executable zip application.  Everything happens in a
temporary workspace; only the finished artifact is moved to the requested
output path, so a failed build never leaves a partial artifact behind.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
import tempfile
import zipapp
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Optional, Sequence, Union

from .codegen import Renderer, get_renderer
from .errors import BuildError
from .ir import ProgramDescriptor
from .lang import DEFAULT_API_KEY_ENV

logger = logging.getLogger(__name__)

EMIT_ZIPAPP = "zipapp"
EMIT_SOURCE = "source"
EMIT_MODES = (EMIT_ZIPAPP, EMIT_SOURCE)

DEFAULT_INTERPRETER = "/usr/bin/env python3"

# Third-party distributions imported by generated programs.
RUNTIME_REQUIREMENTS: Sequence[str] = ("httpx",)


@dataclass
class BuildResult:
    """Outcome of a successful build."""

    output: Path
    emit: str
    source: str
    bundled: bool = False


def default_output_path(source: Union[str, PathLike], *, emit: str = EMIT_ZIPAPP) -> Path:
    """Output name in the working directory derived from the source stem."""
    stem = Path(source).stem or "a.out"
    return Path(f"{stem}.py" if emit == EMIT_SOURCE else stem)


def _run_tool(command: Sequence[str], *, action: str) -> None:
    logger.debug("Running %s", " ".join(str(part) for part in command))
    try:
        completed = subprocess.run(
            [str(part) for part in command],
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise BuildError(f"Failed to spawn {command[0]} for {action}: {exc}") from exc
    if completed.returncode != 0:
        raise BuildError(
            f"{action.capitalize()} failed with exit status {completed.returncode}",
            diagnostic=completed.stderr or completed.stdout,
        )


def build_artifact(
    descriptor: ProgramDescriptor,
    output: Union[str, PathLike],
    *,
    emit: str = EMIT_ZIPAPP,
    interpreter: str = DEFAULT_INTERPRETER,
    bundle_deps: bool = False,
    renderer: Optional[Renderer] = None,
    python_executable: Optional[str] = None,
    api_key_env: str = DEFAULT_API_KEY_ENV,
) -> BuildResult:
    """
    Render ``descriptor`` and package it at ``output``.

    Args:
        descriptor: Compiled program
        output: Final artifact path
        emit: ``"zipapp"`` for an executable archive or ``"source"`` for
            the plain generated module
        interpreter: ``#!`` interpreter line written into zipapps
        bundle_deps: Install the runtime requirements into the archive
        renderer: Renderer to use (Python renderer by default)
        python_executable: Interpreter used as the toolchain (defaults to
            the running interpreter)
        api_key_env: Environment variable the program reads its credential
            from before falling back to the embedded one

    Returns:
        BuildResult describing the written artifact

    Raises:
        BuildError: If the toolchain fails; the tool's stderr is attached
        EncodingError: If the descriptor cannot be rendered
    """
    if emit not in EMIT_MODES:
        raise BuildError(f"Unknown emit mode '{emit}'", hint=f"Use one of: {', '.join(EMIT_MODES)}")
    if bundle_deps and emit != EMIT_ZIPAPP:
        raise BuildError("Dependencies can only be bundled into zipapp artifacts")

    renderer = renderer or get_renderer("python", api_key_env=api_key_env)
    python = python_executable or sys.executable
    output_path = Path(output)
    source = renderer.render(descriptor)

    with tempfile.TemporaryDirectory(prefix="matthiashihic-") as workspace:
        workspace_path = Path(workspace)
        logger.info("Building %s in %s", output_path, workspace_path)

        check_dir = workspace_path / "check"
        check_dir.mkdir()
        check_file = check_dir / f"program{renderer.file_suffix}"
        check_file.write_text(source, encoding="utf-8")
        _run_tool([python, "-m", "py_compile", check_file], action="byte-compilation")

        staged = workspace_path / "out" / output_path.name
        staged.parent.mkdir()
        if emit == EMIT_SOURCE:
            staged.write_text(source, encoding="utf-8")
        else:
            app_dir = workspace_path / "app"
            app_dir.mkdir()
            (app_dir / "__main__.py").write_text(source, encoding="utf-8")
            if bundle_deps:
                _run_tool(
                    [python, "-m", "pip", "install", "--quiet", "--target", app_dir, *RUNTIME_REQUIREMENTS],
                    action="dependency installation",
                )
            try:
                zipapp.create_archive(app_dir, target=staged, interpreter=interpreter, compressed=True)
            except (OSError, zipapp.ZipAppError) as exc:
                raise BuildError(f"Failed to create archive: {exc}") from exc
        staged.chmod(0o755)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(staged), str(output_path))
        except OSError as exc:
            raise BuildError(f"Failed to copy artifact to {output_path}: {exc}") from exc

    logger.info("Wrote %s artifact %s", emit, output_path)
    return BuildResult(output=output_path, emit=emit, source=source, bundled=bundle_deps)


__all__ = [
    "BuildResult",
    "build_artifact",
    "default_output_path",
    "EMIT_MODES",
    "EMIT_SOURCE",
    "EMIT_ZIPAPP",
    "DEFAULT_INTERPRETER",
    "RUNTIME_REQUIREMENTS",
]
