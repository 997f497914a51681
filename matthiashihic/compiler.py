"""
Front-end pipeline: source text to :class:`ProgramDescriptor`.

Stages run strictly in order and each one either returns an immutable
value or raises; nothing is retried::

    text -> SourceDocument -> ParsedProgram -> ResolvedStatement* -> ProgramDescriptor
"""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import Optional, Union

from .ast import SourceDocument
from .codegen import get_renderer
from .errors import SourceError
from .ir import ProgramDescriptor, build_descriptor
from .parser import parse_document
from .placeholders import resolve_statements

logger = logging.getLogger(__name__)


def load_document(path: Union[str, PathLike]) -> SourceDocument:
    """
    Read a source file into a :class:`SourceDocument`.

    Raises:
        SourceError: If the file cannot be read or is not valid UTF-8
    """
    source_path = Path(path)
    try:
        text = source_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise SourceError(
            f"Source file is not valid UTF-8: {exc.reason} at byte {exc.start}",
            path=str(source_path),
        ) from exc
    except OSError as exc:
        raise SourceError(
            f"Failed to read {source_path}: {exc.strerror or exc}",
            path=str(source_path),
        ) from exc
    return SourceDocument.from_text(text, path=str(source_path))


def compile_document(
    document: SourceDocument,
    *,
    model: Optional[str] = None,
    credential: Optional[str] = None,
    api_base: Optional[str] = None,
) -> ProgramDescriptor:
    program = parse_document(document)
    resolved = resolve_statements(program.statements, path=document.path)
    descriptor = build_descriptor(
        resolved,
        model=model,
        credential=credential,
        api_base=api_base,
        source_path=document.path,
    )
    logger.debug(
        "Compiled %s: %d statement(s), %d required argument(s)",
        document.path or "<string>",
        descriptor.statement_count,
        descriptor.required_argument_count,
    )
    return descriptor


def compile_source(
    text: str,
    *,
    path: Optional[str] = None,
    model: Optional[str] = None,
    credential: Optional[str] = None,
    api_base: Optional[str] = None,
) -> ProgramDescriptor:
    """
    Compile program ``text`` into a descriptor.

    Examples:
        >>> descriptor = compile_source('hihi!\\n"Check €1 and €2"\\neat that java!')
        >>> descriptor.required_argument_count
        2
    """
    return compile_document(
        SourceDocument.from_text(text, path=path),
        model=model,
        credential=credential,
        api_base=api_base,
    )


def compile_file(
    path: Union[str, PathLike],
    *,
    model: Optional[str] = None,
    credential: Optional[str] = None,
    api_base: Optional[str] = None,
) -> ProgramDescriptor:
    """Load and compile the program stored at ``path``."""
    return compile_document(
        load_document(path),
        model=model,
        credential=credential,
        api_base=api_base,
    )


def generate_source(descriptor: ProgramDescriptor, *, target: str = "python", **options) -> str:
    """Render ``descriptor`` with the renderer registered for ``target``."""
    return get_renderer(target, **options).render(descriptor)


__all__ = [
    "load_document",
    "compile_document",
    "compile_source",
    "compile_file",
    "generate_source",
]
