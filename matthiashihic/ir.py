"""
Intermediate representation for compiled matthiashihic programs.

A :class:`ProgramDescriptor` is the fully resolved, renderer-ready form of a
program.  It is independent of the target language: renderers in
:mod:`matthiashihic.codegen` consume it and nothing downstream reaches back
into the parser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from .ast import PlaceholderRef, ResolvedStatement
from .lang import DEFAULT_API_BASE, DEFAULT_MODEL
from .placeholders import required_argument_count as _required_argument_count


@dataclass(frozen=True)
class ProgramDescriptor:
    """Resolved statements plus everything the generated program needs."""

    required_argument_count: int
    resolved_statements: Tuple[ResolvedStatement, ...]
    model_identifier: str = DEFAULT_MODEL
    credential: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    source_path: Optional[str] = None

    @property
    def statement_count(self) -> int:
        return len(self.resolved_statements)


def build_descriptor(
    statements: Iterable[ResolvedStatement],
    *,
    model: Optional[str] = None,
    credential: Optional[str] = None,
    api_base: Optional[str] = None,
    source_path: Optional[str] = None,
) -> ProgramDescriptor:
    """
    Fold resolved statements into a :class:`ProgramDescriptor`.

    Model and credential come from the CLI layer and are passed through
    untouched.  The statement order is preserved.
    """
    resolved = tuple(statements)
    return ProgramDescriptor(
        required_argument_count=_required_argument_count(resolved),
        resolved_statements=resolved,
        model_identifier=model or DEFAULT_MODEL,
        credential=credential,
        api_base=api_base or DEFAULT_API_BASE,
        source_path=source_path,
    )


def serialize_descriptor(descriptor: ProgramDescriptor, *, redact: bool = True) -> Dict[str, Any]:
    """
    Serialize ``descriptor`` to a JSON-compatible dictionary.

    Args:
        descriptor: Descriptor to serialize
        redact: Replace the credential with ``"***"`` when one is set

    Returns:
        JSON-serializable dictionary

    Example:
        >>> data = serialize_descriptor(descriptor)
        >>> json.dumps(data, ensure_ascii=False)  # doctest: +SKIP
    """
    credential = descriptor.credential
    if credential is not None and redact:
        credential = "***"
    statements = []
    for statement in descriptor.resolved_statements:
        segments = []
        for segment in statement.segments:
            if isinstance(segment, PlaceholderRef):
                segments.append({"placeholder": segment.index})
            else:
                segments.append({"literal": segment.text})
        statements.append({"line": statement.source.line, "segments": segments})
    return {
        "source": descriptor.source_path,
        "required_argument_count": descriptor.required_argument_count,
        "model": descriptor.model_identifier,
        "api_base": descriptor.api_base,
        "credential": credential,
        "statements": statements,
    }


__all__ = ["ProgramDescriptor", "build_descriptor", "serialize_descriptor"]
