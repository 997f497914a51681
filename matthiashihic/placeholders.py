"""
Placeholder resolution for statement text.

Inside a statement ``€N`` (one or more ASCII digits, ``N >= 1``) refers to
the N-th line read from standard input when the compiled program runs, and
``€€`` stands for a literal ``€``.  Any other use of the marker is an
error; there is no dangling-marker form.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple, Union

from .ast import Literal, PlaceholderRef, ResolvedStatement, Segment, StatementText
from .errors import InvalidPlaceholder
from .lang import PLACEHOLDER_MARKER

logger = logging.getLogger(__name__)

_DIGITS = frozenset("0123456789")


def resolve_statement(
    statement: Union[StatementText, str],
    *,
    path: str | None = None,
) -> ResolvedStatement:
    """
    Split ``statement`` into literal and placeholder segments.

    Args:
        statement: Statement contents (quotes already stripped)
        path: Source path for diagnostics

    Returns:
        ResolvedStatement whose adjacent literal runs are coalesced

    Raises:
        InvalidPlaceholder: On ``€0``, a dangling ``€`` or ``€`` followed by
            anything but a digit or a second ``€``

    Examples:
        >>> resolve_statement("Cost is €€5").segments
        (Literal(text='Cost is €5'),)
        >>> resolve_statement("Hi €1!").segments
        (Literal(text='Hi '), PlaceholderRef(index=1), Literal(text='!'))
    """
    if isinstance(statement, str):
        statement = StatementText(statement)
    text = statement.text

    segments: List[Segment] = []
    literal: List[str] = []

    def flush() -> None:
        if literal:
            segments.append(Literal("".join(literal)))
            literal.clear()

    position = 0
    length = len(text)
    while position < length:
        char = text[position]
        if char != PLACEHOLDER_MARKER:
            literal.append(char)
            position += 1
            continue

        following = text[position + 1] if position + 1 < length else ""
        if following == PLACEHOLDER_MARKER:
            literal.append(PLACEHOLDER_MARKER)
            position += 2
            continue
        if following not in _DIGITS:
            reason = (
                "dangling marker at end of statement"
                if not following
                else f"marker followed by {following!r}; expected digits or a second marker"
            )
            raise InvalidPlaceholder(text, position, reason, line=statement.line, path=path)

        end = position + 1
        while end < length and text[end] in _DIGITS:
            end += 1
        index = int(text[position + 1:end])
        if index < 1:
            raise InvalidPlaceholder(
                text,
                position,
                f"placeholder indices start at 1 (found {text[position:end]})",
                line=statement.line,
                path=path,
            )
        flush()
        segments.append(PlaceholderRef(index))
        position = end

    flush()
    return ResolvedStatement(segments=tuple(segments), source=statement)


def resolve_statements(
    statements: Iterable[Union[StatementText, str]],
    *,
    path: str | None = None,
) -> Tuple[ResolvedStatement, ...]:
    """Resolve every statement, preserving order."""
    resolved = tuple(resolve_statement(statement, path=path) for statement in statements)
    logger.debug(
        "Resolved %d statement(s) with %d placeholder reference(s)",
        len(resolved),
        sum(len(item.placeholder_indices) for item in resolved),
    )
    return resolved


def required_argument_count(statements: Sequence[ResolvedStatement]) -> int:
    """Highest placeholder index referenced by ``statements`` or 0."""
    return max((statement.max_index for statement in statements), default=0)


__all__ = ["resolve_statement", "resolve_statements", "required_argument_count"]
