"""Core node definitions shared across the matthiashihic front end."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple, Union

from .lang import PLACEHOLDER_MARKER


@dataclass(frozen=True)
class SourceLine:
    """One raw line of a source document with its 1-based line number."""

    number: int
    text: str

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class SourceDocument:
    """Ordered, immutable sequence of raw source lines."""

    lines: Tuple[SourceLine, ...]
    path: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, *, path: Optional[str] = None) -> "SourceDocument":
        # splitlines() would also break on form feeds and other separators;
        # only \n and \r\n end a line in this notation.
        raw = text.split("\n")
        if raw and raw[-1] == "":
            raw.pop()
        lines = tuple(
            SourceLine(number=index, text=line[:-1] if line.endswith("\r") else line)
            for index, line in enumerate(raw, start=1)
        )
        return cls(lines=lines, path=path)

    def __iter__(self) -> Iterator[SourceLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class StatementText:
    """Contents of one quoted-string statement, quotes stripped."""

    text: str
    line: Optional[int] = None


@dataclass(frozen=True)
class ParsedProgram:
    """Result of structural validation."""

    header_line: int
    statements: Tuple[StatementText, ...]
    terminator_line: int
    path: Optional[str] = None

    @property
    def statement_texts(self) -> Tuple[str, ...]:
        return tuple(statement.text for statement in self.statements)


@dataclass(frozen=True)
class Literal:
    text: str

    def reconstruct(self) -> str:
        return self.text


@dataclass(frozen=True)
class PlaceholderRef:
    """Reference to the 1-based runtime input line ``index``."""

    index: int

    def reconstruct(self) -> str:
        return f"{PLACEHOLDER_MARKER}{self.index}"


Segment = Union[Literal, PlaceholderRef]


@dataclass(frozen=True)
class ResolvedStatement:
    """A statement split into literal text and placeholder references."""

    segments: Tuple[Segment, ...]
    source: StatementText = field(default_factory=lambda: StatementText(""))

    @property
    def placeholder_indices(self) -> Tuple[int, ...]:
        return tuple(
            segment.index for segment in self.segments if isinstance(segment, PlaceholderRef)
        )

    @property
    def max_index(self) -> int:
        return max(self.placeholder_indices, default=0)

    @property
    def has_placeholders(self) -> bool:
        return any(isinstance(segment, PlaceholderRef) for segment in self.segments)

    def reconstruct(self) -> str:
        """
        Rebuild the statement text with ``€€`` collapsed to ``€``.

        Placeholders are rendered back as ``€N``, so for a statement without
        references this is exactly the text the backend will receive.
        """
        return "".join(segment.reconstruct() for segment in self.segments)


__all__ = [
    "SourceLine",
    "SourceDocument",
    "StatementText",
    "ParsedProgram",
    "Literal",
    "PlaceholderRef",
    "Segment",
    "ResolvedStatement",
]
