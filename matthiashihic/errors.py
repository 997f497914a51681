"""Unified error model for matthiashihic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorLocation:
    path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def describe(self) -> str:
        if self.path and self.line is not None and self.column is not None:
            return f"{self.path}:{self.line}:{self.column}"
        if self.path and self.line is not None:
            return f"{self.path}:{self.line}"
        if self.line is not None and self.column is not None:
            return f"line {self.line}, column {self.column}"
        if self.line is not None:
            return f"line {self.line}"
        if self.path:
            return self.path
        return "unknown location"


class HihiError(Exception):
    """Base class for all compiler errors surfaced to users."""

    code: Optional[str] = None
    hint: Optional[str] = None
    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = ErrorLocation(path=path, line=line, column=column)
        self.path = path
        self.line = line
        self.column = column
        if code is not None:
            self.code = code
        if hint is not None:
            self.hint = hint

    def format(self) -> str:
        components = [self.message]
        meta_parts = []
        location_desc = self.location.describe()
        if location_desc != "unknown location":
            meta_parts.append(location_desc)
        if self.code:
            meta_parts.append(self.code)
        if meta_parts:
            components[-1] = f"{components[-1]} ({'; '.join(meta_parts)})"
        if self.hint:
            components.append(f"Hint: {self.hint}")
        return " ".join(part for part in components if part)


class SourceError(HihiError):
    """Raised when a source file cannot be read or decoded."""

    code = "HIHI000"


class StructuralError(HihiError):
    """Raised when the header/statement/terminator layout is violated."""

    exit_code = 2


class MissingHeader(StructuralError):
    code = "HIHI001"
    hint = "The first non-empty line must be exactly: hihi!"


class MalformedStatement(StructuralError):
    code = "HIHI002"
    hint = 'Statements are single lines wrapped in double quotes, e.g. "say hello"'

    def __init__(self, line: int, reason: str, **kwargs) -> None:
        super().__init__(f"Malformed statement: {reason}", line=line, **kwargs)
        self.reason = reason


class MissingTerminator(StructuralError):
    code = "HIHI003"
    hint = "End the statement list with a line reading: eat that java!"


class PlaceholderError(HihiError):
    """Raised when placeholder syntax inside a statement is invalid."""

    code = "HIHI010"
    exit_code = 2


class InvalidPlaceholder(PlaceholderError):
    hint = "Use €1, €2, ... to reference input lines and €€ for a literal €"

    def __init__(
        self,
        statement: str,
        position: int,
        reason: str,
        *,
        line: Optional[int] = None,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"Invalid placeholder at offset {position} in {statement!r}: {reason}",
            path=path,
            line=line,
            column=position + 1,
        )
        self.statement = statement
        self.position = position
        self.reason = reason


class EncodingError(HihiError):
    """Raised when text cannot be embedded into generated source."""

    code = "HIHI020"

    def __init__(self, statement: str, character: str, **kwargs) -> None:
        super().__init__(
            f"Cannot embed character {character!r} (U+{ord(character):04X}) "
            f"from {statement!r} into generated source",
            **kwargs,
        )
        self.statement = statement
        self.character = character


class BuildError(HihiError):
    """Raised when the external toolchain fails; carries its diagnostic."""

    code = "HIHI030"

    def __init__(self, message: str, *, diagnostic: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.diagnostic = diagnostic

    def format(self) -> str:
        base = super().format()
        if self.diagnostic:
            return f"{base}\n{self.diagnostic.rstrip()}"
        return base


class RuntimeArgumentError(HihiError):
    """Raised when fewer stdin lines are available than a program requires."""

    code = "HIHI040"
    exit_code = 2

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Expected {expected} arguments from stdin, got {actual}",
            hint=f"Pipe {expected} lines into this program, one per line.",
        )
        self.expected = expected
        self.actual = actual


__all__ = [
    "HihiError",
    "SourceError",
    "StructuralError",
    "MissingHeader",
    "MalformedStatement",
    "MissingTerminator",
    "PlaceholderError",
    "InvalidPlaceholder",
    "EncodingError",
    "BuildError",
    "RuntimeArgumentError",
    "ErrorLocation",
]
