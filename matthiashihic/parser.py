"""
Structural validator for matthiashihic source documents.

The grammar is line oriented::

    program     := blank* header blank* statement* terminator rest?
    header      := "hihi!"
    terminator  := "eat that java!"
    statement   := '"' <any characters except newline and quote> '"'

Every line is classified as blank, header, statement or terminator.  Lines
after the terminator form the comment region and are never looked at.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from .ast import ParsedProgram, SourceDocument, SourceLine, StatementText
from .errors import MalformedStatement, MissingHeader, MissingTerminator
from .lang import HEADER, QUOTE, TERMINATOR

logger = logging.getLogger(__name__)


class Parser:
    """
    Turn a :class:`SourceDocument` into a :class:`ParsedProgram`.

    Args:
        source: Raw program text or an already split document
        path: Optional file path used in diagnostics

    Raises:
        MissingHeader: The first non-blank line is not ``hihi!``
        MalformedStatement: A line in the statement region is neither a
            quoted string nor the terminator
        MissingTerminator: Input ended before ``eat that java!``

    Examples:
        >>> program = Parser('hihi!\\n"say hi"\\neat that java!').parse()
        >>> program.statement_texts
        ('say hi',)
    """

    def __init__(self, source: Union[str, SourceDocument], *, path: Optional[str] = None):
        if isinstance(source, SourceDocument):
            self.document = source
            self.path = path or source.path
        else:
            self.document = SourceDocument.from_text(source, path=path)
            self.path = path

    def parse(self) -> ParsedProgram:
        lines = self.document.lines
        index = 0
        while index < len(lines) and lines[index].is_blank:
            index += 1
        if index >= len(lines):
            raise MissingHeader(
                f"Empty file; expected '{HEADER}' header",
                path=self.path,
            )
        header = lines[index]
        if header.text.strip() != HEADER:
            raise MissingHeader(
                f"First non-empty line must be exactly: {HEADER}",
                path=self.path,
                line=header.number,
            )

        statements: List[StatementText] = []
        for line in lines[index + 1:]:
            if line.is_blank:
                continue
            stripped = line.text.strip()
            if stripped == TERMINATOR:
                logger.debug(
                    "Parsed %d statement(s) between lines %d and %d",
                    len(statements),
                    header.number,
                    line.number,
                )
                return ParsedProgram(
                    header_line=header.number,
                    statements=tuple(statements),
                    terminator_line=line.number,
                    path=self.path,
                )
            statements.append(self._parse_statement(line, stripped))

        raise MissingTerminator(
            f"Missing terminator line: {TERMINATOR}",
            path=self.path,
            line=lines[-1].number,
        )

    def _parse_statement(self, line: SourceLine, stripped: str) -> StatementText:
        if stripped == HEADER:
            raise MalformedStatement(line.number, f"duplicate '{HEADER}' header", path=self.path)
        if not stripped.startswith(QUOTE):
            raise MalformedStatement(
                line.number,
                f"only quoted string statements are allowed, got {stripped!r}",
                path=self.path,
            )
        if len(stripped) < 2 or not stripped.endswith(QUOTE):
            raise MalformedStatement(
                line.number,
                f"missing closing quote in {stripped!r}",
                path=self.path,
            )
        inner = stripped[1:-1]
        stray = inner.find(QUOTE)
        if stray != -1:
            raise MalformedStatement(
                line.number,
                f"unexpected quote at column {line.text.index(stripped) + stray + 2}; "
                "quotes cannot appear inside a statement",
                path=self.path,
            )
        return StatementText(text=inner, line=line.number)


def parse_document(document: SourceDocument) -> ParsedProgram:
    """Validate ``document`` and return the parsed program."""
    return Parser(document).parse()


def parse_source(text: str, *, path: Optional[str] = None) -> ParsedProgram:
    """Validate raw program ``text`` and return the parsed program."""
    return Parser(text, path=path).parse()


__all__ = ["Parser", "parse_document", "parse_source"]
