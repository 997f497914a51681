"""
Python target for matthiashihic programs.

The generated program is a single self-contained module.  Its only
third-party import is ``httpx``, used for the streaming chat-completions
request.  Statements are embedded as data (tuples of literal strings and
integer input references) and substituted at run time.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .. import __version__
from ..ast import PlaceholderRef
from ..errors import EncodingError, HihiError
from ..ir import ProgramDescriptor
from ..lang import DEFAULT_API_KEY_ENV, SYSTEM_PROMPT
from .base import Renderer

logger = logging.getLogger(__name__)

_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def python_string_literal(text: str, *, statement: Optional[str] = None) -> str:
    """
    Render ``text`` as a double-quoted Python string literal.

    Backslashes, double quotes and every non-printable character are
    escaped, so the literal always fits on one line.

    Args:
        text: Text to embed
        statement: Statement the text belongs to, used in error messages

    Raises:
        EncodingError: If ``text`` holds a lone surrogate, which cannot be
            written to a UTF-8 source file

    Examples:
        >>> python_string_literal('say "hi"')
        '"say \\\\"hi\\\\""'
    """
    parts: List[str] = ['"']
    for char in text:
        escaped = _SIMPLE_ESCAPES.get(char)
        if escaped is not None:
            parts.append(escaped)
            continue
        code = ord(char)
        if 0xD800 <= code <= 0xDFFF:
            raise EncodingError(statement if statement is not None else text, char)
        if char.isprintable():
            parts.append(char)
        elif code < 0x100:
            parts.append(f"\\x{code:02x}")
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


def generate_mask() -> bytes:
    """Per-build obfuscation key for the embedded credential."""
    return f"matthiashihic-{time.time_ns()}".encode("ascii")


def xor_bytes(data: bytes, mask: bytes) -> List[int]:
    return [byte ^ mask[index % len(mask)] for index, byte in enumerate(data)]


class PythonRenderer(Renderer):
    """
    Render descriptors into standalone Python 3 programs.

    Args:
        mask: Fixed obfuscation key; a fresh one is generated per render
            when omitted
        api_key_env: Environment variable consulted by the generated
            program before falling back to the embedded credential
    """

    target = "python"
    file_suffix = ".py"
    template_name = "program.py.j2"

    def __init__(self, *, mask: Optional[bytes] = None, api_key_env: str = DEFAULT_API_KEY_ENV):
        self.mask = mask
        self.api_key_env = api_key_env
        self.env = Environment(
            loader=PackageLoader("matthiashihic.codegen", "templates"),
            autoescape=False,  # We're generating code, not HTML
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pyliteral"] = python_string_literal

    def render(self, descriptor: ProgramDescriptor) -> str:
        statements = []
        for statement in descriptor.resolved_statements:
            segments = []
            for segment in statement.segments:
                if isinstance(segment, PlaceholderRef):
                    segments.append(str(segment.index))
                else:
                    segments.append(python_string_literal(segment.text, statement=statement.source.text))
            statements.append(segments)

        encrypted_key: List[int] = []
        mask: List[int] = []
        if descriptor.credential:
            credential = descriptor.credential
            try:
                raw = credential.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise EncodingError("<credential>", credential[exc.start]) from exc
            key = self.mask or generate_mask()
            encrypted_key = xor_bytes(raw, key)
            mask = list(key)

        source_name = Path(descriptor.source_path).name if descriptor.source_path else "<string>"
        try:
            source = self.env.get_template(self.template_name).render(
                version=__version__,
                source_name=source_name,
                model=descriptor.model_identifier,
                api_base=descriptor.api_base.rstrip("/"),
                api_key_env=self.api_key_env,
                system_prompt=SYSTEM_PROMPT,
                required_arguments=descriptor.required_argument_count,
                statements=statements,
                encrypted_key=encrypted_key,
                key_mask=mask,
            )
        except TemplateError as exc:
            raise HihiError(f"Template rendering failed: {exc}", code="HIHI021") from exc
        logger.debug(
            "Rendered %d statement(s) into %d bytes of Python",
            descriptor.statement_count,
            len(source),
        )
        return source


__all__ = ["PythonRenderer", "python_string_literal", "generate_mask", "xor_bytes"]
