"""
In-process execution of compiled programs.

This mirrors what a generated program does when it runs: read the required
stdin lines, substitute them into the statements, send the instructions to
the backend and stream the reply to stdout.  ``matthiashihic run`` uses it
to execute a program without building an artifact.
"""

from __future__ import annotations

import logging
from typing import IO, List, Sequence

from .ast import PlaceholderRef, ResolvedStatement
from .errors import RuntimeArgumentError
from .ir import ProgramDescriptor
from .lang import SYSTEM_PROMPT
from .llm.base import BaseLLM, ChatMessage

logger = logging.getLogger(__name__)


def read_arguments(stream: IO[str], count: int) -> List[str]:
    """
    Read exactly ``count`` lines from ``stream``.

    Lines beyond ``count`` are not read.  Trailing ``\\n`` / ``\\r\\n`` is
    stripped from each line.

    Raises:
        RuntimeArgumentError: If the stream ends before ``count`` lines
    """
    lines: List[str] = []
    while len(lines) < count:
        line = stream.readline()
        if not line:
            raise RuntimeArgumentError(expected=count, actual=len(lines))
        if line.endswith("\n"):
            line = line[:-1]
            if line.endswith("\r"):
                line = line[:-1]
        lines.append(line)
    return lines


def substitute(statement: ResolvedStatement, arguments: Sequence[str]) -> str:
    """Join ``statement`` with each placeholder replaced by its input line."""
    parts = []
    for segment in statement.segments:
        if isinstance(segment, PlaceholderRef):
            parts.append(arguments[segment.index - 1])
        else:
            parts.append(segment.text)
    return "".join(parts)


def render_instructions(descriptor: ProgramDescriptor, arguments: Sequence[str]) -> str:
    """Substituted statements, newline separated, in source order."""
    if len(arguments) < descriptor.required_argument_count:
        raise RuntimeArgumentError(expected=descriptor.required_argument_count, actual=len(arguments))
    return "\n".join(substitute(statement, arguments) for statement in descriptor.resolved_statements)


def build_messages(instructions: str) -> List[ChatMessage]:
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=instructions),
    ]


def stream_reply(llm: BaseLLM, messages: List[ChatMessage], out: IO[str]) -> None:
    """Write reply chunks to ``out`` as they arrive, then a final newline."""
    for chunk in llm.stream_chat(messages):
        out.write(chunk)
        out.flush()
    out.write("\n")
    out.flush()


def execute(descriptor: ProgramDescriptor, llm: BaseLLM, stdin: IO[str], stdout: IO[str]) -> None:
    """
    Run ``descriptor`` against ``llm``.

    Raises:
        RuntimeArgumentError: Too few stdin lines for the program
        BackendError: The backend request failed
    """
    arguments: List[str] = []
    if descriptor.required_argument_count:
        arguments = read_arguments(stdin, descriptor.required_argument_count)
    instructions = render_instructions(descriptor, arguments)
    logger.debug(
        "Sending %d instruction line(s) to %s",
        descriptor.statement_count,
        llm.model,
    )
    stream_reply(llm, build_messages(instructions), stdout)


__all__ = [
    "read_arguments",
    "substitute",
    "render_instructions",
    "build_messages",
    "stream_reply",
    "execute",
]
