"""
matthiashihic language tokens.

Single source of truth for the fixed tokens of the notation, shared by the
parser, the placeholder resolver and the error messages.
"""

from __future__ import annotations

HEADER = "hihi!"
"""Required first non-empty line of every program."""

TERMINATOR = "eat that java!"
"""Ends the statement region; everything after it is a comment."""

QUOTE = '"'

PLACEHOLDER_MARKER = "€"
"""Introduces ``€N`` input references; doubled (``€€``) it is a literal."""

SOURCE_SUFFIX = ".matthiashihic"

DEFAULT_MODEL = "gpt-4"

DEFAULT_API_BASE = "https://api.openai.com/v1"

DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"

SYSTEM_PROMPT = (
    "You are an assistant that acts as if it were a program written in a "
    "language called 'matthiashihic'. This language allows every string to "
    "become a new string. Don't take it too literally, and ignore everything "
    "that doesn't make sense. If the user asks you to 'say' or 'make' "
    "something, for instance, just print it. Answer the code statement as if "
    "you had computed them. Do not reply with anything but the result."
)

__all__ = [
    "HEADER",
    "TERMINATOR",
    "QUOTE",
    "PLACEHOLDER_MARKER",
    "SOURCE_SUFFIX",
    "DEFAULT_MODEL",
    "DEFAULT_API_BASE",
    "DEFAULT_API_KEY_ENV",
    "SYSTEM_PROMPT",
]
