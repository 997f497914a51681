"""Renderer interface shared by all code generation targets."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..ir import ProgramDescriptor


class Renderer(ABC):
    """
    Turn a :class:`ProgramDescriptor` into source text for one target.

    Only renderers know about the target language; the parser and the
    placeholder resolver never do.
    """

    target: str = ""
    file_suffix: str = ""

    @abstractmethod
    def render(self, descriptor: ProgramDescriptor) -> str:
        """
        Render ``descriptor`` into target source text.

        Raises:
            EncodingError: If some text cannot be embedded as a string
                literal of the target language
        """
