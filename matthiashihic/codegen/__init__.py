"""
Code generation for matthiashihic programs.

Renderers turn a :class:`~matthiashihic.ir.ProgramDescriptor` into source
text for a target language.  ``python`` is the only built-in target.
"""

from __future__ import annotations

from typing import Dict, Type

from ..errors import HihiError
from .base import Renderer
from .python import PythonRenderer, python_string_literal

_RENDERERS: Dict[str, Type[Renderer]] = {
    PythonRenderer.target: PythonRenderer,
}


def get_renderer(target: str = "python", **options) -> Renderer:
    """Instantiate the renderer registered for ``target``."""
    try:
        renderer_class = _RENDERERS[target.lower()]
    except KeyError:
        available = ", ".join(sorted(_RENDERERS))
        raise HihiError(
            f"Unknown code generation target '{target}'",
            hint=f"Available targets: {available}",
        ) from None
    return renderer_class(**options)


__all__ = ["Renderer", "PythonRenderer", "get_renderer", "python_string_literal"]
