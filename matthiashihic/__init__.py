"""
matthiashihic language package.

This package contains the compiler for ``.matthiashihic`` programs.  A
program is a ``hihi!`` header, a list of quoted strings and an
``eat that java!`` terminator.  Each quoted string is a plain-language
instruction which, once compiled, is sent to a language model that acts as
the "interpreter" of the program.  Everything after the terminator is a
comment.

The code is organised into several modules:

* ``ast`` – frozen dataclasses for source lines, parsed programs and
  resolved statements.
* ``parser`` – the structural validator that turns a source document
  into a :class:`~matthiashihic.ast.ParsedProgram`.
* ``placeholders`` – resolution of ``€N`` references and ``€€`` escapes.
* ``ir`` – the :class:`~matthiashihic.ir.ProgramDescriptor` consumed by
  code generation.
* ``codegen`` – renders a descriptor into a standalone Python program.
* ``build`` – packages the generated program as an executable zipapp.
* ``llm`` / ``runtime`` – the streaming backend used by ``run``.
* ``cli`` – the command line interface tying everything together.
"""

import re
from pathlib import Path
from importlib import metadata as _metadata


def _local_version() -> str | None:
    root = Path(__file__).resolve().parents[1]
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return None
    try:
        text = pyproject.read_text(encoding="utf-8")
    except OSError:  # pragma: no cover - IO errors should not break imports
        return None
    match = re.search(r"^version\s*=\s*\"([^\"]+)\"", text, flags=re.MULTILINE)
    if match:
        return match.group(1)
    return None


try:  # pragma: no cover - metadata fallback for editable installs
    __version__ = _metadata.version("matthiashihic")
except _metadata.PackageNotFoundError:  # pragma: no cover - source tree
    __version__ = _local_version() or "0.1.0"

__all__ = ["__version__"]
