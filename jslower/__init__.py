"""jslower: lower ESTree JavaScript ASTs to standalone Python programs."""

from __future__ import annotations

from .ast import Program
from .backend.python import lower_program
from .errors import LoweringError
from .frontend.estree import LoadError, load_program

__version__ = "0.1.0"


def transpile(data: dict[str, object] | str | bytes) -> str:
    """Load an ESTree document and lower it in one step."""
    return lower_program(load_program(data))


__all__ = [
    "LoadError",
    "LoweringError",
    "Program",
    "load_program",
    "lower_program",
    "transpile",
]
