"""Frontend package - loads ESTree documents into the jslower AST."""

from .estree import LoadError, load_program

__all__ = [
    "LoadError",
    "load_program",
]
