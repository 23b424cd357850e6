"""Backend: jslower AST → Python source."""

from .python import PythonBackend, lower_program

__all__ = [
    "PythonBackend",
    "lower_program",
]
