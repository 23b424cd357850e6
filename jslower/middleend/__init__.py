"""Name resolution shared by the lowering pass."""

from .scope import Binding, FunctionContext, Scope, safe_name

__all__ = [
    "Binding",
    "FunctionContext",
    "Scope",
    "safe_name",
]
