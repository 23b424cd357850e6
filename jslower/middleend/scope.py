"""Lexical scope tracking for lowering.

Python has function scoping only, so block-scoped JS bindings that would
collide inside one generated function are renamed (`x`, `x_1`, ...). Each
binding records the function that owns it: generated code may read bindings of
enclosing functions (closures) but never rebind them.
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass, field

from ..errors import LoweringError
from ..runtime.prelude import __all__ as _PRELUDE_NAMES

# Python builtins that shouldn't be shadowed by variable names
_PYTHON_BUILTINS = frozenset(
    {
        "abs",
        "all",
        "any",
        "bool",
        "callable",
        "chr",
        "dict",
        "dir",
        "divmod",
        "enumerate",
        "eval",
        "exec",
        "filter",
        "float",
        "format",
        "getattr",
        "globals",
        "hasattr",
        "hash",
        "id",
        "input",
        "int",
        "isinstance",
        "iter",
        "len",
        "list",
        "locals",
        "map",
        "max",
        "min",
        "next",
        "object",
        "open",
        "ord",
        "pow",
        "print",
        "range",
        "repr",
        "round",
        "set",
        "setattr",
        "sorted",
        "str",
        "sum",
        "super",
        "tuple",
        "type",
        "vars",
        "zip",
    }
)

# Module-level names the generated code relies on besides the prelude exports
_GENERATED_NAMES = frozenset({"main", "math"})

RESERVED_NAMES = (
    frozenset(keyword.kwlist) | _PYTHON_BUILTINS | frozenset(_PRELUDE_NAMES) | _GENERATED_NAMES
)

BindingKind = str
"""One of: const, let, param, function."""


def safe_name(name: str) -> str:
    """Rename identifiers that collide with Python or prelude names."""
    # $ is legal in JS identifiers only
    name = name.replace("$", "_S")
    if name in RESERVED_NAMES:
        return name + "_"
    return name


@dataclass
class FunctionContext:
    """One generated Python function: the unit of Python name allocation."""

    is_entry: bool = False
    used_names: set[str] = field(default_factory=set)

    def allocate(self, base: str, avoid: set[str] | frozenset[str] = frozenset()) -> str:
        candidate = base
        n = 0
        while candidate in self.used_names or candidate in avoid:
            n += 1
            candidate = f"{base}_{n}"
        self.used_names.add(candidate)
        return candidate


@dataclass
class Binding:
    name: str
    py_name: str
    kind: BindingKind
    owner: FunctionContext


class Scope:
    """A lexical scope: a function root or a nested block within one function."""

    def __init__(
        self, function: FunctionContext, parent: Scope | None = None, root: bool = False
    ) -> None:
        self.function = function
        self.parent = parent
        self.root = root
        self.bindings: dict[str, Binding] = {}

    def child_block(self) -> Scope:
        return Scope(self.function, self)

    def child_function(self) -> Scope:
        return Scope(FunctionContext(), self, root=True)

    def function_body(self) -> Scope:
        """Root scope of the same function nested under this one (named function expressions)."""
        return Scope(self.function, self, root=True)

    def declare(self, name: str, kind: BindingKind) -> Binding:
        if name in self.bindings:
            raise LoweringError(f"duplicate declaration of '{name}'")
        # A function-root binding covers the whole function, so it may reuse the
        # Python name of the outer binding it shadows. Block bindings may not.
        if self.root:
            avoid = self.visible_py_names(exclude=name)
        else:
            avoid = self.visible_py_names()
        py_name = self.function.allocate(safe_name(name), avoid)
        binding = Binding(name, py_name, kind, self.function)
        self.bindings[name] = binding
        return binding

    def alias(self, name: str, py_name: str, kind: BindingKind, owner: FunctionContext) -> Binding:
        """Bind name to a Python name allocated elsewhere (named function expressions)."""
        binding = Binding(name, py_name, kind, owner)
        self.bindings[name] = binding
        return binding

    def new_temp(self, base: str = "_tmp") -> str:
        return self.function.allocate(base, self.visible_py_names())

    def lookup(self, name: str) -> Binding | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            scope = scope.parent
        return None

    def lookup_local(self, name: str) -> Binding:
        if name not in self.bindings:
            raise LoweringError(f"binding '{name}' was not declared in this scope")
        return self.bindings[name]

    def resolve_write(self, name: str) -> Binding:
        """Binding for an assignment target; rejects const, functions and captures."""
        binding = self.lookup(name)
        if binding is None:
            raise LoweringError(f"assignment to undeclared identifier '{name}'")
        if binding.kind == "const":
            raise LoweringError(f"assignment to constant '{name}'")
        if binding.kind == "function":
            raise LoweringError(f"assignment to function declaration '{name}'")
        if binding.owner is not self.function:
            raise LoweringError(f"assignment to captured binding '{name}' is not supported")
        return binding

    def visible_py_names(self, exclude: str | None = None) -> set[str]:
        names: set[str] = set()
        scope: Scope | None = self
        while scope is not None:
            for binding in scope.bindings.values():
                if binding.name != exclude:
                    names.add(binding.py_name)
            scope = scope.parent
        return names
