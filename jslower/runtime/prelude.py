"""jslower runtime prelude.

Dynamic value model for programs emitted by jslower. The lowering pass copies
this file verbatim to the top of every generated program, so it must stay
self-contained: standard library imports only, no package-relative imports.

Value model:
    JsValue
    ├── Null, Undefined, Boolean, Number, String   (immutable, copy == share)
    └── JsObject                                   (mutable heap object, shared)
        ├── JsArray                                (index-addressable elements)
        └── JsFunction                             (native callable)
"""

from __future__ import annotations

import math
import re
import sys
import threading
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Callable, Final, Mapping, Sequence

__all__ = [
    "BINARY_METHODS",
    "BUILTIN_MEMBERS",
    "BUILTIN_OBJECTS",
    "Boolean",
    "COMPOUND_ASSIGN_METHODS",
    "ConsoleBinding",
    "FALSE",
    "Final",
    "GLOBAL_CONSTANTS",
    "JsArray",
    "JsFunction",
    "JsGlobals",
    "JsObject",
    "JsRuntimeFault",
    "JsValue",
    "MathBinding",
    "NULL",
    "Null",
    "Number",
    "ProcessBinding",
    "String",
    "TRUE",
    "UNARY_FUNCTIONS",
    "UNDEFINED",
    "UPDATE_METHODS",
    "Undefined",
    "assign_prop",
    "js_globals",
    "negate",
    "plus",
    "run_program",
]


# ============================================================
# OPERATOR AND BUILT-IN TABLES
#
# Shared with the lowering pass: generated code calls exactly these names.
# ============================================================

BINARY_METHODS: Final = {
    "+": "add",
    "-": "sub",
    "*": "mult",
    "/": "divide",
    "<": "less",
}

UNARY_FUNCTIONS: Final = {
    "-": "negate",
    "+": "plus",
}

UPDATE_METHODS: Final = {
    "++": "add",
    "--": "sub",
}

COMPOUND_ASSIGN_METHODS: Final = {
    "+=": "add",
    "-=": "sub",
    "*=": "mult",
    "/=": "divide",
}

BUILTIN_OBJECTS: Final = frozenset({"console", "Math", "process"})

BUILTIN_MEMBERS: Final = {
    "console.log": "js_globals().console.log",
    "Math.PI": "js_globals().math.PI",
    "Math.sqrt": "js_globals().math.sqrt",
    "process.argv": "js_globals().process.argv",
}

GLOBAL_CONSTANTS: Final = {
    "undefined": "UNDEFINED",
    "NaN": "Number(math.nan)",
    "Infinity": "Number(math.inf)",
}


# ============================================================
# FAULTS
# ============================================================


class JsRuntimeFault(Exception):
    """Fatal fault in a generated program. There is no recovery."""

    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg


# ============================================================
# NUMBER <-> STRING
# ============================================================

_DECIMAL_LITERAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

_RADIX_PREFIXES: dict[str, tuple[int, re.Pattern[str]]] = {
    "0x": (16, re.compile(r"[0-9a-fA-F]+")),
    "0o": (8, re.compile(r"[0-7]+")),
    "0b": (2, re.compile(r"[01]+")),
}


def _parse_number(text: str) -> float:
    """String-to-number conversion following JS Number(string)."""
    text = text.strip()
    if text == "":
        return 0.0
    if _DECIMAL_LITERAL.fullmatch(text):
        return float(text)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    prefix = text[:2].lower()
    if prefix in _RADIX_PREFIXES:
        radix, digits = _RADIX_PREFIXES[prefix]
        if digits.fullmatch(text[2:]):
            return float(int(text[2:], radix))
    return math.nan


def _format_number(num: float) -> str:
    """Number-to-string conversion following JS Number.prototype.toString()."""
    if math.isnan(num):
        return "NaN"
    if math.isinf(num):
        return "Infinity" if num > 0 else "-Infinity"
    if num == 0:
        return "0"
    if num.is_integer() and abs(num) < 2**53:
        return str(int(num))
    text = repr(num)
    if num.is_integer() and abs(num) < 1e21:
        # Shortest round-trip digits, zero padded: 1.2345678901234568e+20
        return format(Decimal(text).normalize(), "f")
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    exp = int(exponent)
    if -7 < exp < 21:
        return format(Decimal(text), "f")
    sign = "+" if exp > 0 else "-"
    return f"{mantissa}e{sign}{abs(exp)}"


def _to_fixed(num: float, digits: float) -> str:
    if math.isnan(digits):
        digits = 0.0
    if not 0 <= digits <= 100:
        raise JsRuntimeFault("toFixed() digits argument must be between 0 and 100")
    if math.isnan(num) or abs(num) >= 1e21:
        return _format_number(num)
    if num == 0:
        num = 0.0
    quantum = Decimal(1).scaleb(-int(digits))
    rounded = Decimal(num).quantize(quantum, rounding=ROUND_HALF_UP, context=Context(prec=200))
    return format(rounded, "f")


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


# ============================================================
# VALUES
# ============================================================


class JsValue:
    """Base of every dynamic value the generated program manipulates."""

    # --- arithmetic and comparison (Number operands only) ---

    def add(self, other: JsValue) -> JsValue:
        a, b = _number_operands(self, other, "+")
        return Number(a + b)

    def sub(self, other: JsValue) -> JsValue:
        a, b = _number_operands(self, other, "-")
        return Number(a - b)

    def mult(self, other: JsValue) -> JsValue:
        a, b = _number_operands(self, other, "*")
        return Number(a * b)

    def divide(self, other: JsValue) -> JsValue:
        a, b = _number_operands(self, other, "/")
        return Number(_divide(a, b))

    def less(self, other: JsValue) -> JsValue:
        a, b = _number_operands(self, other, "<")
        return TRUE if a < b else FALSE

    # --- coercion ---

    def to_number(self) -> Number:
        raise NotImplementedError

    def to_js_string(self) -> String:
        raise NotImplementedError

    def truthy(self) -> bool:
        raise NotImplementedError

    def falsy(self) -> bool:
        return not self.truthy()

    def type_of(self) -> str:
        raise NotImplementedError

    # --- properties and invocation ---

    def get_prop(self, key: JsValue) -> JsValue:
        return UNDEFINED

    def set_prop(self, key: JsValue, value: JsValue) -> None:
        raise JsRuntimeFault(
            f"Cannot create property '{_key_text(key)}' on {self.type_of()} "
            f"'{self.to_js_string().value}'"
        )

    def call(self, args: Sequence[JsValue]) -> JsValue:
        raise JsRuntimeFault(f"{self.type_of()} value is not callable")

    def __call__(self, *args: JsValue) -> JsValue:
        return self.call(args)

    @staticmethod
    def function(func: Callable[..., JsValue]) -> JsFunction:
        """Wrap a generated Python function as a callable heap object."""
        return JsFunction(lambda args: func(*args), getattr(func, "__name__", ""))


def _number_operands(a: JsValue, b: JsValue, op: str) -> tuple[float, float]:
    if isinstance(a, Number) and isinstance(b, Number):
        return a.value, b.value
    raise JsRuntimeFault(
        f"unsupported operand types for {op}: {a.type_of()} and {b.type_of()}"
    )


def _key_text(key: JsValue) -> str:
    return key.to_js_string().value


@dataclass(frozen=True)
class Null(JsValue):
    def to_number(self) -> Number:
        return Number(0.0)

    def to_js_string(self) -> String:
        return String("null")

    def truthy(self) -> bool:
        return False

    def type_of(self) -> str:
        return "null"

    def get_prop(self, key: JsValue) -> JsValue:
        raise JsRuntimeFault(f"Cannot read properties of null (reading '{_key_text(key)}')")

    def set_prop(self, key: JsValue, value: JsValue) -> None:
        raise JsRuntimeFault(f"Cannot set properties of null (setting '{_key_text(key)}')")


@dataclass(frozen=True)
class Undefined(JsValue):
    def to_number(self) -> Number:
        return Number(math.nan)

    def to_js_string(self) -> String:
        return String("undefined")

    def truthy(self) -> bool:
        return False

    def type_of(self) -> str:
        return "undefined"

    def get_prop(self, key: JsValue) -> JsValue:
        raise JsRuntimeFault(
            f"Cannot read properties of undefined (reading '{_key_text(key)}')"
        )

    def set_prop(self, key: JsValue, value: JsValue) -> None:
        raise JsRuntimeFault(
            f"Cannot set properties of undefined (setting '{_key_text(key)}')"
        )


@dataclass(frozen=True)
class Boolean(JsValue):
    value: bool

    def to_number(self) -> Number:
        return Number(1.0 if self.value else 0.0)

    def to_js_string(self) -> String:
        return String("true" if self.value else "false")

    def truthy(self) -> bool:
        return self.value

    def type_of(self) -> str:
        return "boolean"


@dataclass(frozen=True)
class Number(JsValue):
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))

    def to_number(self) -> Number:
        return self

    def to_js_string(self) -> String:
        return String(_format_number(self.value))

    def truthy(self) -> bool:
        return not (self.value == 0 or math.isnan(self.value))

    def type_of(self) -> str:
        return "number"

    def get_prop(self, key: JsValue) -> JsValue:
        name = _key_text(key)
        num = self.value
        if name == "toFixed":
            return JsFunction(
                lambda args: String(_to_fixed(num, _first(args).to_number().value)),
                "toFixed",
            )
        if name == "toString":
            return JsFunction(lambda args: self.to_js_string(), "toString")
        return UNDEFINED


@dataclass(frozen=True)
class String(JsValue):
    value: str

    def to_number(self) -> Number:
        return Number(_parse_number(self.value))

    def to_js_string(self) -> String:
        return self

    def truthy(self) -> bool:
        return self.value != ""

    def type_of(self) -> str:
        return "string"

    def get_prop(self, key: JsValue) -> JsValue:
        key = _array_key(key)
        if isinstance(key, Number):
            index = key.value
            if index.is_integer() and 0 <= index < len(self.value):
                return String(self.value[int(index)])
            return UNDEFINED
        if _key_text(key) == "length":
            return Number(float(len(self.value)))
        return UNDEFINED


NULL: Final = Null()
UNDEFINED: Final = Undefined()
TRUE: Final = Boolean(True)
FALSE: Final = Boolean(False)


def _first(args: Sequence[JsValue]) -> JsValue:
    return args[0] if args else UNDEFINED


# ============================================================
# HEAP OBJECTS
# ============================================================


class JsObject(JsValue):
    """Mutable heap object. Every value holding it shares the same instance."""

    def __init__(self, properties: Mapping[str, JsValue] | None = None) -> None:
        self.properties: dict[str, JsValue] = dict(properties) if properties else {}

    @classmethod
    def from_entries(cls, entries: Mapping[str, JsValue]) -> JsObject:
        return cls(entries)

    def __repr__(self) -> str:
        return f"JsObject({self.properties!r})"

    def to_number(self) -> Number:
        return Number(math.nan)

    def to_js_string(self) -> String:
        return String("[object Object]")

    def truthy(self) -> bool:
        return True

    def type_of(self) -> str:
        return "object"

    def get_prop(self, key: JsValue) -> JsValue:
        return self.properties.get(_key_text(key), UNDEFINED)

    def set_prop(self, key: JsValue, value: JsValue) -> None:
        self.properties[_key_text(key)] = value


_CANONICAL_INDEX = re.compile(r"0|[1-9][0-9]*")

# ids of arrays whose to_js_string is in progress
_joining: set[int] = set()


def _array_key(key: JsValue) -> JsValue:
    """Canonical index strings ("0", "12") address elements, as numbers do."""
    if isinstance(key, String) and _CANONICAL_INDEX.fullmatch(key.value):
        return Number(float(key.value))
    return key


class JsArray(JsObject):
    """Array heap object; length is derived from the element list."""

    def __init__(self, elements: Sequence[JsValue] = ()) -> None:
        super().__init__()
        self.elements: list[JsValue] = list(elements)

    def __repr__(self) -> str:
        return f"JsArray({self.elements!r})"

    def to_js_string(self) -> String:
        # A cycle back to an array being joined renders as the empty string
        if id(self) in _joining:
            return String("")
        _joining.add(id(self))
        try:
            parts = []
            for element in self.elements:
                if isinstance(element, (Null, Undefined)):
                    parts.append("")
                else:
                    parts.append(element.to_js_string().value)
        finally:
            _joining.discard(id(self))
        return String(",".join(parts))

    def _index(self, key: Number) -> int:
        index = key.value
        if not index.is_integer() or index < 0:
            raise JsRuntimeFault(f"invalid array index {_format_number(index)}")
        if index >= len(self.elements):
            raise JsRuntimeFault(
                f"array index {_format_number(index)} out of range "
                f"for length {len(self.elements)}"
            )
        return int(index)

    def get_prop(self, key: JsValue) -> JsValue:
        key = _array_key(key)
        if isinstance(key, Number):
            return self.elements[self._index(key)]
        if _key_text(key) == "length":
            return Number(float(len(self.elements)))
        return super().get_prop(key)

    def set_prop(self, key: JsValue, value: JsValue) -> None:
        key = _array_key(key)
        if isinstance(key, Number):
            self.elements[self._index(key)] = value
            return
        if _key_text(key) == "length":
            raise JsRuntimeFault("array length is read-only")
        super().set_prop(key, value)


class JsFunction(JsObject):
    """Native callable heap object."""

    def __init__(self, func: Callable[[Sequence[JsValue]], JsValue], name: str = "") -> None:
        super().__init__()
        self.func = func
        self.name = name

    def __repr__(self) -> str:
        return f"JsFunction({self.name!r})"

    def to_js_string(self) -> String:
        return String(f"function {self.name}() {{ [native code] }}")

    def type_of(self) -> str:
        return "function"

    def call(self, args: Sequence[JsValue]) -> JsValue:
        return self.func(list(args))


def negate(value: JsValue) -> JsValue:
    return Number(-value.to_number().value)


def plus(value: JsValue) -> JsValue:
    return value.to_number()


def assign_prop(target: JsValue, key: JsValue, value: JsValue) -> JsValue:
    """Property write in expression position; evaluates to the stored value."""
    target.set_prop(key, value)
    return value


# ============================================================
# BUILT-IN BINDINGS
# ============================================================


@dataclass(frozen=True)
class ConsoleBinding:
    log: JsFunction


@dataclass(frozen=True)
class MathBinding:
    PI: Number
    sqrt: JsFunction


@dataclass(frozen=True)
class ProcessBinding:
    argv: JsArray


@dataclass(frozen=True)
class JsGlobals:
    """Process-wide built-ins; created once, never mutated."""

    console: ConsoleBinding
    math: MathBinding
    process: ProcessBinding


def _console_log(args: Sequence[JsValue]) -> JsValue:
    print(" ".join(arg.to_js_string().value for arg in args))
    return UNDEFINED


def _math_sqrt(args: Sequence[JsValue]) -> JsValue:
    value = _first(args)
    if not isinstance(value, Number):
        raise JsRuntimeFault(f"Math.sqrt expects a number, got {value.type_of()}")
    num = value.value
    return Number(math.sqrt(num) if num >= 0 else math.nan)


def _create_globals() -> JsGlobals:
    # Scripts see a node-style argv: interpreter name first.
    argv = [String("node")] + [String(arg) for arg in sys.argv]
    return JsGlobals(
        console=ConsoleBinding(log=JsFunction(_console_log, "log")),
        math=MathBinding(PI=Number(math.pi), sqrt=JsFunction(_math_sqrt, "sqrt")),
        process=ProcessBinding(argv=JsArray(argv)),
    )


_globals: JsGlobals | None = None
_globals_lock = threading.Lock()


def js_globals() -> JsGlobals:
    """Return the built-in bindings, creating them on first use."""
    global _globals
    if _globals is None:
        with _globals_lock:
            if _globals is None:
                _globals = _create_globals()
    return _globals


# ============================================================
# PROGRAM ENTRY
# ============================================================


def run_program(entry: Callable[[], None]) -> None:
    """Run a generated entry point; runtime faults terminate the process."""
    try:
        entry()
    except JsRuntimeFault as fault:
        print(f"Uncaught {fault.msg}", file=sys.stderr)
        sys.exit(1)
    except NameError as err:
        # A binding read before its declaration ran (UnboundLocalError included)
        name = getattr(err, "name", None)
        detail = f"Cannot access '{name}' before initialization" if name else str(err)
        print(f"Uncaught ReferenceError: {detail}", file=sys.stderr)
        sys.exit(1)


# ----------------------------------------------------------
# END OF PRELUDE
# ----------------------------------------------------------
