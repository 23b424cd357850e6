"""Shared utilities for the code emitter."""

from __future__ import annotations

import math


def escape_string(value: str) -> str:
    """Escape a string for use in a double-quoted Python literal (without quotes)."""
    out: list[str] = []
    for c in value:
        code = ord(c)
        if c == "\\":
            out.append("\\\\")
        elif c == '"':
            out.append('\\"')
        elif c == "\n":
            out.append("\\n")
        elif c == "\t":
            out.append("\\t")
        elif c == "\r":
            out.append("\\r")
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        elif 0xD800 <= code <= 0xDFFF:
            # Lone surrogates survive JSON decoding but not UTF-8 output.
            out.append(f"\\u{code:04x}")
        else:
            out.append(c)
    return "".join(out)


def string_literal(value: str) -> str:
    return '"' + escape_string(value) + '"'


def number_literal(value: float) -> str:
    """Python source for a runtime Number holding value."""
    if math.isnan(value):
        return "Number(math.nan)"
    if math.isinf(value):
        return "Number(math.inf)" if value > 0 else "Number(-math.inf)"
    return f"Number({float(value)!r})"


class Emitter:
    """Base class for code emitters with indentation tracking."""

    def __init__(self, indent_str: str = "    ") -> None:
        self.indent: int = 0
        self.lines: list[str] = []
        self._indent_str = indent_str

    def line(self, text: str = "") -> None:
        """Emit a line with current indentation."""
        if text:
            self.lines.append(self._indent_str * self.indent + text)
        else:
            self.lines.append("")

    def output(self) -> str:
        """Return the accumulated output as a string."""
        return "\n".join(self.lines)
