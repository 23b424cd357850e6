"""Serialization of jslower AST nodes to JSON-compatible dicts."""

from __future__ import annotations

import dataclasses
import math

from .ast import Node


def serialize(obj: object) -> object:
    """Recursively serialize an object to a JSON-compatible structure."""
    if obj is None:
        return None
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        if math.isfinite(obj):
            return obj
        # JSON has no NaN/Infinity; keep the JS spelling.
        if math.isnan(obj):
            return "NaN"
        return "Infinity" if obj > 0 else "-Infinity"
    if isinstance(obj, (int, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [serialize(x) for x in obj]
    if isinstance(obj, Node):
        return _serialize_node(obj)
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def _serialize_node(node: Node) -> dict[str, object]:
    result: dict[str, object] = {"_type": type(node).__name__}
    for f in dataclasses.fields(node):
        result[f.name] = serialize(getattr(node, f.name))
    return result
