"""Pytest configuration and shared helpers for the jslower test suite.

Test programs are written as ESTree dicts with the small builders below
(the shape acorn produces, minus positions), lowered, and then either executed
in-process or run as standalone scripts.
"""

import contextlib
import io
import subprocess
import sys
import types
from pathlib import Path

import pytest

# Add project root to path for jslower imports
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from jslower import transpile  # noqa: E402


# --- ESTree builders ---


def program(*body: dict) -> dict:
    return {"type": "Program", "sourceType": "script", "body": list(body)}


def ident(name: str) -> dict:
    return {"type": "Identifier", "name": name}


def lit(value: object) -> dict:
    return {"type": "Literal", "value": value, "raw": repr(value)}


def binary(op: str, left: dict, right: dict) -> dict:
    return {"type": "BinaryExpression", "operator": op, "left": left, "right": right}


def unary(op: str, argument: dict) -> dict:
    return {"type": "UnaryExpression", "operator": op, "prefix": True, "argument": argument}


def update(op: str, argument: dict, prefix: bool = False) -> dict:
    return {"type": "UpdateExpression", "operator": op, "prefix": prefix, "argument": argument}


def assign(target: dict, value: dict, op: str = "=") -> dict:
    return {"type": "AssignmentExpression", "operator": op, "left": target, "right": value}


def member(obj: dict, name: str) -> dict:
    return {
        "type": "MemberExpression",
        "object": obj,
        "property": ident(name),
        "computed": False,
        "optional": False,
    }


def index(obj: dict, key: dict) -> dict:
    return {
        "type": "MemberExpression",
        "object": obj,
        "property": key,
        "computed": True,
        "optional": False,
    }


def call(callee: dict, *args: dict) -> dict:
    return {"type": "CallExpression", "callee": callee, "arguments": list(args), "optional": False}


def array(*elements: dict | None) -> dict:
    return {"type": "ArrayExpression", "elements": list(elements)}


def prop(key: str, value: dict) -> dict:
    return {
        "type": "Property",
        "key": ident(key),
        "value": value,
        "kind": "init",
        "computed": False,
        "method": False,
        "shorthand": False,
    }


def obj(*properties: dict) -> dict:
    return {"type": "ObjectExpression", "properties": list(properties)}


def func_decl(name: str, params: list[str], *body: dict) -> dict:
    return {
        "type": "FunctionDeclaration",
        "id": ident(name),
        "params": [ident(p) for p in params],
        "body": {"type": "BlockStatement", "body": list(body)},
        "generator": False,
        "async": False,
    }


def func_expr(params: list[str], *body: dict, name: str | None = None) -> dict:
    return {
        "type": "FunctionExpression",
        "id": ident(name) if name is not None else None,
        "params": [ident(p) for p in params],
        "body": {"type": "BlockStatement", "body": list(body)},
        "generator": False,
        "async": False,
    }


def arrow(params: list[str], body: dict | list[dict]) -> dict:
    if isinstance(body, list):
        body = {"type": "BlockStatement", "body": body}
    return {
        "type": "ArrowFunctionExpression",
        "id": None,
        "params": [ident(p) for p in params],
        "body": body,
        "expression": body["type"] != "BlockStatement",
        "generator": False,
        "async": False,
    }


def declare(kind: str, name: str, init: dict | None = None) -> dict:
    return {
        "type": "VariableDeclaration",
        "kind": kind,
        "declarations": [{"type": "VariableDeclarator", "id": ident(name), "init": init}],
    }


def let(name: str, init: dict | None = None) -> dict:
    return declare("let", name, init)


def const(name: str, init: dict) -> dict:
    return declare("const", name, init)


def expr_stmt(expression: dict) -> dict:
    return {"type": "ExpressionStatement", "expression": expression}


def ret(argument: dict | None = None) -> dict:
    return {"type": "ReturnStatement", "argument": argument}


def block(*body: dict) -> dict:
    return {"type": "BlockStatement", "body": list(body)}


def for_stmt(init: dict | None, test: dict | None, step: dict | None, body: dict) -> dict:
    return {"type": "ForStatement", "init": init, "test": test, "update": step, "body": body}


def log(*args: dict) -> dict:
    """console.log(args...) as a statement."""
    return expr_stmt(call(member(ident("console"), "log"), *args))


# --- Running generated code ---


def load_generated(source: str, name: str = "jslower_generated") -> types.ModuleType:
    """Execute generated source as a module without running its entry point."""
    module = types.ModuleType(name)
    # dataclasses resolves string annotations through sys.modules
    sys.modules[name] = module
    try:
        exec(compile(source, f"<{name}>", "exec"), module.__dict__)
    finally:
        del sys.modules[name]
    return module


def run_js(tree: dict) -> str:
    """Lower tree, run its entry point in-process, and return stdout."""
    module = load_generated(transpile(tree))
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        module.main()
    return buf.getvalue()


def main_body(source: str) -> list[str]:
    """Non-blank lines of the generated entry point, dedented one level."""
    lines = source.split("\n")
    start = lines.index("def main() -> None:") + 1
    body: list[str] = []
    for line in lines[start:]:
        if line and not line.startswith("    "):
            break
        if line:
            body.append(line[4:])
    return body


def lowered(*stmts: dict) -> list[str]:
    return main_body(transpile(program(*stmts)))


@pytest.fixture
def script(tmp_path: Path):
    """Write a lowered program to disk and return a runner for it."""

    def run(tree: dict) -> subprocess.CompletedProcess[str]:
        path = tmp_path / "program.py"
        path.write_text(transpile(tree), encoding="utf-8")
        return subprocess.run(
            [sys.executable, str(path)],
            capture_output=True,
            text=True,
            timeout=60,
        )

    return run
