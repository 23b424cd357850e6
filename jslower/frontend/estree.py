"""ESTree loader: JSON/dict AST from an external front end → jslower AST.

The front end (acorn, esprima, oxc, ...) is responsible for syntax validity and
scope analysis; this module only reads node shape. Positions (`start`, `end`,
`loc`, `range`) are ignored.
"""

from __future__ import annotations

import json
from typing import Callable

from ..ast import (
    ArrayExpr,
    AssignExpr,
    BinaryExpr,
    BlockStmt,
    BoolLit,
    CallExpr,
    Declarator,
    EmptyStmt,
    Expr,
    ExprStmt,
    ForStmt,
    FunctionDecl,
    FunctionExpr,
    Identifier,
    MemberExpr,
    NullLit,
    NumberLit,
    ObjectExpr,
    ParenExpr,
    Program,
    Property,
    ReturnStmt,
    Stmt,
    StringLit,
    UnaryExpr,
    Unsupported,
    UpdateExpr,
    VarDecl,
)

ESTreeNode = dict[str, object]


class LoadError(Exception):
    """Input is not a well-formed ESTree document."""

    def __init__(self, msg: str, node_type: str | None = None):
        if node_type is None:
            super().__init__(msg)
        else:
            super().__init__(f"{msg} in {node_type}")
        self.msg = msg
        self.node_type = node_type


def load_program(data: ESTreeNode | str | bytes) -> Program:
    """Load an ESTree Program from a dict or from JSON text."""
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise LoadError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise LoadError("AST root must be an object")
    if _type(data) != "Program":
        raise LoadError(f"AST root must be a Program, got {_type(data)}")
    return Program([_stmt(s) for s in _list(data, "body")])


# ============================================================
# FIELD ACCESS
# ============================================================


def _type(node: object) -> str:
    if not isinstance(node, dict) or not isinstance(node.get("type"), str):
        raise LoadError("node without a type")
    return node["type"]


def _node(parent: ESTreeNode, key: str) -> ESTreeNode:
    value = parent.get(key)
    if not isinstance(value, dict):
        raise LoadError(f"missing field '{key}'", _type(parent))
    return value


def _opt_node(parent: ESTreeNode, key: str) -> ESTreeNode | None:
    value = parent.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise LoadError(f"field '{key}' is not a node", _type(parent))
    return value


def _list(parent: ESTreeNode, key: str) -> list[object]:
    value = parent.get(key)
    if not isinstance(value, list):
        raise LoadError(f"missing list field '{key}'", _type(parent))
    return value


def _str(parent: ESTreeNode, key: str) -> str:
    value = parent.get(key)
    if not isinstance(value, str):
        raise LoadError(f"missing string field '{key}'", _type(parent))
    return value


def _flag(parent: ESTreeNode, key: str) -> bool:
    return bool(parent.get(key, False))


# ============================================================
# STATEMENTS
# ============================================================


def _stmt(node: object) -> Stmt:
    kind = _type(node)
    loader = _STMT_LOADERS.get(kind)
    if loader is None:
        return Unsupported(kind)
    return loader(node)


def _function_decl(node: ESTreeNode) -> Stmt:
    ident = _opt_node(node, "id")
    if ident is None:
        # export default function () {} is the only legal anonymous declaration
        return Unsupported("AnonymousFunctionDeclaration")
    return FunctionDecl(
        name=_identifier_name(ident),
        params=[_pattern(p) for p in _list(node, "params")],
        body=_function_body(node),
        is_generator=_flag(node, "generator"),
        is_async=_flag(node, "async"),
    )


def _function_body(node: ESTreeNode) -> list[Stmt]:
    body = _node(node, "body")
    if _type(body) not in ("BlockStatement", "FunctionBody"):
        raise LoadError("function body must be a block", _type(node))
    return [_stmt(s) for s in _list(body, "body")]


def _var_decl(node: ESTreeNode) -> VarDecl:
    declarators = []
    for d in _list(node, "declarations"):
        if _type(d) != "VariableDeclarator":
            raise LoadError("expected VariableDeclarator", _type(node))
        init = _opt_node(d, "init")
        declarators.append(
            Declarator(
                target=_pattern(_node(d, "id")),
                init=_expr(init) if init is not None else None,
            )
        )
    return VarDecl(kind=_str(node, "kind"), declarators=declarators)


def _for_stmt(node: ESTreeNode) -> ForStmt:
    init_node = _opt_node(node, "init")
    init: VarDecl | Expr | None = None
    if init_node is not None:
        if _type(init_node) == "VariableDeclaration":
            init = _var_decl(init_node)
        else:
            init = _expr(init_node)
    test = _opt_node(node, "test")
    update = _opt_node(node, "update")
    return ForStmt(
        init=init,
        test=_expr(test) if test is not None else None,
        update=_expr(update) if update is not None else None,
        body=_stmt(_node(node, "body")),
    )


def _block(node: ESTreeNode) -> BlockStmt:
    return BlockStmt([_stmt(s) for s in _list(node, "body")])


def _expr_stmt(node: ESTreeNode) -> ExprStmt:
    return ExprStmt(_expr(_node(node, "expression")))


def _return_stmt(node: ESTreeNode) -> ReturnStmt:
    arg = _opt_node(node, "argument")
    return ReturnStmt(_expr(arg) if arg is not None else None)


_STMT_LOADERS: dict[str, Callable[[ESTreeNode], Stmt]] = {
    "FunctionDeclaration": _function_decl,
    "VariableDeclaration": _var_decl,
    "ForStatement": _for_stmt,
    "BlockStatement": _block,
    "ExpressionStatement": _expr_stmt,
    "Directive": _expr_stmt,
    "ReturnStatement": _return_stmt,
    "EmptyStatement": lambda node: EmptyStmt(),
}


# ============================================================
# EXPRESSIONS
# ============================================================


def _expr(node: object) -> Expr:
    kind = _type(node)
    loader = _EXPR_LOADERS.get(kind)
    if loader is None:
        return Unsupported(kind)
    return loader(node)


def _identifier_name(node: ESTreeNode) -> str:
    if _type(node) != "Identifier":
        raise LoadError("expected Identifier", _type(node))
    return _str(node, "name")


def _pattern(node: ESTreeNode) -> Expr:
    """Binding position: only plain identifiers are representable."""
    if _type(node) == "Identifier":
        return Identifier(_str(node, "name"))
    return Unsupported(_type(node))


def _literal(node: ESTreeNode) -> Expr:
    if "regex" in node:
        return Unsupported("RegExpLiteral")
    if "bigint" in node:
        return Unsupported("BigIntLiteral")
    value = node.get("value")
    if value is None:
        return NullLit()
    if isinstance(value, bool):
        return BoolLit(value)
    if isinstance(value, (int, float)):
        return NumberLit(float(value))
    if isinstance(value, str):
        return StringLit(value)
    raise LoadError("unrecognized literal value", "Literal")


def _binary(node: ESTreeNode) -> BinaryExpr:
    return BinaryExpr(
        op=_str(node, "operator"),
        left=_expr(_node(node, "left")),
        right=_expr(_node(node, "right")),
    )


def _unary(node: ESTreeNode) -> UnaryExpr:
    return UnaryExpr(op=_str(node, "operator"), argument=_expr(_node(node, "argument")))


def _update(node: ESTreeNode) -> UpdateExpr:
    return UpdateExpr(
        op=_str(node, "operator"),
        prefix=_flag(node, "prefix"),
        argument=_expr(_node(node, "argument")),
    )


def _assign(node: ESTreeNode) -> AssignExpr:
    left = _node(node, "left")
    if _type(left) in ("Identifier", "MemberExpression"):
        target = _expr(left)
    else:
        target = Unsupported(_type(left))
    return AssignExpr(op=_str(node, "operator"), target=target, value=_expr(_node(node, "right")))


def _member(node: ESTreeNode) -> MemberExpr:
    computed = _flag(node, "computed")
    prop = _node(node, "property")
    if not computed and _type(prop) != "Identifier":
        # obj.#private
        return Unsupported(_type(prop))
    return MemberExpr(
        obj=_expr(_node(node, "object")),
        prop=_expr(prop) if computed else Identifier(_str(prop, "name")),
        computed=computed,
    )


def _call(node: ESTreeNode) -> Expr:
    if _flag(node, "optional"):
        return Unsupported("OptionalCallExpression")
    return CallExpr(
        callee=_expr(_node(node, "callee")),
        args=[_expr(a) for a in _list(node, "arguments")],
    )


def _array(node: ESTreeNode) -> ArrayExpr:
    elements: list[Expr | None] = []
    for e in _list(node, "elements"):
        elements.append(_expr(e) if e is not None else None)
    return ArrayExpr(elements)


def _object(node: ESTreeNode) -> ObjectExpr:
    properties: list[Property | Unsupported] = []
    for p in _list(node, "properties"):
        if _type(p) != "Property":
            properties.append(Unsupported(_type(p)))
            continue
        properties.append(
            Property(
                key=_expr(_node(p, "key")),
                value=_expr(_node(p, "value")),
                computed=_flag(p, "computed"),
                kind=str(p.get("kind", "init")),
                method=_flag(p, "method"),
            )
        )
    return ObjectExpr(properties)


def _paren(node: ESTreeNode) -> ParenExpr:
    return ParenExpr(_expr(_node(node, "expression")))


def _function_expr(node: ESTreeNode) -> FunctionExpr:
    is_arrow = _type(node) == "ArrowFunctionExpression"
    ident = _opt_node(node, "id")
    body_node = _node(node, "body")
    if _type(body_node) in ("BlockStatement", "FunctionBody"):
        body: list[Stmt] | Expr = [_stmt(s) for s in _list(body_node, "body")]
    else:
        body = _expr(body_node)
    return FunctionExpr(
        name=_identifier_name(ident) if ident is not None else None,
        params=[_pattern(p) for p in _list(node, "params")],
        body=body,
        is_arrow=is_arrow,
        is_generator=_flag(node, "generator"),
        is_async=_flag(node, "async"),
    )


_EXPR_LOADERS: dict[str, Callable[[ESTreeNode], Expr]] = {
    "Identifier": lambda node: Identifier(_str(node, "name")),
    "Literal": _literal,
    "BinaryExpression": _binary,
    "UnaryExpression": _unary,
    "UpdateExpression": _update,
    "AssignmentExpression": _assign,
    "MemberExpression": _member,
    "CallExpression": _call,
    "ArrayExpression": _array,
    "ObjectExpression": _object,
    "ParenthesizedExpression": _paren,
    "FunctionExpression": _function_expr,
    "ArrowFunctionExpression": _function_expr,
}
