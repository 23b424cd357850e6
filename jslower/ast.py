"""jslower AST — the supported JavaScript subset as typed nodes.

Built from ESTree input by `frontend.estree`. Node kinds outside the subset are
kept as `Unsupported` so that loading always succeeds and lowering can report
the offending construct by its ESTree type name. Lowering never mutates nodes.
"""

from __future__ import annotations

from dataclasses import dataclass


# ============================================================
# BASES
# ============================================================


@dataclass
class Node:
    """Base for all nodes."""


@dataclass
class Expr(Node):
    """Base for all expressions."""


@dataclass
class Stmt(Node):
    """Base for all statements."""


@dataclass
class Unsupported(Expr, Stmt):
    """Any ESTree node outside the subset; node_type is the ESTree `type`."""

    node_type: str


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Identifier(Expr):
    name: str


@dataclass
class NumberLit(Expr):
    value: float


@dataclass
class StringLit(Expr):
    value: str


@dataclass
class BoolLit(Expr):
    value: bool


@dataclass
class NullLit(Expr):
    pass


@dataclass
class BinaryExpr(Expr):
    """left op right."""

    op: str
    left: Expr
    right: Expr


@dataclass
class UnaryExpr(Expr):
    """op argument (prefix only in ESTree)."""

    op: str
    argument: Expr


@dataclass
class UpdateExpr(Expr):
    """++x, x++, --x, x--."""

    op: str
    prefix: bool
    argument: Expr


@dataclass
class AssignExpr(Expr):
    """target op value, op is `=` or a compound operator like `+=`."""

    op: str
    target: Expr
    value: Expr


@dataclass
class MemberExpr(Expr):
    """obj.name (computed=False, prop is Identifier) or obj[expr] (computed=True)."""

    obj: Expr
    prop: Expr
    computed: bool


@dataclass
class CallExpr(Expr):
    callee: Expr
    args: list[Expr]


@dataclass
class ArrayExpr(Expr):
    """[a, b]; a hole is None."""

    elements: list[Expr | None]


@dataclass
class Property(Node):
    """Object literal entry. kind is init/get/set."""

    key: Expr
    value: Expr
    computed: bool
    kind: str
    method: bool


@dataclass
class ObjectExpr(Expr):
    """{k: v}; spread entries are Unsupported."""

    properties: list[Property | Unsupported]


@dataclass
class ParenExpr(Expr):
    """(expr), present only when the front end preserves parentheses."""

    expr: Expr


@dataclass
class FunctionExpr(Expr):
    """function (params) { body } or (params) => body.

    For an arrow with an expression body, body is an Expr.
    """

    name: str | None
    params: list[Expr]
    body: list[Stmt] | Expr
    is_arrow: bool
    is_generator: bool
    is_async: bool


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class FunctionDecl(Stmt):
    """function name(params) { body }. params are Identifier or Unsupported patterns."""

    name: str
    params: list[Expr]
    body: list[Stmt]
    is_generator: bool
    is_async: bool


@dataclass
class Declarator(Node):
    """One `target = init` inside a declaration."""

    target: Expr
    init: Expr | None


@dataclass
class VarDecl(Stmt):
    """kind is const, let, var, using."""

    kind: str
    declarators: list[Declarator]


@dataclass
class ForStmt(Stmt):
    """for (init; test; update) body."""

    init: VarDecl | Expr | None
    test: Expr | None
    update: Expr | None
    body: Stmt


@dataclass
class BlockStmt(Stmt):
    body: list[Stmt]


@dataclass
class ExprStmt(Stmt):
    expr: Expr


@dataclass
class ReturnStmt(Stmt):
    value: Expr | None


@dataclass
class EmptyStmt(Stmt):
    pass


@dataclass
class Program(Node):
    """Root: the top-level statement sequence."""

    body: list[Stmt]


# ESTree `type` of each node class, for diagnostics
_ESTREE_TYPES: dict[type[Node], str] = {
    Identifier: "Identifier",
    NumberLit: "Literal",
    StringLit: "Literal",
    BoolLit: "Literal",
    NullLit: "Literal",
    BinaryExpr: "BinaryExpression",
    UnaryExpr: "UnaryExpression",
    UpdateExpr: "UpdateExpression",
    AssignExpr: "AssignmentExpression",
    MemberExpr: "MemberExpression",
    CallExpr: "CallExpression",
    ArrayExpr: "ArrayExpression",
    Property: "Property",
    ObjectExpr: "ObjectExpression",
    ParenExpr: "ParenthesizedExpression",
    FunctionDecl: "FunctionDeclaration",
    Declarator: "VariableDeclarator",
    VarDecl: "VariableDeclaration",
    ForStmt: "ForStatement",
    BlockStmt: "BlockStatement",
    ExprStmt: "ExpressionStatement",
    ReturnStmt: "ReturnStatement",
    EmptyStmt: "EmptyStatement",
    Program: "Program",
}


def node_kind(node: Node) -> str:
    """ESTree type name of a node, for diagnostics."""
    if isinstance(node, Unsupported):
        return node.node_type
    if isinstance(node, FunctionExpr):
        return "ArrowFunctionExpression" if node.is_arrow else "FunctionExpression"
    return _ESTREE_TYPES[type(node)]
