"""Python backend: jslower AST → Python source.

The generated module is the runtime prelude followed by an entry point that
holds the lowered top-level statements:

    def main() -> None:
        ...


    if __name__ == "__main__":
        run_program(main)

Two rewrites bridge the gap between the languages:

- Python scopes by function, not by block, so block-scoped bindings that would
  collide inside one generated function get fresh Python names (middleend.scope).
- Python has no statement-bodied lambdas, so function and arrow expressions
  become nested `def`s emitted just before the statement that contains them.
  Every expression is lowered to text before the line holding it is emitted,
  which is what puts the hoisted `def` first.

Any construct outside the supported subset raises LoweringError; the partial
output is dropped with the backend instance.
"""

from __future__ import annotations

from ..ast import (
    ArrayExpr,
    AssignExpr,
    BinaryExpr,
    BlockStmt,
    BoolLit,
    CallExpr,
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
    node_kind,
)
from ..errors import LoweringError
from ..middleend.scope import FunctionContext, Scope, safe_name
from ..runtime import prelude_source
from ..runtime.prelude import (
    BINARY_METHODS,
    BUILTIN_MEMBERS,
    BUILTIN_OBJECTS,
    COMPOUND_ASSIGN_METHODS,
    GLOBAL_CONSTANTS,
    UNARY_FUNCTIONS,
    UPDATE_METHODS,
)
from .util import Emitter, number_literal, string_literal

_ONE = number_literal(1.0)


def _unwrap_parens(expr: Expr) -> Expr:
    while isinstance(expr, ParenExpr):
        expr = expr.expr
    return expr


def _reject_special_function(node_type: str, is_generator: bool, is_async: bool) -> None:
    if is_generator:
        raise LoweringError("unsupported generator function", node_type)
    if is_async:
        raise LoweringError("unsupported async function", node_type)


class PythonBackend(Emitter):
    """Emit a standalone Python program from a jslower Program."""

    def __init__(self) -> None:
        super().__init__()
        self.scope = Scope(FunctionContext(is_entry=True), root=True)

    def emit(self, program: Program) -> str:
        self.indent = 0
        self.lines = []
        self.scope = Scope(FunctionContext(is_entry=True), root=True)
        self.line("def main() -> None:")
        self.indent += 1
        self._emit_body(program.body)
        self.indent -= 1
        self.line()
        self.line()
        self.line('if __name__ == "__main__":')
        self.indent += 1
        self.line("run_program(main)")
        self.indent -= 1
        return prelude_source().rstrip("\n") + "\n\n\n" + self.output() + "\n"

    # ============================================================
    # STATEMENTS
    # ============================================================

    def _emit_body(self, stmts: list[Stmt]) -> None:
        start = len(self.lines)
        self._emit_stmts(stmts)
        if len(self.lines) == start:
            self.line("pass")

    def _emit_stmts(self, stmts: list[Stmt]) -> None:
        """Declare, then emit function declarations first so forward calls resolve."""
        for stmt in stmts:
            self._declare(stmt)
        for stmt in stmts:
            if isinstance(stmt, FunctionDecl):
                self._emit_stmt(stmt)
        for stmt in stmts:
            if not isinstance(stmt, FunctionDecl):
                self._emit_stmt(stmt)

    def _declare(self, stmt: Stmt) -> None:
        match stmt:
            case FunctionDecl(name=name):
                self.scope.declare(name, "function")
            case VarDecl(kind="const" | "let", declarators=declarators):
                for d in declarators:
                    if isinstance(d.target, Identifier):
                        self.scope.declare(d.target.name, stmt.kind)

    def _emit_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case FunctionDecl():
                _reject_special_function("FunctionDeclaration", stmt.is_generator, stmt.is_async)
                binding = self.scope.lookup_local(stmt.name)
                fn_scope = self.scope.child_function()
                self._emit_def(binding.py_name, fn_scope, stmt.params, stmt.body)
            case VarDecl():
                self._emit_var_decl(stmt)
            case ForStmt():
                self._emit_for(stmt)
            case BlockStmt(body=body):
                saved = self.scope
                self.scope = saved.child_block()
                self._emit_body(body)
                self.scope = saved
            case ExprStmt(expr=expr):
                self._emit_expr_stmt(expr)
            case ReturnStmt(value=value):
                if self.scope.function.is_entry:
                    raise LoweringError("return outside of function", "ReturnStatement")
                if value is None:
                    self.line("return UNDEFINED")
                else:
                    self.line(f"return {self._expr(value)}")
            case EmptyStmt():
                pass
            case _:
                kind = node_kind(stmt)
                raise LoweringError(f"unsupported statement: {kind}", kind)

    def _emit_def(
        self,
        py_name: str,
        scope: Scope,
        params: list[Expr],
        body: list[Stmt] | Expr,
    ) -> None:
        saved = self.scope
        self.scope = scope
        parts: list[str] = []
        for param in params:
            if not isinstance(param, Identifier):
                kind = node_kind(param)
                raise LoweringError(f"unsupported parameter: {kind}", kind)
            binding = scope.declare(param.name, "param")
            parts.append(f"{binding.py_name}: JsValue = UNDEFINED")
        # Surplus arguments are accepted and ignored.
        parts.append(f"*{scope.function.allocate('_extra')}: JsValue")
        self.line(f"def {py_name}({', '.join(parts)}) -> JsValue:")
        self.indent += 1
        if isinstance(body, list):
            self._emit_stmts(body)
            self.line("return UNDEFINED")
        else:
            value = self._expr(body)
            self.line(f"return {value}")
        self.indent -= 1
        self.scope = saved

    def _emit_var_decl(self, stmt: VarDecl) -> None:
        if stmt.kind not in ("const", "let"):
            raise LoweringError(f"unsupported declaration kind: {stmt.kind}", "VariableDeclaration")
        annotation = "Final" if stmt.kind == "const" else "JsValue"
        for d in stmt.declarators:
            if not isinstance(d.target, Identifier):
                kind = node_kind(d.target)
                raise LoweringError(f"unsupported binding pattern: {kind}", kind)
            if d.init is not None:
                value = self._expr(d.init)
            elif stmt.kind == "const":
                raise LoweringError(
                    f"missing initializer in const declaration '{d.target.name}'",
                    "VariableDeclaration",
                )
            else:
                value = "UNDEFINED"
            binding = self.scope.lookup_local(d.target.name)
            self.line(f"{binding.py_name}: {annotation} = {value}")

    def _emit_for(self, stmt: ForStmt) -> None:
        saved = self.scope
        self.scope = saved.child_block()
        if isinstance(stmt.init, VarDecl):
            self._declare(stmt.init)
            self._emit_var_decl(stmt.init)
        elif stmt.init is not None:
            self._emit_expr_stmt(stmt.init)
        self.line("while True:")
        self.indent += 1
        start = len(self.lines)
        if stmt.test is not None:
            test = self._expr(stmt.test)
            self.line(f"if {test}.falsy():")
            self.indent += 1
            self.line("break")
            self.indent -= 1
        self._emit_stmt(stmt.body)
        if stmt.update is not None:
            self._emit_expr_stmt(stmt.update)
        if len(self.lines) == start:
            self.line("pass")
        self.indent -= 1
        self.scope = saved

    def _emit_expr_stmt(self, expr: Expr) -> None:
        expr = _unwrap_parens(expr)
        match expr:
            case AssignExpr():
                self.line(self._assign(expr, as_expr=False))
            case UpdateExpr():
                name, method = self._update_target(expr)
                self.line(f"{name} = {name}.{method}({_ONE})")
            case _:
                self.line(self._expr(expr))

    # ============================================================
    # EXPRESSIONS
    # ============================================================

    def _expr(self, expr: Expr) -> str:
        match expr:
            case Identifier(name=name):
                return self._identifier(name)
            case NumberLit(value=value):
                return number_literal(value)
            case StringLit(value=value):
                return f"String({string_literal(value)})"
            case BoolLit(value=value):
                return "TRUE" if value else "FALSE"
            case NullLit():
                return "NULL"
            case BinaryExpr(op=op, left=left, right=right):
                method = BINARY_METHODS.get(op)
                if method is None:
                    raise LoweringError(f"unsupported binary operator: {op}", "BinaryExpression")
                return f"{self._expr(left)}.{method}({self._expr(right)})"
            case UnaryExpr(op=op, argument=argument):
                func = UNARY_FUNCTIONS.get(op)
                if func is None:
                    raise LoweringError(f"unsupported unary operator: {op}", "UnaryExpression")
                return f"{func}({self._expr(argument)})"
            case UpdateExpr(prefix=prefix):
                name, method = self._update_target(expr)
                updated = f"{name} := {name}.{method}({_ONE})"
                if prefix:
                    return f"({updated})"
                old = self.scope.new_temp()
                return f"(({old} := {name}), ({updated}))[0]"
            case AssignExpr():
                return self._assign(expr, as_expr=True)
            case MemberExpr():
                return self._member(expr)
            case CallExpr(callee=callee, args=args):
                return self._call(callee, args)
            case ArrayExpr(elements=elements):
                items: list[str] = []
                for element in elements:
                    if element is None:
                        raise LoweringError("unsupported array hole", "ArrayExpression")
                    items.append(self._expr(element))
                return f"JsArray([{', '.join(items)}])"
            case ObjectExpr(properties=properties):
                entries: list[str] = []
                for prop in properties:
                    if isinstance(prop, Unsupported):
                        raise LoweringError(
                            f"unsupported object member: {prop.node_type}", prop.node_type
                        )
                    key = string_literal(self._property_key(prop))
                    entries.append(f"{key}: {self._expr(prop.value)}")
                return "JsObject.from_entries({" + ", ".join(entries) + "})"
            case ParenExpr(expr=inner):
                return f"({self._expr(inner)})"
            case FunctionExpr():
                return f"JsValue.function({self._function_expr(expr)})"
            case _:
                kind = node_kind(expr)
                raise LoweringError(f"unsupported expression: {kind}", kind)

    def _identifier(self, name: str) -> str:
        binding = self.scope.lookup(name)
        if binding is not None:
            if binding.kind == "function":
                return f"JsValue.function({binding.py_name})"
            return binding.py_name
        if name in GLOBAL_CONSTANTS:
            return GLOBAL_CONSTANTS[name]
        if name in BUILTIN_OBJECTS:
            raise LoweringError(f"built-in object '{name}' used as a value", "Identifier")
        raise LoweringError(f"unresolved identifier '{name}'", "Identifier")

    def _update_target(self, node: UpdateExpr) -> tuple[str, str]:
        """Python name and runtime method for ++/--; identifiers only."""
        method = UPDATE_METHODS.get(node.op)
        if method is None:
            raise LoweringError(f"unsupported update operator: {node.op}", "UpdateExpression")
        target = _unwrap_parens(node.argument)
        if not isinstance(target, Identifier):
            kind = node_kind(target)
            raise LoweringError(f"unsupported update target: {kind}", kind)
        return self.scope.resolve_write(target.name).py_name, method

    def _assign(self, node: AssignExpr, as_expr: bool) -> str:
        value = self._expr(node.value)
        target = node.target
        if isinstance(target, MemberExpr):
            return self._assign_member(node.op, target, value, as_expr)
        if not isinstance(target, Identifier):
            kind = node_kind(target)
            raise LoweringError(f"unsupported assignment target: {kind}", kind)
        name = self.scope.resolve_write(target.name).py_name
        if node.op != "=":
            method = COMPOUND_ASSIGN_METHODS.get(node.op)
            if method is None:
                raise LoweringError(
                    f"unsupported assignment operator: {node.op}", "AssignmentExpression"
                )
            value = f"{name}.{method}({value})"
        if as_expr:
            return f"({name} := {value})"
        return f"{name} = {value}"

    def _assign_member(self, op: str, target: MemberExpr, value: str, as_expr: bool) -> str:
        obj = self._expr(target.obj)
        key = self._member_key(target)
        if op == "+=" and not target.computed:
            # Read and write must hit the same object; evaluate it once.
            if obj.isidentifier():
                holder = obj
            else:
                holder = self.scope.new_temp()
                obj = f"({holder} := {obj})"
            value = f"{holder}.get_prop({key}).add({value})"
        elif op != "=":
            raise LoweringError(
                f"unsupported compound assignment to member: {op}", "AssignmentExpression"
            )
        if as_expr:
            return f"assign_prop({obj}, {key}, {value})"
        return f"{obj}.set_prop({key}, {value})"

    def _member(self, node: MemberExpr) -> str:
        obj = node.obj
        if (
            not node.computed
            and isinstance(obj, Identifier)
            and isinstance(node.prop, Identifier)
            and obj.name in BUILTIN_OBJECTS
            and self.scope.lookup(obj.name) is None
        ):
            dotted = f"{obj.name}.{node.prop.name}"
            accessor = BUILTIN_MEMBERS.get(dotted)
            if accessor is None:
                raise LoweringError(f"unsupported built-in: {dotted}", "MemberExpression")
            return accessor
        return f"{self._expr(obj)}.get_prop({self._member_key(node)})"

    def _member_key(self, node: MemberExpr) -> str:
        if node.computed:
            return self._expr(node.prop)
        assert isinstance(node.prop, Identifier)
        return f"String({string_literal(node.prop.name)})"

    def _property_key(self, prop: Property) -> str:
        if prop.kind != "init":
            raise LoweringError(f"unsupported object accessor: {prop.kind}", "Property")
        if prop.method:
            raise LoweringError("unsupported object method", "Property")
        if prop.computed:
            raise LoweringError("unsupported computed property key", "Property")
        match prop.key:
            case Identifier(name=name):
                return name
            case StringLit(value=value):
                return value
            case _:
                kind = node_kind(prop.key)
                raise LoweringError(f"unsupported property key: {kind}", kind)

    def _call(self, callee: Expr, args: list[Expr]) -> str:
        target = _unwrap_parens(callee)
        func: str | None = None
        if isinstance(target, Identifier):
            binding = self.scope.lookup(target.name)
            func = binding.py_name if binding is not None else self._identifier(target.name)
        elif isinstance(target, FunctionExpr):
            func = self._function_expr(target)
        if func is not None:
            return f"{func}({', '.join(self._expr(a) for a in args)})"
        func = self._expr(callee)
        return f"{func}.call([{', '.join(self._expr(a) for a in args)}])"

    def _function_expr(self, node: FunctionExpr) -> str:
        """Emit a function expression as a nested def; return its Python name."""
        kind = "ArrowFunctionExpression" if node.is_arrow else "FunctionExpression"
        _reject_special_function(kind, node.is_generator, node.is_async)
        if node.name is not None:
            base = safe_name(node.name)
        else:
            base = "_arrow" if node.is_arrow else "_function"
        py_name = self.scope.new_temp(base)
        fn_scope = self.scope.child_function()
        if node.name is not None:
            # The name is visible inside the function only.
            fn_scope.alias(node.name, py_name, "function", self.scope.function)
            fn_scope = fn_scope.function_body()
        self._emit_def(py_name, fn_scope, node.params, node.body)
        return py_name


def lower_program(program: Program) -> str:
    """Lower a loaded program to the source of a standalone Python module."""
    return PythonBackend().emit(program)
