"""Expression lowering: generated text for each construct, and rejected constructs."""

import re

import pytest

from conftest import (
    array,
    arrow,
    assign,
    binary,
    call,
    const,
    expr_stmt,
    func_decl,
    func_expr,
    ident,
    index,
    let,
    lit,
    log,
    lowered,
    member,
    obj,
    program,
    prop,
    ret,
    unary,
    update,
)
from jslower import LoweringError, transpile


def lowered_expr(expression: dict, *setup: dict) -> str:
    """Lowered text of a single expression statement placed after setup."""
    return lowered(*setup, expr_stmt(expression))[-1]


def test_literals() -> None:
    assert lowered_expr(lit(1)) == "Number(1.0)"
    assert lowered_expr(lit(0.5)) == "Number(0.5)"
    assert lowered_expr(lit("hi")) == 'String("hi")'
    assert lowered_expr(lit(True)) == "TRUE"
    assert lowered_expr(lit(False)) == "FALSE"
    assert lowered_expr(lit(None)) == "NULL"


def test_string_escapes() -> None:
    assert lowered_expr(lit('say "hi"\n\\')) == r'String("say \"hi\"\n\\")'
    assert lowered_expr(lit("\x00\x1b")) == r'String("\x00\x1b")'


def test_global_constants() -> None:
    assert lowered_expr(ident("undefined")) == "UNDEFINED"
    assert lowered_expr(ident("NaN")) == "Number(math.nan)"
    assert lowered_expr(ident("Infinity")) == "Number(math.inf)"


def test_binary_operators() -> None:
    x = let("x", lit(2))
    assert lowered_expr(binary("+", ident("x"), lit(1)), x) == "x.add(Number(1.0))"
    assert lowered_expr(binary("-", ident("x"), lit(1)), x) == "x.sub(Number(1.0))"
    assert lowered_expr(binary("*", ident("x"), lit(1)), x) == "x.mult(Number(1.0))"
    assert lowered_expr(binary("/", ident("x"), lit(1)), x) == "x.divide(Number(1.0))"
    assert lowered_expr(binary("<", ident("x"), lit(1)), x) == "x.less(Number(1.0))"


def test_nested_binary_keeps_evaluation_order() -> None:
    tree = binary("*", binary("+", lit(1), lit(2)), lit(3))
    assert lowered_expr(tree) == "Number(1.0).add(Number(2.0)).mult(Number(3.0))"
    tree = binary("-", lit(1), binary("-", lit(2), lit(3)))
    assert lowered_expr(tree) == "Number(1.0).sub(Number(2.0).sub(Number(3.0)))"


def test_unary_operators() -> None:
    assert lowered_expr(unary("-", lit(1))) == "negate(Number(1.0))"
    assert lowered_expr(unary("+", lit("4"))) == 'plus(String("4"))'


def test_update_in_expression_position() -> None:
    x = let("x", lit(0))
    assert lowered(x, let("y", update("++", ident("x"), prefix=True)))[-1] == (
        "y: JsValue = (x := x.add(Number(1.0)))"
    )
    assert lowered(x, let("y", update("--", ident("x"))))[-1] == (
        "y: JsValue = ((_tmp := x), (x := x.sub(Number(1.0))))[0]"
    )


def test_update_temporaries_are_distinct() -> None:
    body = lowered(
        let("x", lit(0)),
        let("a", update("++", ident("x"))),
        let("b", update("++", ident("x"))),
    )
    assert "(_tmp := x)" in body[1]
    assert "(_tmp_1 := x)" in body[2]


def test_assignment_in_expression_position() -> None:
    x = let("x")
    assert lowered(x, let("y", assign(ident("x"), lit(3))))[-1] == "y: JsValue = (x := Number(3.0))"
    assert lowered(x, let("y", assign(ident("x"), lit(3), "*=")))[-1] == (
        "y: JsValue = (x := x.mult(Number(3.0)))"
    )
    o = const("o", obj())
    assert lowered(o, let("y", assign(member(ident("o"), "k"), lit(1))))[-1] == (
        'y: JsValue = assign_prop(o, String("k"), Number(1.0))'
    )


def test_member_reads() -> None:
    o = const("o", obj(prop("a", lit(1))))
    assert lowered_expr(member(ident("o"), "a"), o) == 'o.get_prop(String("a"))'
    assert lowered_expr(index(ident("o"), lit("a")), o) == 'o.get_prop(String("a"))'
    assert lowered_expr(index(ident("o"), lit(0)), o) == "o.get_prop(Number(0.0))"


def test_builtin_members() -> None:
    assert lowered_expr(member(ident("Math"), "PI")) == "js_globals().math.PI"
    assert lowered_expr(call(member(ident("Math"), "sqrt"), lit(4))) == (
        "js_globals().math.sqrt.call([Number(4.0)])"
    )
    assert lowered(log(lit(1), lit("a")))[-1] == (
        'js_globals().console.log.call([Number(1.0), String("a")])'
    )
    assert lowered_expr(index(member(ident("process"), "argv"), lit(2))) == (
        "js_globals().process.argv.get_prop(Number(2.0))"
    )


def test_shadowed_builtin_object_is_ordinary_binding() -> None:
    console = const("console", obj(prop("log", lit(1))))
    assert lowered(console, log(lit(2)))[-1] == (
        'console.get_prop(String("log")).call([Number(2.0)])'
    )


def test_array_and_object_literals() -> None:
    assert lowered_expr(array(lit(1), lit("a"))) == 'JsArray([Number(1.0), String("a")])'
    assert lowered_expr(array()) == "JsArray([])"
    string_key = {
        "type": "Property",
        "key": lit("b c"),
        "value": lit(True),
        "kind": "init",
        "computed": False,
        "method": False,
        "shorthand": False,
    }
    assert lowered_expr(obj(prop("a", lit(1)), string_key)) == (
        'JsObject.from_entries({"a": Number(1.0), "b c": TRUE})'
    )


def test_parenthesized_expression_passthrough() -> None:
    paren = {"type": "ParenthesizedExpression", "expression": binary("+", lit(1), lit(2))}
    assert lowered_expr(binary("*", paren, lit(3))) == (
        "(Number(1.0).add(Number(2.0))).mult(Number(3.0))"
    )


def test_calls() -> None:
    f = func_decl("f", ["a"], ret(ident("a")))
    assert lowered_expr(call(ident("f"), lit(1), lit(2)), f) == "f(Number(1.0), Number(2.0))"
    o = const("o", obj())
    assert lowered_expr(call(member(ident("o"), "m"), lit(1)), o) == (
        'o.get_prop(String("m")).call([Number(1.0)])'
    )


def test_function_declaration_as_value_is_wrapped() -> None:
    f = func_decl("f", [])
    assert lowered(f, let("g", ident("f")))[-1] == "g: JsValue = JsValue.function(f)"


def test_arrow_is_hoisted_before_statement() -> None:
    body = lowered(const("double", arrow(["n"], binary("*", ident("n"), lit(2)))))
    assert body == [
        "def _arrow(n: JsValue = UNDEFINED, *_extra: JsValue) -> JsValue:",
        "    return n.mult(Number(2.0))",
        "double: Final = JsValue.function(_arrow)",
    ]


def test_immediately_invoked_function_is_called_directly() -> None:
    body = lowered(expr_stmt(call(func_expr([], log(lit("hi"))))))
    assert body == [
        "def _function(*_extra: JsValue) -> JsValue:",
        '    js_globals().console.log.call([String("hi")])',
        "    return UNDEFINED",
        "_function()",
    ]


def test_named_function_expression_sees_its_own_name() -> None:
    fn = func_expr(["n"], ret(ident("again")), name="again")
    body = lowered(const("f", fn))
    assert body[0] == "def again(n: JsValue = UNDEFINED, *_extra: JsValue) -> JsValue:"
    assert body[1] == "    return JsValue.function(again)"
    assert body[-1] == "f: Final = JsValue.function(again)"


def test_closure_reads_outer_binding() -> None:
    body = lowered(
        let("base", lit(10)),
        const("add", arrow(["x"], binary("+", ident("x"), ident("base")))),
    )
    assert "    return x.add(base)" in body


@pytest.mark.parametrize(
    "statements,message",
    [
        ([expr_stmt(binary("===", lit(1), lit(1)))], "unsupported binary operator: ==="),
        ([expr_stmt(binary("%", lit(1), lit(1)))], "unsupported binary operator: %"),
        ([expr_stmt(unary("!", lit(1)))], "unsupported unary operator: !"),
        ([expr_stmt(unary("typeof", lit(1)))], "unsupported unary operator: typeof"),
        ([expr_stmt(ident("foo"))], "unresolved identifier 'foo'"),
        ([expr_stmt(ident("console"))], "built-in object 'console' used as a value"),
        ([log(member(ident("console"), "warn"))], "unsupported built-in: console.warn"),
        ([expr_stmt(array(lit(1), None))], "unsupported array hole"),
        (
            [const("o", obj()), expr_stmt(update("++", member(ident("o"), "n")))],
            "unsupported update target: MemberExpression",
        ),
        ([expr_stmt(update("++", lit(1)))], "unsupported update target: Literal"),
        (
            [expr_stmt(update("--", call(ident("f")), prefix=True))],
            "unsupported update target: CallExpression",
        ),
        (
            [let("x", lit(1)), expr_stmt(assign(ident("x"), lit(2), "**="))],
            "unsupported assignment operator: **=",
        ),
        (
            [const("o", obj()), expr_stmt(assign(member(ident("o"), "n"), lit(2), "-="))],
            "unsupported compound assignment to member: -=",
        ),
        (
            [const("o", obj()), expr_stmt(assign(index(ident("o"), lit(0)), lit(2), "+="))],
            "unsupported compound assignment to member: +=",
        ),
        ([const("x", lit(1)), expr_stmt(assign(ident("x"), lit(2)))], "assignment to constant 'x'"),
        (
            [func_decl("f", []), expr_stmt(assign(ident("f"), lit(2)))],
            "assignment to function declaration 'f'",
        ),
        ([expr_stmt(assign(ident("g"), lit(2)))], "assignment to undeclared identifier 'g'"),
        (
            [expr_stmt(assign({"type": "ArrayPattern", "elements": []}, lit(2)))],
            "unsupported assignment target: ArrayPattern",
        ),
        (
            [expr_stmt({"type": "TemplateLiteral", "quasis": [], "expressions": []})],
            "unsupported expression: TemplateLiteral",
        ),
        (
            [expr_stmt({"type": "Literal", "value": None, "regex": {"pattern": "a", "flags": ""}})],
            "unsupported expression: RegExpLiteral",
        ),
        (
            [log({"type": "SpreadElement", "argument": array()})],
            "unsupported expression: SpreadElement",
        ),
        (
            [expr_stmt(obj({"type": "SpreadElement", "argument": obj()}))],
            "unsupported object member: SpreadElement",
        ),
        (
            [expr_stmt(call({**arrow([], lit(1)), "async": True}))],
            "unsupported async function",
        ),
    ],
)
def test_rejected_expressions(statements: list[dict], message: str) -> None:
    with pytest.raises(LoweringError, match=re.escape(message)):
        transpile(program(*statements))


@pytest.mark.parametrize(
    "entry,message",
    [
        ({"computed": True, "key": ident("k")}, "unsupported computed property key"),
        ({"method": True, "value": func_expr([])}, "unsupported object method"),
        ({"kind": "get", "value": func_expr([])}, "unsupported object accessor: get"),
        ({"key": lit(1)}, "unsupported property key: Literal"),
    ],
)
def test_rejected_object_properties(entry: dict, message: str) -> None:
    node = {**prop("a", lit(1)), **entry}
    tree = program(const("k", lit("a")), expr_stmt(obj(node)))
    with pytest.raises(LoweringError, match=re.escape(message)):
        transpile(tree)


def test_lowering_error_carries_node_type() -> None:
    with pytest.raises(LoweringError) as exc_info:
        transpile(program(expr_stmt({"type": "ThisExpression"})))
    assert exc_info.value.node_type == "ThisExpression"
    assert exc_info.value.msg == "unsupported expression: ThisExpression"
