"""Parser tests: tree shapes, desugaring and error recovery."""

from treelox import parse
from treelox.ast import (
    Assign,
    Binary,
    BlockStmt,
    Call,
    ClassStmt,
    Empty,
    ExprStmt,
    FunctionStmt,
    Grouping,
    IfStmt,
    Lambda,
    Literal,
    Logical,
    PrintStmt,
    Property,
    ReturnStmt,
    Var,
    VarStmt,
    WhileStmt,
    height,
)
from treelox.limits import MAX_NESTING
from treelox.parse import Parser
from treelox.report import CollectingReporter
from treelox.tokens import scan


def parse_expr(source: str):
    stmts = parse(source + ";")
    assert len(stmts) == 1
    assert isinstance(stmts[0], ExprStmt)
    return stmts[0].expression


def parser_for(source: str) -> Parser:
    return Parser(scan(source))


def test_factor_binds_tighter_than_term():
    expr = parse_expr("1 + 2 * 3")
    assert isinstance(expr, Binary)
    assert expr.op.lexeme == "+"
    assert isinstance(expr.right, Binary)
    assert expr.right.op.lexeme == "*"


def test_binary_operators_are_left_associative():
    expr = parse_expr("1 - 2 - 3")
    assert isinstance(expr.left, Binary)
    assert expr.right == Literal(3.0)


def test_grouping_is_kept():
    expr = parse_expr("(1 + 2) * 3")
    assert isinstance(expr.left, Grouping)


def test_comparison_below_equality():
    expr = parse_expr("1 < 2 == true")
    assert expr.op.lexeme == "=="
    assert expr.left.op.lexeme == "<"


def test_logical_or_binds_looser_than_and():
    expr = parse_expr("a or b and c")
    assert isinstance(expr, Logical)
    assert expr.op.lexeme == "or"
    assert isinstance(expr.right, Logical)
    assert expr.right.op.lexeme == "and"


def test_assignment_is_right_associative():
    expr = parse_expr("a = b = 1")
    assert isinstance(expr, Assign)
    assert expr.target.name.lexeme == "a"
    assert isinstance(expr.value, Assign)
    assert expr.value.target.name.lexeme == "b"


def test_property_assignment():
    expr = parse_expr("a.b = 1")
    assert isinstance(expr, Assign)
    assert isinstance(expr.target, Property)
    assert expr.target.name.lexeme == "b"


def test_call_and_property_chain():
    expr = parse_expr("a.b(c).d")
    assert isinstance(expr, Property)
    assert expr.name.lexeme == "d"
    call = expr.object
    assert isinstance(call, Call)
    assert [a.name.lexeme for a in call.arguments] == ["c"]
    inner = call.callee
    assert isinstance(inner, Property)
    assert inner.name.lexeme == "b"
    assert isinstance(inner.object, Var)
    assert inner.object.name.lexeme == "a"


def test_unary_nests():
    expr = parse_expr("!!x")
    assert expr.op.lexeme == "!"
    assert expr.operand.op.lexeme == "!"


def test_lambda_expression():
    expr = parse_expr("fun (a, b) { return a; }")
    assert isinstance(expr, Lambda)
    assert [p.lexeme for p in expr.params] == ["a", "b"]
    assert isinstance(expr.body[0], ReturnStmt)


def test_var_without_initializer():
    (stmt,) = parse("var x;")
    assert isinstance(stmt, VarStmt)
    assert stmt.initializer == Empty()


def test_if_without_else_gets_empty_block():
    (stmt,) = parse("if (x) print 1;")
    assert isinstance(stmt, IfStmt)
    assert isinstance(stmt.then_branch, PrintStmt)
    assert isinstance(stmt.else_branch, BlockStmt)
    assert stmt.else_branch.statements == []


def test_for_desugars_to_while():
    (stmt,) = parse("for (var i = 0; i < 3; i = i + 1) print i;")
    assert isinstance(stmt, BlockStmt)
    init, loop = stmt.statements
    assert isinstance(init, VarStmt)
    assert isinstance(loop, WhileStmt)
    assert isinstance(loop.condition, Binary)
    body, increment = loop.body.statements
    assert isinstance(body, PrintStmt)
    assert isinstance(increment, ExprStmt)
    assert isinstance(increment.expression, Assign)


def test_empty_for_clauses():
    (stmt,) = parse("for (;;) print 1;")
    (loop,) = stmt.statements
    assert isinstance(loop, WhileStmt)
    assert loop.condition == Literal(True)
    assert len(loop.body.statements) == 1


def test_function_declaration():
    (stmt,) = parse("fun add(a, b) { return a + b; }")
    assert isinstance(stmt, FunctionStmt)
    assert stmt.name.lexeme == "add"
    assert [p.lexeme for p in stmt.params] == ["a", "b"]
    assert len(stmt.body) == 1


def test_class_declaration():
    (stmt,) = parse("class A { var x = 1; m(a) { return a; } init() {} }")
    assert isinstance(stmt, ClassStmt)
    assert [f.name.lexeme for f in stmt.fields] == ["x"]
    assert [m.name.lexeme for m in stmt.methods] == ["m", "init"]


def test_statements_carry_indicator_lines():
    stmts = parse("var a = 1;\n\nprint a;")
    assert [s.indicator.line for s in stmts] == [1, 3]


def test_synchronize_costs_one_error_per_statement():
    parser = parser_for("print ; var x = 1; print x;")
    stmts = parser.parse()
    assert [e.msg for e in parser.errors] == ["Expect expression."]
    assert [type(s) for s in stmts] == [VarStmt, PrintStmt]


def test_each_bad_statement_is_reported():
    parser = parser_for("print ;\nvar = 1;\nprint 1;")
    stmts = parser.parse()
    assert [e.msg for e in parser.errors] == [
        "Expect expression.",
        "Expect variable name.",
    ]
    assert [e.line for e in parser.errors] == [1, 2]
    assert [type(s) for s in stmts] == [PrintStmt]


def test_invalid_assignment_target_does_not_stop_parsing():
    parser = parser_for("1 = 2; print 3;")
    stmts = parser.parse()
    assert [e.msg for e in parser.errors] == ["Invalid assignment target."]
    assert len(stmts) == 2


def test_return_at_top_level():
    parser = parser_for("return 1;")
    parser.parse()
    assert [e.msg for e in parser.errors] == ["Can't return from top-level code."]


def test_return_inside_function_and_lambda():
    parser = parser_for("fun f() { return 1; } var g = fun () { return; };")
    parser.parse()
    assert parser.errors == []


def test_too_many_arguments_is_reported_once():
    args = ", ".join("1" for _ in range(256))
    parser = parser_for("f(" + args + ");")
    stmts = parser.parse()
    assert [e.msg for e in parser.errors] == ["Can't have more than 255 arguments."]
    assert len(stmts) == 1


def test_errors_are_reported_with_location():
    reporter = CollectingReporter()
    parse("var 1;", reporter)
    assert reporter.text() == "[line 1] Error at '1': Expect variable name.\n"


def test_parsing_is_deterministic():
    source = "class A { var f = 1; m() { return this.f; } }\nfor (var i = 0; i < 2; i = i + 1) print A().m();"
    assert parse(source) == parse(source)


def test_deep_grouping_is_a_parse_error():
    parser = parser_for("print " + "(" * 1500 + "1" + ")" * 1500 + ";\nprint 2;")
    stmts = parser.parse()
    assert [e.msg for e in parser.errors] == ["Too much nesting."]
    assert [type(s) for s in stmts] == [PrintStmt]


def test_deep_unary_is_a_parse_error():
    parser = parser_for("print " + "-" * 1500 + "1;")
    parser.parse()
    assert [e.msg for e in parser.errors] == ["Too much nesting."]


def test_long_operator_chain_is_a_parse_error():
    parser = parser_for("print " + " + ".join("1" for _ in range(300)) + ";")
    stmts = parser.parse()
    assert [e.msg for e in parser.errors] == ["Too much nesting."]
    assert parser.errors[0].where == " at 'print'"
    assert stmts == []


def test_nesting_below_the_limit_parses():
    source = "{" * 60 + "print " + "(" * 60 + "1" + ")" * 60 + ";" + "}" * 60
    parser = parser_for(source)
    stmts = parser.parse()
    assert parser.errors == []
    assert height(stmts[0]) == 60 + 1 + 60 + 1
    assert height(stmts[0]) <= MAX_NESTING


def test_nesting_counter_unwinds_after_errors():
    parser = parser_for("print " + "(" * 200 + "1;\nprint (((1)));")
    stmts = parser.parse()
    assert [e.msg for e in parser.errors] == ["Too much nesting."]
    assert [type(s) for s in stmts] == [PrintStmt]
    assert parser._nesting == 0


def test_height_counts_nodes_on_the_longest_path():
    (stmt,) = parse("print 1 + (2 * 3);")
    assert height(stmt) == 5
    (fn,) = parse("fun f() { { return 1; } }")
    assert height(fn) == 4
