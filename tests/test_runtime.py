"""Interpreter behavior that program files cannot observe directly."""

import io
import sys

from treelox.ast import ExprStmt, ReturnStmt
from treelox.callables import LoxInstance, NativeFunction
from treelox.errors import (
    AssertionFailure,
    DivisionByZero,
    HostFault,
    NameNotFound,
    RecursionLimitExceeded,
)
from treelox.limits import interpreter_frames
from treelox.parse import Parser
from treelox.runtime import Interpreter
from treelox.session import Outcome
from treelox.tokens import scan
from treelox.values import NIL, VNumber, VString


def _boom(interpreter, args):
    return int("not a number")


def test_state_is_restored_after_a_failure(lox):
    assert lox.run("fun f() { { var a = 1; return missing; } }\nf();") is Outcome.RUNTIME_ERROR
    interp = lox.interpreter
    assert interp.scope is interp.globals
    assert interp.call_stack == []
    assert interp.trace == []


def test_globals_survive_a_failed_statement(lox):
    lox.run("var a = 1;")
    assert lox.run("a = 2; print missing;") is Outcome.RUNTIME_ERROR
    assert lox.run("print a;") is Outcome.OK
    assert lox.lines() == ["2"]


def test_snapshot_is_taken_where_the_error_was_raised(lox):
    lox.run("fun f(x) { var y = x + 1; return y / 0; }\nf(1);")
    (err,) = lox.reporter.runtime_errors
    assert isinstance(err, DivisionByZero)
    assert err.line == 1
    snap = err.snapshot
    assert [type(s) for s in snap.trace] == [ExprStmt, ReturnStmt]
    assert [c.to_string() for c in snap.call_stack] == ["<fn f>"]
    assert snap.environment.lookup("x") == VNumber(1.0)
    assert snap.environment.lookup("y") == VNumber(2.0)


def test_runtime_error_report(lox):
    lox.run("fun f(x) { var y = x + 1; return y / 0; }\nf(1);")
    text = lox.reporter.text()
    assert "[RUNTIME ERROR]\n" in text
    assert "[line 2] f(1);\n" in text
    assert "[line 1] return y / 0;\n" in text
    assert "Call stack:\n  <fn f>\n" in text
    assert "Environment:\n" in text
    assert "  y = 2\n" in text
    assert "<native fn" not in text
    assert text.endswith("Division by zero.\n[line 1]\n")


def test_assertion_report_header(lox):
    lox.run("assert(1 > 2);")
    (err,) = lox.reporter.runtime_errors
    assert isinstance(err, AssertionFailure)
    assert err.line == 1
    assert "[ASSERTION ERROR]" in lox.reporter.text()


def test_host_faults_are_wrapped(lox):
    lox.interpreter.globals.declare("boom", NativeFunction("boom", 0, _boom))
    assert lox.run("print 1;\nboom();") is Outcome.RUNTIME_ERROR
    (err,) = lox.reporter.runtime_errors
    assert isinstance(err, HostFault)
    assert isinstance(err.error, ValueError)
    assert err.msg.startswith("ValueError:")
    assert err.line == 2
    assert isinstance(err.statement, ExprStmt)
    assert err.snapshot is not None
    assert "[FATAL]" in lox.reporter.text()
    assert lox.lines() == ["1"]


def test_assert_raises_does_not_swallow_host_faults(lox):
    lox.interpreter.globals.declare("boom", NativeFunction("boom", 0, _boom))
    assert lox.run("assert_raises(boom);") is Outcome.RUNTIME_ERROR
    (err,) = lox.reporter.runtime_errors
    assert isinstance(err, HostFault)


def test_recursion_limit_is_configurable(make_lox):
    lox = make_lox(max_depth=5)
    lox.run("fun f(n) { return f(n + 1); }\nf(0);")
    (err,) = lox.reporter.runtime_errors
    assert isinstance(err, RecursionLimitExceeded)
    assert err.msg == "Maximum recursion depth of 5 exceeded."
    assert len(err.snapshot.call_stack) == 5


def test_deep_recursion_below_the_limit(make_lox):
    lox = make_lox(max_depth=500)
    lox.run("fun count(n) { if (n == 0) return 0; return 1 + count(n - 1); }\nprint count(450);")
    assert lox.lines() == ["450"]


def test_construction_counts_toward_call_depth(make_lox):
    lox = make_lox(max_depth=1)
    assert lox.run("class A { init() {} }\nA();") is Outcome.RUNTIME_ERROR
    (err,) = lox.reporter.runtime_errors
    assert isinstance(err, RecursionLimitExceeded)


def test_this_resolves_to_innermost_bound_method(lox):
    lox.run(
        """
class A {
  var tag = "a";
  name() { return this.tag; }
}
class B {
  var tag = "b";
  both(other) { return other.name() + this.tag; }
}
print B().both(A());
"""
    )
    assert lox.lines() == ["ab"]


def test_this_outside_a_method(lox):
    lox.run("fun f() { return this; }\nf();")
    (err,) = lox.reporter.runtime_errors
    assert isinstance(err, NameNotFound)
    assert err.msg == "Can't use 'this' outside of a method."


def test_instances_get_bound_copies_of_methods(lox):
    lox.run("class A { var v = 1; m() { return this.v; } }\nvar a = A();\nvar b = A();")
    a = lox.interpreter.globals.lookup("a")
    b = lox.interpreter.globals.lookup("b")
    assert isinstance(a, LoxInstance)
    assert a.fields.find("v") is not b.fields.find("v")
    assert a.fields.lookup("m").instance is a
    assert b.fields.lookup("m").instance is b


def test_interpreter_runs_statements_directly():
    out = io.StringIO()
    interp = Interpreter(out)
    stmts = Parser(scan('var s = "x"; s = s + "y"; print s;')).parse()
    assert interp.interpret(stmts) is None
    assert out.getvalue() == "xy\n"
    assert interp.globals.lookup("s") == VString("xy")


def test_interpret_returns_the_error_without_a_reporter():
    interp = Interpreter(io.StringIO())
    err = interp.interpret(Parser(scan("var a; a();")).parse())
    assert err is not None
    assert err.msg == "Can only call functions and classes, not nil."
    assert interp.globals.lookup("a") is NIL


def test_deeply_nested_body_below_the_call_limit(make_lox):
    lox = make_lox(max_depth=200)
    body = "{" * 40 + "if (n == 0) return 0; return 1 + f(n - 1);" + "}" * 40
    assert lox.run("fun f(n) {" + body + "}\nprint f(150);\nprint f(199);") is Outcome.OK
    assert lox.lines() == ["150", "199"]
    assert lox.reporter.runtime_errors == []


def test_body_at_the_nesting_limit_reaches_the_call_limit(make_lox):
    lox = make_lox(max_depth=200)
    body = "{" * 120 + "if (n == 0) return 0; return 1 + f(n - 1);" + "}" * 120
    assert lox.run("fun f(n) {" + body + "}\nprint f(199);") is Outcome.OK
    assert lox.lines() == ["199"]


def test_recursion_limit_covers_the_call_ceiling():
    Interpreter(io.StringIO(), max_depth=300)
    assert sys.getrecursionlimit() >= interpreter_frames(300)


def test_top_level_functions_capture_a_copy_of_globals(lox):
    lox.run("var x = 1;\nfun f() { return x; }\nvar y = 2;")
    interp = lox.interpreter
    f = interp.globals.lookup("f")
    assert f.closure is not interp.globals
    assert f.closure.find("x") is interp.globals.find("x")
    assert f.closure.find("f") is interp.globals.find("f")
    assert not f.closure.is_defined("y")


def test_class_methods_live_in_the_field_table(lox):
    lox.run("class A { var v = 1; init() {} m() { return 1; } }")
    klass = lox.interpreter.globals.lookup("A")
    assert klass.fields.names() == ["v", "m"]
    assert klass.initializer.name == "init"
    assert not hasattr(klass, "methods")
