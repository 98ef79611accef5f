"""Lox runtime: tree-walking evaluation of parsed statements.

The Interpreter owns all mutable evaluation state (current scope, call stack,
execution trace). Nothing is module-global, so several interpreters can run
side by side and each one can be driven statement by statement from tests.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

from . import natives
from .ast import (
    Assign,
    Binary,
    BlockStmt,
    Call,
    ClassStmt,
    Empty,
    Expr,
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
    Stmt,
    This,
    Unary,
    Var,
    VarStmt,
    WhileStmt,
)
from .callables import INIT, BoundMethod, Fieldable, LoxCallable, LoxClass, LoxFunction, LoxInstance
from .environment import Scope
from .errors import (
    ArityMismatch,
    DebugSnapshot,
    DivisionByZero,
    HostFault,
    LoxError,
    LoxRuntimeError,
    NameNotFound,
    NotAnObject,
    NotCallable,
    RecursionLimitExceeded,
    Return,
    TypeMismatch,
)
from .limits import MAX_CALL_DEPTH, ensure_recursion_limit, interpreter_frames
from .tokens import (
    TK_BANG,
    TK_BANG_EQUAL,
    TK_EQUAL_EQUAL,
    TK_GREATER,
    TK_GREATER_EQUAL,
    TK_LESS,
    TK_LESS_EQUAL,
    TK_MINUS,
    TK_OR,
    TK_PLUS,
    TK_SLASH,
    TK_STAR,
    Token,
)
from .values import NIL, Value, VNumber, VString, from_bool, from_literal, stringify, to_bool, to_number, values_equal

if TYPE_CHECKING:
    from .report import Reporter

logger = logging.getLogger(__name__)


class Interpreter:
    scope: Scope
    call_stack: list[LoxCallable]
    trace: list[Stmt]

    def __init__(
        self,
        out: TextIO | None = None,
        *,
        max_depth: int = MAX_CALL_DEPTH,
        reporter: Reporter | None = None,
    ):
        self.out: TextIO = out if out is not None else sys.stdout
        self.max_depth = max_depth
        self.reporter = reporter
        self.globals = Scope()
        natives.install(self.globals)
        self.scope = self.globals
        self.call_stack = []
        self.trace = []
        ensure_recursion_limit(interpreter_frames(max_depth))

    # ---- Running -----------------------------------------------------------

    def interpret(self, statements: list[Stmt]) -> LoxError | None:
        """Execute top-level statements until one fails.

        The failure is reported and returned; the interpreter is left ready
        to run further statements against the same globals.
        """
        for stmt in statements:
            try:
                self.execute(stmt)
            except (LoxRuntimeError, HostFault) as e:
                self._recover()
                self._report(e)
                return e
            except Return as r:
                fault = HostFault(stmt, r)
                fault.snapshot = DebugSnapshot.capture(self)
                self._recover()
                self._report(fault)
                return fault
        return None

    def _recover(self) -> None:
        self.scope = self.globals
        self.call_stack.clear()
        self.trace.clear()

    def _report(self, error: LoxError) -> None:
        logger.debug("statement failed: %s", error)
        if self.reporter is not None:
            self.reporter.runtime_error(error)

    # ---- Statements --------------------------------------------------------

    def execute(self, stmt: Stmt) -> None:
        self.trace.append(stmt)
        try:
            self._exec(stmt)
        except Return:
            raise
        except LoxError as e:
            if e.snapshot is None:
                e.snapshot = DebugSnapshot.capture(self)
            raise
        except Exception as e:
            fault = HostFault(stmt, e)
            fault.snapshot = DebugSnapshot.capture(self)
            logger.debug("host fault at line %d: %r", stmt.indicator.line, e)
            raise fault from e
        finally:
            self.trace.pop()

    def execute_block(self, stmts: list[Stmt], scope: Scope) -> None:
        previous = self.scope
        self.scope = scope
        try:
            for st in stmts:
                self.execute(st)
        finally:
            self.scope = previous

    def _exec(self, st: Stmt) -> None:
        if isinstance(st, ExprStmt):
            self.evaluate(st.expression)
            return

        if isinstance(st, PrintStmt):
            value = self.evaluate(st.expression)
            self.out.write(stringify(value) + "\n")
            return

        if isinstance(st, VarStmt):
            value = self.evaluate(st.initializer)
            self.scope.declare(st.name.lexeme, value)
            return

        if isinstance(st, BlockStmt):
            self.execute_block(st.statements, Scope(self.scope))
            return

        if isinstance(st, IfStmt):
            if to_bool(self.evaluate(st.condition)):
                self.execute(st.then_branch)
            else:
                self.execute(st.else_branch)
            return

        if isinstance(st, WhileStmt):
            while to_bool(self.evaluate(st.condition)):
                self.execute(st.body)
            return

        if isinstance(st, FunctionStmt):
            # Declared first so the function can see itself.
            self.scope.declare(st.name.lexeme, NIL)
            fn = LoxFunction(st.name.lexeme, st.params, st.body, self._capture())
            self.scope.assign(st.name, fn)
            return

        if isinstance(st, ClassStmt):
            self._exec_class(st)
            return

        if isinstance(st, ReturnStmt):
            raise Return(self.evaluate(st.value))

        raise TypeError(f"unhandled statement type {type(st).__name__}")

    def _exec_class(self, st: ClassStmt) -> None:
        # Declared first so methods can construct their own class.
        self.scope.declare(st.name.lexeme, NIL)
        class_scope = Scope(self._capture())
        fields = Scope(noun="property")
        previous = self.scope
        self.scope = class_scope
        try:
            for field in st.fields:
                fields.declare(field.name.lexeme, self.evaluate(field.initializer))
        finally:
            self.scope = previous

        initializer: LoxFunction | None = None
        for decl in st.methods:
            fn = LoxFunction(decl.name.lexeme, decl.params, decl.body, class_scope)
            if decl.name.lexeme == INIT:
                initializer = fn
            else:
                fields.declare(fn.name, fn)

        klass = LoxClass(st.name.lexeme, class_scope, fields, initializer)
        logger.debug("class %s: fields=%s", klass.name, fields.names())
        self.scope.assign(st.name, klass)

    def _capture(self) -> Scope:
        """Scope a new function or class closes over.

        The copy shares every cell visible now, at any level including the
        globals. Names declared afterwards in the defining scope stay
        invisible to it.
        """
        return self.scope.copy_by_reference()

    # ---- Calls -------------------------------------------------------------

    def invoke(
        self, callee: LoxCallable, arguments: list[Value], token: Token | None = None
    ) -> Value:
        """Call protocol shared by every invocation, internal ones included."""
        if not callee.accepts(len(arguments)):
            raise ArityMismatch(
                f"Expected {callee.arity_string()} arguments but got {len(arguments)}.",
                token,
            )
        if len(self.call_stack) >= self.max_depth:
            raise RecursionLimitExceeded(
                f"Maximum recursion depth of {self.max_depth} exceeded.", token
            )
        self.call_stack.append(callee)
        logger.debug("call %s depth=%d", callee.to_string(), len(self.call_stack))
        try:
            return callee.call(self, arguments)
        except LoxRuntimeError as e:
            if e.token is None and token is not None:
                e.token = token
                e.line = token.line
            raise
        finally:
            self.call_stack.pop()

    def resolve_this(self, keyword: Token) -> LoxInstance:
        for callee in reversed(self.call_stack):
            if isinstance(callee, BoundMethod):
                return callee.instance
        raise NameNotFound("Can't use 'this' outside of a method.", keyword)

    # ---- Expressions -------------------------------------------------------

    def evaluate(self, expr: Expr) -> Value:
        if isinstance(expr, Literal):
            return from_literal(expr.value)

        if isinstance(expr, Var):
            return self.scope.get(expr.name)

        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)

        if isinstance(expr, Unary):
            operand = self.evaluate(expr.operand)
            if expr.op.type == TK_BANG:
                return from_bool(not to_bool(operand))
            return VNumber(-self._num(expr.op, operand))

        if isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self._eval_binary(expr.op, left, right)

        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.op.type == TK_OR:
                if to_bool(left):
                    return left
            elif not to_bool(left):
                return left
            return self.evaluate(expr.right)

        if isinstance(expr, Assign):
            return self._eval_assign(expr)

        if isinstance(expr, Call):
            callee = self.evaluate(expr.callee)
            args = [self.evaluate(a) for a in expr.arguments]
            if not isinstance(callee, LoxCallable):
                raise NotCallable(
                    f"Can only call functions and classes, not {callee.type_name()}.",
                    expr.paren,
                )
            return self.invoke(callee, args, expr.paren)

        if isinstance(expr, Property):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, Fieldable):
                raise NotAnObject(
                    f"Only instances have properties, not {obj.type_name()}.", expr.name
                )
            return obj.get_field(expr.name)

        if isinstance(expr, This):
            return self.resolve_this(expr.keyword)

        if isinstance(expr, Lambda):
            return LoxFunction("lambda", expr.params, expr.body, self._capture())

        if isinstance(expr, Empty):
            return NIL

        raise TypeError(f"unhandled expression type {type(expr).__name__}")

    def _eval_assign(self, expr: Assign) -> Value:
        target = expr.target
        if isinstance(target, Var):
            value = self.evaluate(expr.value)
            self.scope.assign(target.name, value)
            return value
        obj = self.evaluate(target.object)
        if not isinstance(obj, Fieldable):
            raise NotAnObject(
                f"Only instances have fields, not {obj.type_name()}.", target.name
            )
        value = self.evaluate(expr.value)
        obj.set_field(target.name, value)
        return value

    def _num(self, op: Token, v: Value) -> float:
        try:
            return to_number(v)
        except TypeMismatch as e:
            raise TypeMismatch(f"Operator '{op.lexeme}': {e.msg}", op) from None

    def _eval_binary(self, op: Token, left: Value, right: Value) -> Value:
        kind = op.type
        if kind == TK_EQUAL_EQUAL:
            return from_bool(values_equal(left, right))
        if kind == TK_BANG_EQUAL:
            return from_bool(not values_equal(left, right))
        if kind == TK_PLUS and isinstance(left, VString) and isinstance(right, VString):
            return VString(left.value + right.value)

        a = self._num(op, left)
        b = self._num(op, right)
        if kind == TK_PLUS:
            return VNumber(a + b)
        if kind == TK_MINUS:
            return VNumber(a - b)
        if kind == TK_STAR:
            return VNumber(a * b)
        if kind == TK_SLASH:
            if b == 0:
                raise DivisionByZero("Division by zero.", op)
            return VNumber(a / b)
        if kind == TK_GREATER:
            return from_bool(a > b)
        if kind == TK_GREATER_EQUAL:
            return from_bool(a >= b)
        if kind == TK_LESS:
            return from_bool(a < b)
        if kind == TK_LESS_EQUAL:
            return from_bool(a <= b)
        raise TypeError(f"unhandled binary operator {op.lexeme!r}")
