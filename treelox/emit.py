"""Lox emitter: converts AST back into Lox source text.

Covers every node type in `treelox/ast.py`. Grouping nodes survive parsing,
so parentheses come back exactly where the source had them.
"""

from __future__ import annotations

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
from .values import format_number


def to_source(stmts: list[Stmt] | Stmt) -> str:
    """Render statements back into Lox source text."""
    if isinstance(stmts, Stmt):
        stmts = [stmts]
    return _Emitter().emit_program(stmts)


def expr_to_source(expr: Expr) -> str:
    return _Emitter().render_expr(expr)


class _Emitter:
    _INDENT: str = "  "

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent_level: int = 0

    # ── Public ──────────────────────────────────────────────

    def emit_program(self, stmts: list[Stmt]) -> str:
        self._lines = []
        self._indent_level = 0
        for stmt in stmts:
            self._emit_stmt(stmt)
        text = "\n".join(self._lines)
        if text == "":
            return ""
        if not text.endswith("\n"):
            text += "\n"
        return text

    # ── Lines / Blocks ──────────────────────────────────────

    def _emit_line(self, line: str) -> None:
        self._lines.append(self._INDENT * self._indent_level + line)

    def _emit_stmt_block(self, stmts: list[Stmt]) -> None:
        self._indent_level += 1
        for stmt in stmts:
            self._emit_stmt(stmt)
        self._indent_level -= 1

    def _emit_body(self, header: str, stmts: list[Stmt]) -> None:
        self._emit_line(header + " {")
        self._emit_stmt_block(stmts)
        self._emit_line("}")

    # ── Statements ──────────────────────────────────────────

    def _emit_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, ExprStmt):
            self._emit_line(self.render_expr(stmt.expression) + ";")
            return
        if isinstance(stmt, PrintStmt):
            self._emit_line("print " + self.render_expr(stmt.expression) + ";")
            return
        if isinstance(stmt, VarStmt):
            self._emit_line(self._render_var(stmt))
            return
        if isinstance(stmt, BlockStmt):
            self._emit_line("{")
            self._emit_stmt_block(stmt.statements)
            self._emit_line("}")
            return
        if isinstance(stmt, IfStmt):
            self._emit_line("if (" + self.render_expr(stmt.condition) + ")")
            self._emit_nested(stmt.then_branch)
            if not (isinstance(stmt.else_branch, BlockStmt) and not stmt.else_branch.statements):
                self._emit_line("else")
                self._emit_nested(stmt.else_branch)
            return
        if isinstance(stmt, WhileStmt):
            self._emit_line("while (" + self.render_expr(stmt.condition) + ")")
            self._emit_nested(stmt.body)
            return
        if isinstance(stmt, FunctionStmt):
            self._emit_body("fun " + self._render_signature(stmt), stmt.body)
            return
        if isinstance(stmt, ClassStmt):
            self._emit_class(stmt)
            return
        if isinstance(stmt, ReturnStmt):
            if isinstance(stmt.value, Empty):
                self._emit_line("return;")
            else:
                self._emit_line("return " + self.render_expr(stmt.value) + ";")
            return
        raise TypeError("unhandled stmt type")

    def _emit_nested(self, stmt: Stmt) -> None:
        if isinstance(stmt, BlockStmt):
            self._emit_stmt(stmt)
            return
        self._indent_level += 1
        self._emit_stmt(stmt)
        self._indent_level -= 1

    def _emit_class(self, stmt: ClassStmt) -> None:
        self._emit_line("class " + stmt.name.lexeme + " {")
        self._indent_level += 1
        for field in stmt.fields:
            self._emit_line(self._render_var(field))
        for method in stmt.methods:
            self._emit_body(self._render_signature(method), method.body)
        self._indent_level -= 1
        self._emit_line("}")

    def _render_var(self, stmt: VarStmt) -> str:
        if isinstance(stmt.initializer, Empty):
            return "var " + stmt.name.lexeme + ";"
        return "var " + stmt.name.lexeme + " = " + self.render_expr(stmt.initializer) + ";"

    def _render_signature(self, stmt: FunctionStmt) -> str:
        params = ", ".join(p.lexeme for p in stmt.params)
        return stmt.name.lexeme + "(" + params + ")"

    # ── Expressions ─────────────────────────────────────────

    def render_expr(self, expr: Expr) -> str:
        if isinstance(expr, Empty):
            return ""
        if isinstance(expr, Literal):
            return self._render_literal(expr.value)
        if isinstance(expr, Var):
            return expr.name.lexeme
        if isinstance(expr, Grouping):
            return "(" + self.render_expr(expr.expression) + ")"
        if isinstance(expr, Unary):
            return expr.op.lexeme + self.render_expr(expr.operand)
        if isinstance(expr, (Binary, Logical)):
            return (
                self.render_expr(expr.left)
                + " "
                + expr.op.lexeme
                + " "
                + self.render_expr(expr.right)
            )
        if isinstance(expr, Assign):
            return self.render_expr(expr.target) + " = " + self.render_expr(expr.value)
        if isinstance(expr, Call):
            args = ", ".join(self.render_expr(a) for a in expr.arguments)
            return self.render_expr(expr.callee) + "(" + args + ")"
        if isinstance(expr, Property):
            return self.render_expr(expr.object) + "." + expr.name.lexeme
        if isinstance(expr, This):
            return "this"
        if isinstance(expr, Lambda):
            return self._render_lambda(expr)
        raise TypeError("unhandled expr type")

    def _render_literal(self, value: float | str | bool | None) -> str:
        if value is None:
            return "nil"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return '"' + value + '"'
        return format_number(value)

    def _render_lambda(self, expr: Lambda) -> str:
        params = ", ".join(p.lexeme for p in expr.params)
        inner = _Emitter()
        inner._indent_level = self._indent_level + 1
        for stmt in expr.body:
            inner._emit_stmt(stmt)
        if not inner._lines:
            return "fun (" + params + ") {}"
        body = "\n".join(inner._lines)
        return "fun (" + params + ") {\n" + body + "\n" + self._INDENT * self._indent_level + "}"
