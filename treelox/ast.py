"""Lox AST: parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""


@dataclass
class Empty(Expr):
    """Missing expression, e.g. `var a;`. Evaluates to nil."""


@dataclass
class Literal(Expr):
    """Number, string, true, false or nil."""

    value: float | str | bool | None


@dataclass
class Var(Expr):
    """Variable reference."""

    name: Token


@dataclass
class Grouping(Expr):
    """( expr )."""

    expression: Expr


@dataclass
class Unary(Expr):
    """! expr, - expr."""

    op: Token
    operand: Expr


@dataclass
class Binary(Expr):
    """Arithmetic, comparison and equality operators."""

    op: Token
    left: Expr
    right: Expr


@dataclass
class Logical(Expr):
    """Short-circuiting `and` / `or`."""

    op: Token
    left: Expr
    right: Expr


@dataclass
class Assign(Expr):
    """target = value. target is a Var or a Property."""

    target: Var | Property
    value: Expr


@dataclass
class Call(Expr):
    """callee(arguments). paren is the closing ')' for error lines."""

    callee: Expr
    paren: Token
    arguments: list[Expr]


@dataclass
class Property(Expr):
    """object.name."""

    object: Expr
    name: Token


@dataclass
class This(Expr):
    """this."""

    keyword: Token


@dataclass
class Lambda(Expr):
    """fun (params) { body } in expression position."""

    keyword: Token
    params: list[Token]
    body: list[Stmt]


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements. indicator is used only for diagnostics."""

    indicator: Token


@dataclass
class ExprStmt(Stmt):
    """Bare expression as statement."""

    expression: Expr


@dataclass
class PrintStmt(Stmt):
    """print expr;"""

    expression: Expr


@dataclass
class VarStmt(Stmt):
    """var name = initializer;"""

    name: Token
    initializer: Expr


@dataclass
class BlockStmt(Stmt):
    """{ statements }"""

    statements: list[Stmt]


@dataclass
class IfStmt(Stmt):
    """if (condition) then_branch else else_branch"""

    condition: Expr
    then_branch: Stmt
    else_branch: Stmt


@dataclass
class WhileStmt(Stmt):
    """while (condition) body. Also the lowered form of `for`."""

    condition: Expr
    body: Stmt


@dataclass
class FunctionStmt(Stmt):
    """fun name(params) { body }, or a method inside a class body."""

    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass
class ClassStmt(Stmt):
    """class name { var fields; methods }"""

    name: Token
    fields: list[VarStmt]
    methods: list[FunctionStmt]


@dataclass
class ReturnStmt(Stmt):
    """return value?;"""

    value: Expr


# ============================================================
# TREE SHAPE
# ============================================================


Node = Expr | Stmt


def children(node: Node) -> list[Node]:
    """Direct subnodes of node, in source order."""
    if isinstance(node, (Grouping, ExprStmt, PrintStmt)):
        return [node.expression]
    if isinstance(node, Unary):
        return [node.operand]
    if isinstance(node, (Binary, Logical)):
        return [node.left, node.right]
    if isinstance(node, Assign):
        return [node.target, node.value]
    if isinstance(node, Call):
        return [node.callee, *node.arguments]
    if isinstance(node, Property):
        return [node.object]
    if isinstance(node, (Lambda, FunctionStmt)):
        return list(node.body)
    if isinstance(node, VarStmt):
        return [node.initializer]
    if isinstance(node, BlockStmt):
        return list(node.statements)
    if isinstance(node, IfStmt):
        return [node.condition, node.then_branch, node.else_branch]
    if isinstance(node, WhileStmt):
        return [node.condition, node.body]
    if isinstance(node, ClassStmt):
        return [*node.fields, *node.methods]
    if isinstance(node, ReturnStmt):
        return [node.value]
    return []


def height(node: Node) -> int:
    """Nodes on the longest path from node down to a leaf.

    Iterative, so it is safe on trees too deep to walk recursively.
    """
    deepest = 0
    pending: list[tuple[Node, int]] = [(node, 1)]
    while pending:
        current, depth = pending.pop()
        if depth > deepest:
            deepest = depth
        for child in children(current):
            pending.append((child, depth + 1))
    return deepest
