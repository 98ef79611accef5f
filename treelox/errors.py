"""Error taxonomy and the debug snapshot attached to runtime failures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ast import Stmt
    from .callables import LoxCallable
    from .environment import Scope
    from .runtime import Interpreter
    from .tokens import Token
    from .values import Value


# ============================================================
# Diagnostics
# ============================================================


class LoxError(Exception):
    """Base for every error the language itself can report."""

    def __init__(self, msg: str, line: int | None = None):
        if line is None:
            super().__init__(msg)
        else:
            super().__init__(f"{msg} [line {line}]")
        self.msg: str = msg
        self.line: int | None = line
        self.snapshot: DebugSnapshot | None = None


class ScanError(LoxError):
    """Bad character or unterminated string. Reported, scanning continues."""

    def __init__(self, line: int, msg: str, where: str = ""):
        super().__init__(msg, line)
        self.where: str = where


class ParseError(LoxError):
    """Unexpected token. Reported, the parser synchronizes and continues."""

    def __init__(self, token: Token, msg: str):
        super().__init__(msg, token.line)
        self.token: Token = token

    @property
    def where(self) -> str:
        if self.token.type == "EOF":
            return " at end"
        return " at '" + self.token.lexeme + "'"


class LoxRuntimeError(LoxError):
    """Fatal to the current top-level statement."""

    def __init__(self, msg: str, token: Token | None = None):
        super().__init__(msg, token.line if token is not None else None)
        self.token: Token | None = token


class NameNotFound(LoxRuntimeError):
    """Read or assignment of an undeclared variable or field."""


class TypeMismatch(LoxRuntimeError):
    """Operator applied to an operand that does not coerce."""


class ArityMismatch(LoxRuntimeError):
    """Wrong number of arguments to a callable."""


class NotCallable(LoxRuntimeError):
    """Call of a value that is not callable."""


class NotAnObject(LoxRuntimeError):
    """Property access on a value without fields."""


class RecursionLimitExceeded(LoxRuntimeError):
    """Call-stack depth ceiling hit."""


class DivisionByZero(LoxRuntimeError):
    """Division with a zero divisor."""


class AssertionFailure(LoxRuntimeError):
    """Raised by the assert and assert_raises host functions."""


class HostFault(LoxError):
    """Unexpected internal fault, wrapped with the statement that triggered it.

    Not a LoxRuntimeError, so assert_raises never counts it as an expected
    failure.
    """

    def __init__(self, statement: Stmt | None, error: BaseException):
        line = statement.indicator.line if statement is not None else None
        super().__init__(f"{type(error).__name__}: {error}", line)
        self.statement: Stmt | None = statement
        self.error: BaseException = error


# ============================================================
# Debug snapshot
# ============================================================


@dataclass(frozen=True)
class DebugSnapshot:
    """Point-in-time copy of the interpreter state.

    trace: statements mid-execution, outermost first.
    call_stack: active callables, outermost first.
    environment: value copy of the scope chain active at capture time.
    """

    trace: tuple[Stmt, ...]
    call_stack: tuple[LoxCallable, ...]
    environment: Scope

    @classmethod
    def capture(cls, interpreter: Interpreter) -> DebugSnapshot:
        return cls(
            tuple(interpreter.trace),
            tuple(interpreter.call_stack),
            interpreter.scope.snapshot(),
        )


# ============================================================
# Control flow signals (internal)
# ============================================================


class Return(Exception):
    """Unwinds a function body. Never a LoxError and never reported."""

    def __init__(self, value: Value):
        super().__init__("return outside of a call")
        self.value: Value = value
