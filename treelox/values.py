"""Runtime values, coercions and equality."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import TypeMismatch


# ============================================================
# Values
# ============================================================


class Value:
    """A dynamically-typed runtime value."""

    def type_name(self) -> str:
        raise NotImplementedError

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class VNil(Value):
    def type_name(self) -> str:
        return "nil"

    def to_string(self) -> str:
        return "nil"


@dataclass(frozen=True)
class VBool(Value):
    value: bool

    def type_name(self) -> str:
        return "boolean"

    def to_string(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class VNumber(Value):
    value: float

    def type_name(self) -> str:
        return "number"

    def to_string(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class VString(Value):
    value: str

    def type_name(self) -> str:
        return "string"

    def to_string(self) -> str:
        return self.value


NIL = VNil()
TRUE = VBool(True)
FALSE = VBool(False)


def format_number(x: float) -> str:
    if x != x:
        return "nan"
    if x == float("inf"):
        return "inf"
    if x == float("-inf"):
        return "-inf"
    if abs(x) < 1e16 and x == int(x):
        # keep the sign of negative zero
        if x == 0 and str(x).startswith("-"):
            return "-0"
        return str(int(x))
    return repr(x)


def from_bool(b: bool) -> VBool:
    return TRUE if b else FALSE


def from_literal(value: float | str | bool | None) -> Value:
    """Convert a literal stored in the AST into a runtime value."""
    if value is None:
        return NIL
    if isinstance(value, bool):
        return from_bool(value)
    if isinstance(value, str):
        return VString(value)
    return VNumber(float(value))


# ============================================================
# Coercions
# ============================================================


def to_bool(v: Value) -> bool:
    """nil -> false, 0 -> false, "" -> false; callables and instances -> true."""
    if isinstance(v, VNil):
        return False
    if isinstance(v, VBool):
        return v.value
    if isinstance(v, VNumber):
        return v.value != 0
    if isinstance(v, VString):
        return v.value != ""
    return True


def to_number(v: Value) -> float:
    """nil -> 0, booleans -> 1/0, numbers unchanged; anything else fails."""
    if isinstance(v, VNumber):
        return v.value
    if isinstance(v, VNil):
        return 0.0
    if isinstance(v, VBool):
        return 1.0 if v.value else 0.0
    raise TypeMismatch(f"Cannot use {v.type_name()} '{v.to_string()}' as a number.")


def values_equal(a: Value, b: Value) -> bool:
    """Never fails. Scalars compare by value, everything else by identity."""
    if isinstance(a, VNil) or isinstance(b, VNil):
        return isinstance(a, VNil) and isinstance(b, VNil)
    if isinstance(a, (VBool, VNumber, VString)):
        return type(a) is type(b) and a.value == b.value  # type: ignore[attr-defined]
    return a is b


def stringify(v: Value) -> str:
    return v.to_string()
