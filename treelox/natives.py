"""Host functions injected into the global scope before a script runs."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from .callables import LoxCallable, NativeFunction
from .errors import AssertionFailure, LoxRuntimeError
from .values import NIL, Value, VNumber, to_bool

if TYPE_CHECKING:
    from .environment import Scope
    from .runtime import Interpreter


def _clock(interpreter: Interpreter, args: list[Value]) -> Value:
    return VNumber(time.monotonic())


def _assert(interpreter: Interpreter, args: list[Value]) -> Value:
    if not to_bool(args[0]):
        raise AssertionFailure("Assertion is false.")
    return NIL


def _assert_raises(interpreter: Interpreter, args: list[Value]) -> Value:
    """assert_raises(f, args...): succeed only if f(args...) raises."""
    target = args[0]
    if not isinstance(target, LoxCallable):
        raise AssertionFailure("Expect signature: assert_raises(function, args...).")
    target_args = args[1:]
    if not target.accepts(len(target_args)):
        raise AssertionFailure(
            f"Expected {target.arity_string()} arguments to {target.to_string()}, "
            f"but got {len(target_args)}."
        )
    try:
        interpreter.invoke(target, target_args)
    except LoxRuntimeError:
        return NIL
    raise AssertionFailure("Expected an error, but none was raised.")


NATIVES: list[NativeFunction] = [
    NativeFunction("clock", 0, _clock),
    NativeFunction("assert", 1, _assert),
    NativeFunction("assert_raises", 1, _assert_raises, variadic=True),
]


def install(scope: Scope) -> None:
    """Declare every host function in scope."""
    for native in NATIVES:
        scope.declare(native.name, native)
