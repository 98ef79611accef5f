"""Callable and object model: functions, bound methods, classes, instances."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from .environment import Scope
from .errors import Return
from .values import NIL, Value

if TYPE_CHECKING:
    from .ast import Stmt
    from .runtime import Interpreter
    from .tokens import Token


INIT = "init"


class LoxCallable(Value):
    """Anything that reports an arity and can be invoked."""

    name: str

    def arity(self) -> int:
        raise NotImplementedError

    def accepts(self, count: int) -> bool:
        return count == self.arity()

    def arity_string(self) -> str:
        return str(self.arity())

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        raise NotImplementedError

    def type_name(self) -> str:
        return "function"

    def __repr__(self) -> str:
        return self.to_string()


class NativeFunction(LoxCallable):
    """Host-provided function with an opaque body."""

    def __init__(
        self,
        name: str,
        arity: int,
        fn: Callable[[Interpreter, list[Value]], Value],
        *,
        variadic: bool = False,
    ):
        self.name = name
        self._arity = arity
        self._fn = fn
        self.variadic = variadic

    def arity(self) -> int:
        return self._arity

    def accepts(self, count: int) -> bool:
        if self.variadic:
            return count >= self._arity
        return count == self._arity

    def arity_string(self) -> str:
        if self.variadic:
            return f"{self._arity}+"
        return str(self._arity)

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        return self._fn(interpreter, arguments)

    def to_string(self) -> str:
        return f"<native fn: {self.name}>"


class LoxFunction(LoxCallable):
    """User-defined function closing over the scope it was defined in."""

    def __init__(self, name: str, params: list[Token], body: list[Stmt], closure: Scope):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure

    def arity(self) -> int:
        return len(self.params)

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        scope = self.closure.copy_by_reference()
        for param, arg in zip(self.params, arguments):
            scope.declare(param.lexeme, arg)
        try:
            interpreter.execute_block(self.body, scope)
        except Return as r:
            return r.value
        return NIL

    def to_string(self) -> str:
        return f"<fn {self.name}>"


class BoundMethod(LoxCallable):
    """A function permanently paired with the instance `this` resolves to."""

    def __init__(self, function: LoxFunction, instance: LoxInstance):
        self.name = function.name
        self.function = function
        self.instance = instance

    def arity(self) -> int:
        return self.function.arity()

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        return self.function.call(interpreter, arguments)

    def to_string(self) -> str:
        return f"<method {self.name} bound to {self.instance.to_string()}>"


class Fieldable:
    """Values that carry a field table: classes and instances."""

    fields: Scope

    def get_field(self, name: Token) -> Value:
        return self.fields.get(name)

    def set_field(self, name: Token, value: Value) -> None:
        self.fields.assign(name, value)


class LoxClass(LoxCallable, Fieldable):
    """A class value. Calling it constructs an instance.

    fields holds the evaluated field defaults plus every method except init,
    which is kept apart as the constructor.
    """

    def __init__(
        self,
        name: str,
        closure: Scope,
        fields: Scope,
        initializer: LoxFunction | None,
    ):
        self.name = name
        self.closure = closure
        self.fields = fields
        self.initializer = initializer

    def arity(self) -> int:
        if self.initializer is None:
            return 0
        return self.initializer.arity()

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        instance = LoxInstance(self)
        if self.initializer is not None:
            constructor = BoundMethod(self.initializer, instance)
            instance.initializing = True
            try:
                interpreter.invoke(constructor, arguments)
            finally:
                instance.initializing = False
        return instance

    def type_name(self) -> str:
        return "class"

    def to_string(self) -> str:
        return f"<class {self.name}>"


class LoxInstance(Value, Fieldable):
    """An object built by a class.

    Its field table is a value copy of the class defaults, so instances never
    share cells. New fields may only appear while the instance's own init is
    running; afterwards the set of fields is fixed.
    """

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields = klass.fields.copy_by_value()
        self.initializing = False
        for name, value in list(self.fields.items()):
            if isinstance(value, LoxFunction):
                self.fields.declare(name, BoundMethod(value, self))

    def set_field(self, name: Token, value: Value) -> None:
        if self.initializing and name.lexeme not in self.fields.locals:
            self.fields.declare(name.lexeme, value)
            return
        self.fields.assign(name, value)

    def type_name(self) -> str:
        return "instance"

    def to_string(self) -> str:
        return f"<{self.klass.name} instance>"

    def __repr__(self) -> str:
        return self.to_string()
