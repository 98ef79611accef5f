"""Lexical scope chain built from shared variable cells."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from .errors import NameNotFound

if TYPE_CHECKING:
    from .tokens import Token
    from .values import Value


@dataclass
class Variable:
    """Mutable holder of one value; the unit of sharing between closures."""

    value: Value


class Scope:
    """Name -> Variable mapping with a parent link.

    get/assign walk outward through parents; declare only ever touches this
    scope. noun names what the bindings are in error messages ("variable" for
    ordinary scopes, "property" for the field tables of classes and instances).
    """

    def __init__(self, parent: Scope | None = None, noun: str = "variable"):
        self.parent: Scope | None = parent
        self.noun: str = noun
        self.locals: dict[str, Variable] = {}

    @property
    def is_global(self) -> bool:
        return self.parent is None

    @property
    def depth(self) -> int:
        n = 0
        scope = self.parent
        while scope is not None:
            n += 1
            scope = scope.parent
        return n

    # ---- Lookup ------------------------------------------------------------

    def find(self, name: str) -> Variable | None:
        scope: Scope | None = self
        while scope is not None:
            cell = scope.locals.get(name)
            if cell is not None:
                return cell
            scope = scope.parent
        return None

    def is_defined(self, name: str) -> bool:
        return self.find(name) is not None

    def lookup(self, name: str) -> Value:
        """Read by plain name; KeyError when unbound."""
        cell = self.find(name)
        if cell is None:
            raise KeyError(name)
        return cell.value

    def get(self, name: Token) -> Value:
        cell = self.find(name.lexeme)
        if cell is None:
            raise self._not_found(name)
        return cell.value

    def assign(self, name: Token, value: Value) -> None:
        cell = self.find(name.lexeme)
        if cell is None:
            raise self._not_found(name)
        cell.value = value

    def declare(self, name: str, value: Value) -> None:
        self.locals[name] = Variable(value)

    def _not_found(self, name: Token) -> NameNotFound:
        return NameNotFound(f"Undefined {self.noun} '{name.lexeme}'.", name)

    # ---- Copies ------------------------------------------------------------

    def copy_by_reference(self) -> Scope:
        """New top-level mapping over the same cells."""
        copy = Scope(self.parent, self.noun)
        copy.locals = dict(self.locals)
        return copy

    def copy_by_value(self) -> Scope:
        """New top-level mapping of fresh cells holding the current values."""
        copy = Scope(self.parent, self.noun)
        for name, cell in self.locals.items():
            copy.locals[name] = Variable(cell.value)
        return copy

    def snapshot(self) -> Scope:
        """Value copy of the whole chain, for diagnostics."""
        parent = self.parent.snapshot() if self.parent is not None else None
        copy = self.copy_by_value()
        copy.parent = parent
        return copy

    # ---- Introspection -----------------------------------------------------

    def names(self) -> list[str]:
        return list(self.locals)

    def items(self) -> Iterator[tuple[str, Value]]:
        for name, cell in self.locals.items():
            yield name, cell.value

    def chain(self) -> Iterator[Scope]:
        """This scope, then each ancestor up to the global scope."""
        scope: Scope | None = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def __repr__(self) -> str:
        return f"Scope(depth={self.depth}, names={self.names()!r})"
