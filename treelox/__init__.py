"""treelox: a tree-walking Lox interpreter. Public API."""

from __future__ import annotations

from typing import TextIO

from .ast import Stmt
from .emit import to_source as to_source
from .errors import LoxError as LoxError
from .parse import Parser
from .report import Reporter
from .runtime import Interpreter as Interpreter
from .session import Outcome as Outcome, Session as Session
from .tokens import Token, scan as scan


def parse(source: str, reporter: Reporter | None = None) -> list[Stmt]:
    """Scan and parse Lox source. Errors go to the reporter, if given."""
    tokens: list[Token] = scan(source, reporter)
    return Parser(tokens, reporter).parse()


def run(source: str, out: TextIO | None = None) -> Outcome:
    """Run a whole program in a fresh session, reporting errors to stderr."""
    return Session(out).run(source)
