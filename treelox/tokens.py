"""Lox scanner: lexes source into a flat token list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import ScanError

if TYPE_CHECKING:
    from .report import Reporter


# Token type constants
TK_LEFT_PAREN = "LEFT_PAREN"
TK_RIGHT_PAREN = "RIGHT_PAREN"
TK_LEFT_BRACE = "LEFT_BRACE"
TK_RIGHT_BRACE = "RIGHT_BRACE"
TK_COMMA = "COMMA"
TK_DOT = "DOT"
TK_MINUS = "MINUS"
TK_PLUS = "PLUS"
TK_SEMICOLON = "SEMICOLON"
TK_SLASH = "SLASH"
TK_STAR = "STAR"

TK_BANG = "BANG"
TK_BANG_EQUAL = "BANG_EQUAL"
TK_EQUAL = "EQUAL"
TK_EQUAL_EQUAL = "EQUAL_EQUAL"
TK_GREATER = "GREATER"
TK_GREATER_EQUAL = "GREATER_EQUAL"
TK_LESS = "LESS"
TK_LESS_EQUAL = "LESS_EQUAL"

TK_IDENTIFIER = "IDENTIFIER"
TK_STRING = "STRING"
TK_NUMBER = "NUMBER"

TK_AND = "AND"
TK_CLASS = "CLASS"
TK_ELSE = "ELSE"
TK_FALSE = "FALSE"
TK_FUN = "FUN"
TK_FOR = "FOR"
TK_IF = "IF"
TK_NIL = "NIL"
TK_OR = "OR"
TK_PRINT = "PRINT"
TK_RETURN = "RETURN"
TK_SUPER = "SUPER"
TK_THIS = "THIS"
TK_TRUE = "TRUE"
TK_VAR = "VAR"
TK_WHILE = "WHILE"

TK_EOF = "EOF"

KEYWORDS: dict[str, str] = {
    "and": TK_AND,
    "class": TK_CLASS,
    "else": TK_ELSE,
    "false": TK_FALSE,
    "fun": TK_FUN,
    "for": TK_FOR,
    "if": TK_IF,
    "nil": TK_NIL,
    "or": TK_OR,
    "print": TK_PRINT,
    "return": TK_RETURN,
    "super": TK_SUPER,
    "this": TK_THIS,
    "true": TK_TRUE,
    "var": TK_VAR,
    "while": TK_WHILE,
}

SINGLE_OPS: dict[str, str] = {
    "(": TK_LEFT_PAREN,
    ")": TK_RIGHT_PAREN,
    "{": TK_LEFT_BRACE,
    "}": TK_RIGHT_BRACE,
    ",": TK_COMMA,
    ".": TK_DOT,
    "-": TK_MINUS,
    "+": TK_PLUS,
    ";": TK_SEMICOLON,
    "*": TK_STAR,
}

# Operators that may be followed by '=': (alone, with '=')
EQUAL_OPS: dict[str, tuple[str, str]] = {
    "!": (TK_BANG, TK_BANG_EQUAL),
    "=": (TK_EQUAL, TK_EQUAL_EQUAL),
    "<": (TK_LESS, TK_LESS_EQUAL),
    ">": (TK_GREATER, TK_GREATER_EQUAL),
}


@dataclass(frozen=True)
class Token:
    """A token with type, source text, resolved literal and line."""

    type: str
    lexeme: str
    literal: float | str | None
    line: int

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.lexeme)
            + ", "
            + repr(self.literal)
            + ", "
            + str(self.line)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


class Scanner:
    """Single left-to-right pass over the source.

    Errors never stop the scan: each one is recorded in `errors` and handed to
    the reporter as soon as it is found, so one pass surfaces every lexical
    problem in the source.
    """

    def __init__(self, source: str, reporter: Reporter | None = None):
        self.source: str = source
        self.reporter: Reporter | None = reporter
        self.tokens: list[Token] = []
        self.errors: list[ScanError] = []
        self.start: int = 0
        self.pos: int = 0
        self.line: int = 1

    def scan_tokens(self) -> list[Token]:
        length = len(self.source)
        while self.pos < length:
            self.start = self.pos
            self._scan_token()
        self.tokens.append(Token(TK_EOF, "", None, self.line))
        return self.tokens

    # ── Helpers ──────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= len(self.source):
            return "\0"
        return self.source[idx]

    def _add(self, type_: str, literal: float | str | None = None) -> None:
        lexeme = self.source[self.start : self.pos]
        self.tokens.append(Token(type_, lexeme, literal, self.line))

    def _error(self, line: int, msg: str) -> None:
        err = ScanError(line, msg)
        self.errors.append(err)
        if self.reporter is not None:
            self.reporter.syntax_error(err)

    # ── Tokens ───────────────────────────────────────────────

    def _scan_token(self) -> None:
        c = self.source[self.pos]
        self.pos += 1

        if c == "\n":
            self.line += 1
            return
        if c == " " or c == "\t" or c == "\r":
            return

        if c in SINGLE_OPS:
            self._add(SINGLE_OPS[c])
            return

        if c in EQUAL_OPS:
            alone, with_equal = EQUAL_OPS[c]
            if self._peek() == "=":
                self.pos += 1
                self._add(with_equal)
            else:
                self._add(alone)
            return

        # Line comment: //
        if c == "/":
            if self._peek() == "/":
                while self.pos < len(self.source) and self.source[self.pos] != "\n":
                    self.pos += 1
            else:
                self._add(TK_SLASH)
            return

        if c == '"':
            self._string()
            return
        if _is_digit(c):
            self._number()
            return
        if _is_alpha(c):
            self._identifier()
            return

        self._error(self.line, "Unexpected character.")

    def _string(self) -> None:
        start_line = self.line
        length = len(self.source)
        while self.pos < length and self.source[self.pos] != '"':
            if self.source[self.pos] == "\n":
                self.line += 1
            self.pos += 1
        if self.pos >= length:
            self._error(start_line, "Unterminated string.")
            return
        self.pos += 1  # skip closing "
        value = self.source[self.start + 1 : self.pos - 1]
        self.tokens.append(
            Token(TK_STRING, self.source[self.start : self.pos], value, start_line)
        )

    def _number(self) -> None:
        while _is_digit(self._peek()):
            self.pos += 1
        # A bare trailing '.' is left for the next token.
        if self._peek() == "." and _is_digit(self._peek(1)):
            self.pos += 1
            while _is_digit(self._peek()):
                self.pos += 1
        self._add(TK_NUMBER, float(self.source[self.start : self.pos]))

    def _identifier(self) -> None:
        while _is_alnum(self._peek()):
            self.pos += 1
        word = self.source[self.start : self.pos]
        self._add(KEYWORDS.get(word, TK_IDENTIFIER))


def scan(source: str, reporter: Reporter | None = None) -> list[Token]:
    """Scan Lox source into a flat list ending with TK_EOF."""
    return Scanner(source, reporter).scan_tokens()
