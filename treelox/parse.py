"""Lox parser: recursive descent, one method per grammar production."""

from __future__ import annotations

from typing import TYPE_CHECKING

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
    height,
)
from .errors import ParseError
from .limits import MAX_NESTING, ensure_recursion_limit, parser_frames
from .tokens import (
    TK_AND,
    TK_BANG,
    TK_BANG_EQUAL,
    TK_CLASS,
    TK_COMMA,
    TK_DOT,
    TK_ELSE,
    TK_EOF,
    TK_EQUAL,
    TK_EQUAL_EQUAL,
    TK_FALSE,
    TK_FOR,
    TK_FUN,
    TK_GREATER,
    TK_GREATER_EQUAL,
    TK_IDENTIFIER,
    TK_IF,
    TK_LEFT_BRACE,
    TK_LEFT_PAREN,
    TK_LESS,
    TK_LESS_EQUAL,
    TK_MINUS,
    TK_NIL,
    TK_NUMBER,
    TK_OR,
    TK_PLUS,
    TK_PRINT,
    TK_RETURN,
    TK_RIGHT_BRACE,
    TK_RIGHT_PAREN,
    TK_SEMICOLON,
    TK_SLASH,
    TK_STAR,
    TK_STRING,
    TK_SUPER,
    TK_THIS,
    TK_TRUE,
    TK_VAR,
    TK_WHILE,
    Token,
)

if TYPE_CHECKING:
    from .report import Reporter

MAX_ARGUMENTS = 255

# Tokens that start a declaration or statement; synchronization stops here.
SYNC_TOKENS: set[str] = {
    TK_CLASS,
    TK_FUN,
    TK_VAR,
    TK_FOR,
    TK_IF,
    TK_WHILE,
    TK_PRINT,
    TK_RETURN,
}

EQUALITY_OPS: tuple[str, ...] = (TK_BANG_EQUAL, TK_EQUAL_EQUAL)
COMPARISON_OPS: tuple[str, ...] = (TK_GREATER, TK_GREATER_EQUAL, TK_LESS, TK_LESS_EQUAL)
TERM_OPS: tuple[str, ...] = (TK_MINUS, TK_PLUS)
FACTOR_OPS: tuple[str, ...] = (TK_SLASH, TK_STAR)
UNARY_OPS: tuple[str, ...] = (TK_BANG, TK_MINUS)


class Parser:
    """Recursive descent parser for Lox.

    A failed expectation raises ParseError, which is recorded and reported the
    moment it is created. parse_decl catches it and synchronizes to the next
    statement boundary, so one malformed statement costs one error.

    Nesting is capped at MAX_NESTING twice over: while descending, so the
    parser itself cannot overflow the Python stack, and on each finished
    top-level statement, since long operator chains build deep trees without
    deep parser recursion.
    """

    def __init__(self, tokens: list[Token], reporter: Reporter | None = None):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.reporter: Reporter | None = reporter
        self.errors: list[ParseError] = []
        self._function_depth: int = 0
        self._nesting: int = 0
        ensure_recursion_limit(parser_frames())

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, *types: str) -> bool:
        return self.current().type in types

    def at_end(self) -> bool:
        return self.current().type == TK_EOF

    def match(self, *types: str) -> bool:
        if self.at(*types):
            self.advance()
            return True
        return False

    def expect(self, type_: str, msg: str) -> Token:
        if self.at(type_):
            return self.advance()
        raise self.error(self.current(), msg)

    def error(self, token: Token, msg: str) -> ParseError:
        """Record and report an error. Callers decide whether to raise it."""
        err = ParseError(token, msg)
        self.errors.append(err)
        if self.reporter is not None:
            self.reporter.syntax_error(err)
        return err

    def synchronize(self) -> None:
        self.advance()
        while not self.at_end():
            if self.previous().type == TK_SEMICOLON:
                return
            if self.current().type in SYNC_TOKENS:
                return
            self.advance()

    def enter(self) -> None:
        """Descend one level; undone by the caller with leave()."""
        if self._nesting >= MAX_NESTING:
            raise self.error(self.current(), "Too much nesting.")
        self._nesting += 1

    def leave(self) -> None:
        self._nesting -= 1

    # ── Top Level ────────────────────────────────────────────

    def parse(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at_end():
            errors = len(self.errors)
            stmt = self.parse_decl()
            if stmt is None:
                continue
            if len(self.errors) == errors and height(stmt) > MAX_NESTING:
                self.error(stmt.indicator, "Too much nesting.")
                continue
            stmts.append(stmt)
        return stmts

    def parse_decl(self) -> Stmt | None:
        """Decl = ClassDecl | FunDecl | VarDecl | Stmt"""
        try:
            if self.at(TK_CLASS):
                return self.parse_class_decl()
            if self.at(TK_FUN) and self.peek(1).type == TK_IDENTIFIER:
                keyword = self.advance()
                return self.parse_function(keyword, "function")
            if self.at(TK_VAR):
                return self.parse_var_decl()
            return self.parse_stmt()
        except ParseError:
            self.synchronize()
            return None

    def parse_class_decl(self) -> ClassStmt:
        """ClassDecl = 'class' IDENT '{' ( VarDecl | Method )* '}'"""
        keyword = self.expect(TK_CLASS, "Expect 'class'.")
        name = self.expect(TK_IDENTIFIER, "Expect class name.")
        self.expect(TK_LEFT_BRACE, "Expect '{' before class body.")
        fields: list[VarStmt] = []
        methods: list[FunctionStmt] = []
        while not self.at(TK_RIGHT_BRACE) and not self.at_end():
            if self.at(TK_VAR):
                fields.append(self.parse_var_decl())
            else:
                methods.append(self.parse_function(self.current(), "method"))
        self.expect(TK_RIGHT_BRACE, "Expect '}' after class body.")
        return ClassStmt(keyword, name, fields, methods)

    def parse_function(self, indicator: Token, kind: str) -> FunctionStmt:
        """Function = IDENT '(' Params? ')' Block"""
        name = self.expect(TK_IDENTIFIER, "Expect " + kind + " name.")
        self.expect(TK_LEFT_PAREN, "Expect '(' after " + kind + " name.")
        params = self.parse_params()
        self.expect(TK_LEFT_BRACE, "Expect '{' before " + kind + " body.")
        body = self.parse_function_body()
        return FunctionStmt(indicator, name, params, body)

    def parse_params(self) -> list[Token]:
        """Params = IDENT ( ',' IDENT )* ')'"""
        params: list[Token] = []
        if not self.at(TK_RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.error(self.current(), "Can't have more than 255 parameters.")
                params.append(self.expect(TK_IDENTIFIER, "Expect parameter name."))
                if not self.match(TK_COMMA):
                    break
        self.expect(TK_RIGHT_PAREN, "Expect ')' after parameters.")
        return params

    def parse_function_body(self) -> list[Stmt]:
        self.enter()
        self._function_depth += 1
        try:
            return self.parse_block()
        finally:
            self._function_depth -= 1
            self.leave()

    def parse_var_decl(self) -> VarStmt:
        """VarDecl = 'var' IDENT ( '=' Expr )? ';'"""
        keyword = self.expect(TK_VAR, "Expect 'var'.")
        name = self.expect(TK_IDENTIFIER, "Expect variable name.")
        initializer: Expr = Empty()
        if self.match(TK_EQUAL):
            initializer = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after variable declaration.")
        return VarStmt(keyword, name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        self.enter()
        try:
            return self._parse_stmt()
        finally:
            self.leave()

    def _parse_stmt(self) -> Stmt:
        if self.at(TK_PRINT):
            return self.parse_print_stmt()
        if self.at(TK_RETURN):
            return self.parse_return_stmt()
        if self.at(TK_LEFT_BRACE):
            brace = self.advance()
            return BlockStmt(brace, self.parse_block())
        if self.at(TK_IF):
            return self.parse_if_stmt()
        if self.at(TK_WHILE):
            return self.parse_while_stmt()
        if self.at(TK_FOR):
            return self.parse_for_stmt()
        return self.parse_expr_stmt()

    def parse_block(self) -> list[Stmt]:
        """Block = '{' Decl* '}' (opening brace already consumed)"""
        stmts: list[Stmt] = []
        while not self.at(TK_RIGHT_BRACE) and not self.at_end():
            stmt = self.parse_decl()
            if stmt is not None:
                stmts.append(stmt)
        self.expect(TK_RIGHT_BRACE, "Expect '}' after block.")
        return stmts

    def parse_print_stmt(self) -> PrintStmt:
        keyword = self.advance()
        value = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after value.")
        return PrintStmt(keyword, value)

    def parse_return_stmt(self) -> ReturnStmt:
        keyword = self.advance()
        if self._function_depth == 0:
            self.error(keyword, "Can't return from top-level code.")
        value: Expr = Empty()
        if not self.at(TK_SEMICOLON):
            value = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    def parse_if_stmt(self) -> IfStmt:
        """If = 'if' '(' Expr ')' Stmt ( 'else' Stmt )?"""
        keyword = self.advance()
        self.expect(TK_LEFT_PAREN, "Expect '(' after 'if'.")
        cond = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.parse_stmt()
        else_branch: Stmt = BlockStmt(keyword, [])
        if self.match(TK_ELSE):
            else_branch = self.parse_stmt()
        return IfStmt(keyword, cond, then_branch, else_branch)

    def parse_while_stmt(self) -> WhileStmt:
        """While = 'while' '(' Expr ')' Stmt"""
        keyword = self.advance()
        self.expect(TK_LEFT_PAREN, "Expect '(' after 'while'.")
        cond = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_stmt()
        return WhileStmt(keyword, cond, body)

    def parse_for_stmt(self) -> Stmt:
        """For = 'for' '(' ( VarDecl | ExprStmt | ';' ) Expr? ';' Expr? ')' Stmt

        Lowered here to { init; while (cond) { body; increment; } }.
        """
        keyword = self.advance()
        self.expect(TK_LEFT_PAREN, "Expect '(' after 'for'.")
        init: Stmt | None = None
        if self.match(TK_SEMICOLON):
            init = None
        elif self.at(TK_VAR):
            init = self.parse_var_decl()
        else:
            init = self.parse_expr_stmt()
        cond: Expr = Literal(True)
        if not self.at(TK_SEMICOLON):
            cond = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after loop condition.")
        increment: Expr | None = None
        if not self.at(TK_RIGHT_PAREN):
            increment = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expect ')' after for clauses.")
        body = self.parse_stmt()

        inner: list[Stmt] = [body]
        if increment is not None:
            inner.append(ExprStmt(keyword, increment))
        loop = WhileStmt(keyword, cond, BlockStmt(keyword, inner))
        outer: list[Stmt] = [loop] if init is None else [init, loop]
        return BlockStmt(keyword, outer)

    def parse_expr_stmt(self) -> ExprStmt:
        indicator = self.current()
        expr = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after expression.")
        return ExprStmt(indicator, expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        self.enter()
        try:
            return self.parse_assignment()
        finally:
            self.leave()

    def parse_assignment(self) -> Expr:
        """Assignment = ( Call '.' )? IDENT '=' Assignment | Or"""
        expr = self.parse_or()
        if self.at(TK_EQUAL):
            equals = self.advance()
            self.enter()
            try:
                value = self.parse_assignment()
            finally:
                self.leave()
            if isinstance(expr, (Var, Property)):
                return Assign(expr, value)
            self.error(equals, "Invalid assignment target.")
        return expr

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.parse_and()
        while self.at(TK_OR):
            op = self.advance()
            right = self.parse_and()
            left = Logical(op, left, right)
        return left

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.parse_equality()
        while self.at(TK_AND):
            op = self.advance()
            right = self.parse_equality()
            left = Logical(op, left, right)
        return left

    def parse_equality(self) -> Expr:
        """Equality = Comparison ( ( '!=' | '==' ) Comparison )*"""
        left = self.parse_comparison()
        while self.at(*EQUALITY_OPS):
            op = self.advance()
            right = self.parse_comparison()
            left = Binary(op, left, right)
        return left

    def parse_comparison(self) -> Expr:
        """Comparison = Term ( ( '>' | '>=' | '<' | '<=' ) Term )*"""
        left = self.parse_term()
        while self.at(*COMPARISON_OPS):
            op = self.advance()
            right = self.parse_term()
            left = Binary(op, left, right)
        return left

    def parse_term(self) -> Expr:
        """Term = Factor ( ( '-' | '+' ) Factor )*"""
        left = self.parse_factor()
        while self.at(*TERM_OPS):
            op = self.advance()
            right = self.parse_factor()
            left = Binary(op, left, right)
        return left

    def parse_factor(self) -> Expr:
        """Factor = Unary ( ( '/' | '*' ) Unary )*"""
        left = self.parse_unary()
        while self.at(*FACTOR_OPS):
            op = self.advance()
            right = self.parse_unary()
            left = Binary(op, left, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.at(*UNARY_OPS):
            op = self.advance()
            self.enter()
            try:
                operand = self.parse_unary()
            finally:
                self.leave()
            return Unary(op, operand)
        return self.parse_call()

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.parse_primary()
        while True:
            if self.match(TK_LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TK_DOT):
                name = self.expect(TK_IDENTIFIER, "Expect property name after '.'.")
                expr = Property(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        """Args = Expr ( ',' Expr )*"""
        args: list[Expr] = []
        if not self.at(TK_RIGHT_PAREN):
            while True:
                if len(args) >= MAX_ARGUMENTS:
                    self.error(self.current(), "Can't have more than 255 arguments.")
                args.append(self.parse_expr())
                if not self.match(TK_COMMA):
                    break
        paren = self.expect(TK_RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, args)

    def parse_primary(self) -> Expr:
        tok = self.current()
        if tok.type == TK_FALSE:
            self.advance()
            return Literal(False)
        if tok.type == TK_TRUE:
            self.advance()
            return Literal(True)
        if tok.type == TK_NIL:
            self.advance()
            return Literal(None)
        if tok.type == TK_NUMBER or tok.type == TK_STRING:
            self.advance()
            return Literal(tok.literal)
        if tok.type == TK_THIS:
            return This(self.advance())
        if tok.type == TK_IDENTIFIER:
            return Var(self.advance())
        if tok.type == TK_LEFT_PAREN:
            self.advance()
            inner = self.parse_expr()
            self.expect(TK_RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(inner)
        if tok.type == TK_FUN:
            return self.parse_lambda()
        if tok.type == TK_SUPER:
            raise self.error(tok, "Classes have no superclass to refer to.")
        raise self.error(tok, "Expect expression.")

    def parse_lambda(self) -> Lambda:
        """Lambda = 'fun' '(' Params? ')' Block"""
        keyword = self.advance()
        self.expect(TK_LEFT_PAREN, "Expect '(' after 'fun'.")
        params = self.parse_params()
        self.expect(TK_LEFT_BRACE, "Expect '{' before function body.")
        body = self.parse_function_body()
        return Lambda(keyword, params, body)


def parse(tokens: list[Token], reporter: Reporter | None = None) -> list[Stmt]:
    """Parse a token list into statements, recovering after each error."""
    return Parser(tokens, reporter).parse()
