"""Program entry contract: batch runs and line-by-line REPL runs."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, TextIO

from .parse import Parser
from .report import Reporter
from .runtime import MAX_CALL_DEPTH, Interpreter
from .tokens import Scanner

logger = logging.getLogger(__name__)


class Outcome(Enum):
    OK = "ok"
    SYNTAX_ERROR = "syntax error"
    RUNTIME_ERROR = "runtime error"


class Session:
    """One interpreter whose globals persist across every run() call."""

    def __init__(
        self,
        out: TextIO | None = None,
        reporter: Reporter | None = None,
        *,
        max_depth: int = MAX_CALL_DEPTH,
    ):
        self.reporter: Reporter = reporter if reporter is not None else Reporter()
        self.interpreter = Interpreter(out, max_depth=max_depth, reporter=self.reporter)

    def run(self, source: str) -> Outcome:
        """Scan, parse and evaluate. Any syntax error skips evaluation."""
        scanner = Scanner(source, self.reporter)
        tokens = scanner.scan_tokens()
        parser = Parser(tokens, self.reporter)
        stmts = parser.parse()
        if scanner.errors or parser.errors:
            logger.debug(
                "skipping evaluation: %d scan, %d parse errors",
                len(scanner.errors),
                len(parser.errors),
            )
            return Outcome.SYNTAX_ERROR
        if self.interpreter.interpret(stmts) is not None:
            return Outcome.RUNTIME_ERROR
        return Outcome.OK

    def run_file(self, path: str | Path) -> Outcome:
        source = Path(path).read_text(encoding="utf-8")
        return self.run(source)

    def repl(self, lines: Iterable[str]) -> list[Outcome]:
        """Run each line on its own; a bad line never poisons the next one."""
        outcomes: list[Outcome] = []
        for line in lines:
            outcomes.append(self.run(line))
            self.reporter.reset()
        return outcomes
