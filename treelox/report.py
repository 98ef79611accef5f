"""Error reporting: formats syntax and runtime errors with their debug state."""

from __future__ import annotations

import io
import sys
from typing import TextIO

from .callables import NativeFunction
from .emit import to_source
from .errors import (
    AssertionFailure,
    DebugSnapshot,
    HostFault,
    LoxError,
    ParseError,
    ScanError,
)


class Reporter:
    """Writes diagnostics to a stream (stderr by default).

    Syntax errors are one line each. Runtime errors print a header, the debug
    snapshot taken where the error was raised, then the message and line.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream: TextIO = stream if stream is not None else sys.stderr
        self.had_error: bool = False
        self.had_runtime_error: bool = False

    def reset(self) -> None:
        self.had_error = False
        self.had_runtime_error = False

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")

    # ---- Syntax ------------------------------------------------------------

    def syntax_error(self, error: ScanError | ParseError) -> None:
        self.had_error = True
        self._write(f"[line {error.line}] Error{error.where}: {error.msg}")

    # ---- Runtime -----------------------------------------------------------

    def runtime_error(self, error: LoxError) -> None:
        self.had_runtime_error = True
        self._write("")
        self._write(self._header(error))
        if error.snapshot is not None:
            self.write_snapshot(error.snapshot)
        self._write(error.msg)
        if error.line is not None:
            self._write(f"[line {error.line}]")

    def _header(self, error: LoxError) -> str:
        if isinstance(error, AssertionFailure):
            return "[ASSERTION ERROR]"
        if isinstance(error, HostFault):
            return "[FATAL]"
        return "[RUNTIME ERROR]"

    def write_snapshot(self, snapshot: DebugSnapshot) -> None:
        for stmt in snapshot.trace:
            source = to_source(stmt)
            first = source.split("\n", 1)[0]
            self._write(f"[line {stmt.indicator.line}] {first}")

        self._write("Call stack:")
        for callee in snapshot.call_stack:
            self._write("  " + callee.to_string())

        self._write("Environment:")
        for depth, scope in enumerate(snapshot.environment.chain()):
            indent = "  " * (depth + 1)
            for name, value in scope.items():
                if isinstance(value, NativeFunction):
                    continue
                self._write(f"{indent}{name} = {value.to_string()}")


class CollectingReporter(Reporter):
    """Keeps every reported error; the formatted text goes to a buffer."""

    def __init__(self) -> None:
        self.buffer = io.StringIO()
        super().__init__(self.buffer)
        self.syntax_errors: list[ScanError | ParseError] = []
        self.runtime_errors: list[LoxError] = []

    def syntax_error(self, error: ScanError | ParseError) -> None:
        self.syntax_errors.append(error)
        super().syntax_error(error)

    def runtime_error(self, error: LoxError) -> None:
        self.runtime_errors.append(error)
        super().runtime_error(error)

    def text(self) -> str:
        return self.buffer.getvalue()
