"""treelox CLI: run .lox files or an interactive prompt."""

from __future__ import annotations

import logging
import sys
from typing import Iterator

from .runtime import MAX_CALL_DEPTH
from .session import Outcome, Session


USAGE: str = """\
treelox [OPTIONS] [SCRIPT]

Run a Lox script, or read one statement per line when no script is given.

Options:
  --max-depth N  Maximum call depth before a recursion error (default 200)
  --verbose      Log interpreter activity to stderr
  --help         Show this help message
"""

EXIT_OK = 0
EXIT_USAGE = 64
EXIT_SYNTAX = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME = 70


def _read_lines(interactive: bool) -> Iterator[str]:
    while True:
        if interactive:
            print("> ", end="", flush=True)
        line = sys.stdin.readline()
        if line == "":
            return
        yield line


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    max_depth = MAX_CALL_DEPTH
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EXIT_OK
        elif arg == "--verbose":
            verbose = True
            i += 1
        elif arg == "--max-depth":
            if i + 1 >= len(args):
                print("treelox: --max-depth needs a value", file=sys.stderr)
                return EXIT_USAGE
            try:
                max_depth = int(args[i + 1])
            except ValueError:
                print("treelox: invalid --max-depth '" + args[i + 1] + "'", file=sys.stderr)
                return EXIT_USAGE
            if max_depth < 1:
                print("treelox: --max-depth must be positive", file=sys.stderr)
                return EXIT_USAGE
            i += 2
        elif arg.startswith("-"):
            print("treelox: unknown flag '" + arg + "'", file=sys.stderr)
            return EXIT_USAGE
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("treelox: unexpected argument '" + arg + "'", file=sys.stderr)
            return EXIT_USAGE

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s:%(name)s:%(message)s",
        )

    session = Session(max_depth=max_depth)

    if filepath == "":
        session.repl(_read_lines(sys.stdin.isatty()))
        return EXIT_OK

    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("treelox: " + filepath + ": No such file or directory", file=sys.stderr)
        return EXIT_NO_INPUT
    except OSError as e:
        print("treelox: " + filepath + ": " + str(e), file=sys.stderr)
        return EXIT_NO_INPUT
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("treelox: " + filepath + ": invalid utf-8", file=sys.stderr)
        return EXIT_NO_INPUT

    outcome = session.run(source)
    if outcome is Outcome.SYNTAX_ERROR:
        return EXIT_SYNTAX
    if outcome is Outcome.RUNTIME_ERROR:
        return EXIT_RUNTIME
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
