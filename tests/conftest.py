"""Pytest configuration for the treelox test suite."""

import io
import sys
from pathlib import Path

import pytest

# Add the repo root to path so treelox imports without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from treelox.report import CollectingReporter  # noqa: E402
from treelox.session import Session  # noqa: E402


class Harness:
    """A session wired to in-memory output and a collecting reporter."""

    def __init__(self, max_depth: int | None = None):
        self.out = io.StringIO()
        self.reporter = CollectingReporter()
        if max_depth is None:
            self.session = Session(self.out, self.reporter)
        else:
            self.session = Session(self.out, self.reporter, max_depth=max_depth)

    def run(self, source: str):
        return self.session.run(source)

    def output(self) -> str:
        return self.out.getvalue()

    def lines(self) -> list[str]:
        return self.output().splitlines()

    @property
    def interpreter(self):
        return self.session.interpreter


@pytest.fixture
def lox() -> Harness:
    return Harness()


@pytest.fixture
def make_lox():
    return Harness
