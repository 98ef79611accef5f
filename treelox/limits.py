"""Depth ceilings shared by the parser and the runtime.

Both walk the program recursively, so each ceiling is turned into a bound on
Python frames and the interpreter's recursion limit is raised to cover it.
"""

from __future__ import annotations

import logging
import sys

logger = logging.getLogger(__name__)

MAX_CALL_DEPTH = 200

# Deepest syntax tree accepted from source, counted in nodes from a top-level
# statement down to its deepest leaf. Function bodies count toward the
# enclosing statement.
MAX_NESTING = 128

# Upper bounds on Python frames per level of nesting.
PARSE_FRAMES_PER_LEVEL = 12
EVAL_FRAMES_PER_LEVEL = 4

# Frames between one language-level call and the next, outside the body.
CALL_OVERHEAD_FRAMES = 16

# Room for the embedder, reporting and the debug snapshot.
SLACK_FRAMES = 1000


def frames_per_call() -> int:
    return MAX_NESTING * EVAL_FRAMES_PER_LEVEL + CALL_OVERHEAD_FRAMES


def parser_frames() -> int:
    return MAX_NESTING * PARSE_FRAMES_PER_LEVEL + SLACK_FRAMES


def interpreter_frames(max_depth: int) -> int:
    """Frames for max_depth nested calls below a top-level statement."""
    return (max_depth + 1) * frames_per_call() + SLACK_FRAMES


def ensure_recursion_limit(frames: int) -> None:
    """Raise Python's recursion limit to at least frames. Never lowers it."""
    if sys.getrecursionlimit() < frames:
        logger.debug("raising recursion limit to %d", frames)
        sys.setrecursionlimit(frames)
