"""
ktgen/statements.py - Continuation indentation for multi-line statements.

A statement opened with ``%[`` and closed with ``%]`` may span several
physical lines.  The first line is indented normally.  When the first line
break happens, the content of the line just completed decides how much
extra indentation the remaining lines receive:

    ==================  ======  ==========================================
    style               levels  first line ends with
    ==================  ======  ==========================================
    ``RAW_STRING``      1       ``\"\"\"`` (a raw string literal opens)
    ``NONE``            0       ``{`` or ``->`` (a block carries its own)
    ``EXPRESSION``      2       anything else (wrapped call, condition...)
    ==================  ======  ==========================================

The style is chosen once and applies to every later line of the statement;
closing the statement removes the extra indentation exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ktgen.errors import KtgenErrorCodes, StructureError

__all__ = [
    "ContinuationStyle",
    "PendingStatement",
    "StatementFormatter",
    "choose_continuation",
]

logger = logging.getLogger(__name__)


class ContinuationStyle(Enum):
    """Extra indent levels applied to a statement's continuation lines."""

    NONE = 0
    RAW_STRING = 1
    EXPRESSION = 2

    @property
    def levels(self) -> int:
        return self.value


def choose_continuation(line: str) -> ContinuationStyle:
    """Pick the continuation style from a statement's first line."""
    tail = line.rstrip()
    if tail.endswith('"""'):
        return ContinuationStyle.RAW_STRING
    if tail.endswith("{") or tail.endswith("->"):
        return ContinuationStyle.NONE
    return ContinuationStyle.EXPRESSION


@dataclass
class PendingStatement:
    """Bookkeeping for the statement currently open."""

    style: Optional[ContinuationStyle] = None
    line: int = 0

    @property
    def committed(self) -> bool:
        return self.style is not None


class StatementFormatter:
    """Applies continuation indentation through ``indent``/``unindent`` callbacks.

    The callbacks receive a level count; the writer owns the actual
    indentation counter.
    """

    def __init__(
        self,
        indent: Callable[[int], None],
        unindent: Callable[[int], None],
    ) -> None:
        self._indent = indent
        self._unindent = unindent
        self.pending: Optional[PendingStatement] = None

    @property
    def in_statement(self) -> bool:
        return self.pending is not None

    def begin(self) -> None:
        if self.pending is not None:
            raise StructureError(
                "statement enter %[ followed by statement enter %[",
                code=KtgenErrorCodes.NESTED_STATEMENT,
            )
        self.pending = PendingStatement()

    def line_break(self, completed_line: str) -> None:
        """Record a newline inside the open statement (no-op outside one)."""
        pending = self.pending
        if pending is None:
            return
        if not pending.committed:
            pending.style = choose_continuation(completed_line)
            logger.debug("statement continues as %s", pending.style.name)
            if pending.style.levels:
                self._indent(pending.style.levels)
        pending.line += 1

    def end(self) -> None:
        pending = self.pending
        if pending is None:
            raise StructureError(
                "statement exit %] has no matching statement enter %[",
                code=KtgenErrorCodes.UNMATCHED_STATEMENT_END,
            )
        if pending.committed and pending.style.levels:
            self._unindent(pending.style.levels)
        if pending.line:
            logger.debug("statement closed after %d line break(s)", pending.line)
        self.pending = None
