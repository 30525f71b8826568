"""
ktgen/wrapper.py - Soft line wrapping with bracket grouping.

The wrapper buffers one physical line at a time as a list of *segments*.
A soft-wrap space starts a new segment that may be printed either as a
single space or as a newline plus continuation indent.  Text appended
between soft-wrap spaces is *glued* to its predecessor and never breaks on
its own.

Parentheses are tracked: each ``(`` and its matching ``)`` become separate
glued segments linked to each other.  When a parenthesized group overflows
the column budget, the whole group is re-flowed one item per line:

    call(
        first,
        second,
    )

is what ``call(%Wfirst,%Wsecond)`` becomes when it does not fit (the
interior is indented at the wrap level, the closer two levels shallower).
A group that fits is always printed flat.

Nothing is written to the output until the line is complete (hard newline
or ``close``), because the decision for a group depends on its closer.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, TextIO, Tuple

from ktgen.errors import KtgenErrorCodes, StructureError

__all__ = ["LineWrapper"]

logger = logging.getLogger(__name__)

OPEN = "open"
CLOSE = "close"

# A leading unary sign must stay attached to whatever precedes it.
_UNSAFE_BREAK = re.compile(r"\s*[-+](?![>=]).*", re.DOTALL)


@dataclass
class _Segment:
    text: str = ""
    glued: bool = True
    kind: Optional[str] = None
    mate: int = -1


class LineWrapper:
    """Greedy, bracket-aware soft wrapping onto a text stream."""

    def __init__(self, out: TextIO, indent: str, column_limit: int) -> None:
        self.out = out
        self.indent = indent
        self.column_limit = column_limit
        self.closed = False
        self._segments: List[_Segment] = [_Segment()]
        self._open_brackets: List[int] = []
        # Continuation indent level for this line; -1 until a wrap is seen.
        self._indent_level = -1
        self._line_prefix = ""

    # ─────────────────────────────────────────────────────────────────
    #  Input
    # ─────────────────────────────────────────────────────────────────

    @property
    def has_pending_segments(self) -> bool:
        return len(self._segments) != 1 or bool(self._segments[0].text)

    def append(
        self,
        s: str,
        indent_level: int = -1,
        line_prefix: str = "",
        track_brackets: bool = True,
    ) -> None:
        """Append ``s``; ``\\n`` flushes the line, parentheses are grouped."""
        self._check_open()
        if indent_level >= 0:
            self._indent_level = indent_level
            self._line_prefix = line_prefix

        pos = 0
        while pos < len(s):
            ch = s[pos]
            if ch == "\n":
                self.newline()
                if indent_level >= 0:
                    self._indent_level = indent_level
                pos += 1
            elif track_brackets and ch == "(":
                self._open_brackets.append(len(self._segments))
                self._segments.append(_Segment("(", kind=OPEN))
                self._segments.append(_Segment())
                pos += 1
            elif track_brackets and ch == ")" and self._open_brackets:
                opener = self._open_brackets.pop()
                closer = len(self._segments)
                self._segments[opener].mate = closer
                self._segments.append(_Segment(")", kind=CLOSE, mate=opener))
                self._segments.append(_Segment())
                pos += 1
            else:
                end = _next_special(s, pos, track_brackets)
                if end == pos:
                    # An unmatched closer is plain text.
                    end = pos + 1
                self._segments[-1].text += s[pos:end]
                pos = end

    def append_non_wrapping(self, s: str) -> None:
        """Append ``s`` verbatim: no wrapping, no bracket tracking."""
        self._check_open()
        if "\n" in s:
            raise StructureError(
                f"non-wrapping text may not contain a newline: {s!r}",
                code=KtgenErrorCodes.INVALID_DECLARATION,
            )
        self._segments[-1].text += s

    def wrapping_space(self, indent_level: int, line_prefix: str = "") -> None:
        """Start a new segment joined by a space or a wrap."""
        self._check_open()
        self._indent_level = indent_level
        self._line_prefix = line_prefix
        self._segments.append(_Segment(glued=False))

    def newline(self) -> None:
        self._check_open()
        self._emit_current_line()
        self.out.write("\n")
        self._indent_level = -1

    def close(self) -> None:
        """Flush any outstanding text and forbid further writes."""
        if self.closed:
            return
        self._emit_current_line()
        self.closed = True

    def _check_open(self) -> None:
        if self.closed:
            raise StructureError("closed", code=KtgenErrorCodes.WRITER_CLOSED)

    # ─────────────────────────────────────────────────────────────────
    #  Layout
    # ─────────────────────────────────────────────────────────────────

    def _emit_current_line(self) -> None:
        segments = self._segments
        for index in self._open_brackets:
            segments[index].kind = None
        self._fold_unsafe_breaks()

        if len(segments) > 1:
            logger.debug("laying out %d segments at level %d", len(segments), self._indent_level)
        self._emit_items(0, len(segments), 0, self._indent_level)

        self._segments = [_Segment()]
        self._open_brackets = []

    def _fold_unsafe_breaks(self) -> None:
        for segment in self._segments[1:]:
            if not segment.glued and _UNSAFE_BREAK.fullmatch(segment.text):
                segment.text = " " + segment.text
                segment.glued = True

    def _items(self, lo: int, hi: int) -> List[Tuple[int, int]]:
        """Split ``[lo, hi)`` at soft-wrap points outside any group."""
        items = []
        start = lo
        i = lo
        while i < hi:
            segment = self._segments[i]
            if i > start and not segment.glued:
                items.append((start, i))
                start = i
            if segment.kind == OPEN and lo <= segment.mate < hi:
                i = segment.mate
            i += 1
        items.append((start, hi))
        return items

    def _width(self, lo: int, hi: int) -> int:
        width = 0
        for i in range(lo, hi):
            segment = self._segments[i]
            width += len(segment.text)
            if i > lo and not segment.glued:
                width += 1
        return width

    def _has_wrap_points(self, lo: int, hi: int) -> bool:
        return any(not self._segments[i].glued for i in range(lo, hi))

    def _emit_items(self, lo: int, hi: int, column: int, level: int) -> int:
        """Emit ``[lo, hi)`` greedily, wrapping between items.

        An overflowing item that holds a re-flowable group stays on the
        current line when its text up to and including the opener fits;
        the group then goes one item per line.  Groups on a continuation
        line are indented one wrap level deeper.
        """
        first = True
        continued = False
        for start, end in self._items(lo, hi):
            if not first:
                if column + 1 + self._width_to_break(start, end) > self.column_limit:
                    column = self._wrap(level)
                    continued = True
                else:
                    self.out.write(" ")
                    column += 1
            first = False
            column = self._emit_item(start, end, column, level + 2 if continued else level)
        return column

    def _width_to_break(self, lo: int, hi: int) -> int:
        """Width an item needs before its first re-flowable group may break."""
        width = self._width(lo, hi)
        for i in range(lo, hi):
            segment = self._segments[i]
            if segment.kind == OPEN and lo <= segment.mate < hi:
                if self._has_wrap_points(i + 1, segment.mate):
                    return min(width, self._width(lo, i + 1))
                break
        return width

    def _emit_item(self, lo: int, hi: int, column: int, level: int) -> int:
        i = lo
        while i < hi:
            segment = self._segments[i]
            if segment.kind == OPEN and lo <= segment.mate < hi:
                column = self._emit_group(i, segment.mate, column, level)
                i = segment.mate + 1
                continue
            if i > lo and not segment.glued:
                self.out.write(" ")
                column += 1
            self.out.write(segment.text)
            column += len(segment.text)
            i += 1
        return column

    def _emit_group(self, opener: int, closer: int, column: int, level: int) -> int:
        """Emit ``(...)`` flat when it fits, else one interior item per line."""
        width = self._width(opener, closer + 1)
        if column + width <= self.column_limit or not self._has_wrap_points(opener + 1, closer):
            self._write_flat(opener, closer + 1)
            return column + width

        self.out.write("(")
        for start, end in self._items(opener + 1, closer):
            if not any(self._segments[i].text for i in range(start, end)):
                continue
            column = self._wrap(level)
            column = self._emit_item(start, end, column, level + 2)
        column = self._wrap(max(level - 2, 0))
        self.out.write(")")
        return column + 1

    def _write_flat(self, lo: int, hi: int) -> None:
        for i in range(lo, hi):
            segment = self._segments[i]
            if i > lo and not segment.glued:
                self.out.write(" ")
            self.out.write(segment.text)

    def _wrap(self, level: int) -> int:
        indentation = self.indent * max(level, 0)
        self.out.write("\n" + indentation + self._line_prefix)
        return len(indentation) + len(self._line_prefix)


def _next_special(s: str, pos: int, track_brackets: bool) -> int:
    specials = "\n()" if track_brackets else "\n"
    end = len(s)
    for ch in specials:
        found = s.find(ch, pos)
        if found != -1 and found < end:
            end = found
    return end
