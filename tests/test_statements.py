# tests/test_statements.py
"""
Continuation-indent selection for multi-line statements.
"""

import io
import logging
import re

import pytest

from ktgen.errors import KtgenErrorCodes, StructureError
from ktgen.statements import ContinuationStyle, StatementFormatter, choose_continuation
from ktgen.writer import CodeWriter


class Recorder:
    """Collects indent/unindent calls made by a StatementFormatter."""

    def __init__(self):
        self.calls = []

    def formatter(self):
        return StatementFormatter(
            lambda levels: self.calls.append(("indent", levels)),
            lambda levels: self.calls.append(("unindent", levels)),
        )


def render(fmt, *args):
    out = io.StringIO()
    writer = CodeWriter(out)
    writer.emit_code(fmt, *args)
    writer.close()
    return out.getvalue()


class TestChooseContinuation:

    @pytest.mark.parametrize("line, style", [
        ("if (ready) {", ContinuationStyle.NONE),
        ("items.map { item ->", ContinuationStyle.NONE),
        ("run {   ", ContinuationStyle.NONE),
        ('val text = """', ContinuationStyle.RAW_STRING),
        ("val total = first +", ContinuationStyle.EXPRESSION),
        ("return builder", ContinuationStyle.EXPRESSION),
    ])
    def test_trailing_content(self, line, style):
        assert choose_continuation(line) is style

    def test_levels(self):
        assert ContinuationStyle.NONE.levels == 0
        assert ContinuationStyle.RAW_STRING.levels == 1
        assert ContinuationStyle.EXPRESSION.levels == 2


class TestStatementFormatter:

    def test_expression_indents_twice_then_restores(self):
        recorder = Recorder()
        formatter = recorder.formatter()
        formatter.begin()
        formatter.line_break("val x = compute(")
        formatter.line_break("  more")
        formatter.end()
        assert recorder.calls == [("indent", 2), ("unindent", 2)]

    def test_line_breaks_are_counted_and_logged(self, caplog):
        formatter = Recorder().formatter()
        formatter.begin()
        formatter.line_break("call(")
        formatter.line_break("  arg)")
        assert formatter.pending.line == 2
        with caplog.at_level(logging.DEBUG, logger="ktgen.statements"):
            formatter.end()
        assert "statement closed after 2 line break(s)" in caplog.text

    def test_block_opener_adds_nothing(self):
        recorder = Recorder()
        formatter = recorder.formatter()
        formatter.begin()
        formatter.line_break("val f = run {")
        formatter.line_break("body()")
        formatter.end()
        assert recorder.calls == []

    def test_single_line_statement(self):
        recorder = Recorder()
        formatter = recorder.formatter()
        formatter.begin()
        formatter.end()
        assert recorder.calls == []
        assert not formatter.in_statement

    def test_line_break_outside_statement_is_ignored(self):
        recorder = Recorder()
        formatter = recorder.formatter()
        formatter.line_break("x +")
        assert recorder.calls == []

    def test_nested_begin(self):
        formatter = Recorder().formatter()
        formatter.begin()
        with pytest.raises(StructureError, match=re.escape(
                "statement enter %[ followed by statement enter %[")) as info:
            formatter.begin()
        assert info.value.code is KtgenErrorCodes.NESTED_STATEMENT

    def test_unmatched_end(self):
        formatter = Recorder().formatter()
        with pytest.raises(StructureError, match=re.escape(
                "statement exit %] has no matching statement enter %[")):
            formatter.end()


class TestStatementsThroughWriter:

    def test_expression_continuation(self):
        text = render("%[val x = listOf(\n1,\n2)\n%]")
        assert text == "val x = listOf(\n    1,\n    2)\n"

    def test_block_continuation(self):
        text = render("%[val f = run {\nwork()\n}\n%]")
        assert text == "val f = run {\nwork()\n}\n"

    def test_raw_string_continuation(self):
        text = render('%[val s = """\nhello\n"""\n%]')
        assert text == 'val s = """\n  hello\n  """\n'

    def test_indent_restored_after_statement(self):
        text = render("%[a +\nb\n%]c\n")
        assert text == "a +\n    b\nc\n"

    def test_nested_statement_in_writer(self):
        with pytest.raises(StructureError):
            render("%[a%[b")
