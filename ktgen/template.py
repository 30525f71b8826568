#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ktgen/template.py
=================

Template engine: format strings with typed placeholders.

A ``CodeFragment`` is an immutable sequence of literal text parts interleaved
with directives.  Fragments are built once and rendered any number of times;
how an argument prints (for instance the short name chosen for a type) depends
on the writer that renders it, never on the fragment.

Directives
----------
==========  ==================================================================
``%L``      literal; fragments and declarations emit themselves
``%N``      name; keywords and non-identifiers are backtick-escaped
``%S``      string; quoted and escaped, ``None`` prints ``null``
``%T``      type reference; imported when possible
``%%``      a literal percent sign
``%W``      soft-wrap space: a space, or a newline when the line is too long
``%>``      increase the indentation level
``%<``      decrease the indentation level
``%[``      begin a statement
``%]``      end a statement
==========  ==================================================================

Binding modes
-------------
**Positional** (``CodeFragment.of``): bare directives consume arguments left to
right, ``%2L`` consumes the second argument.  A format string uses one style
or the other, never both.

**Named** (``CodeFragment.named``): ``%name:T`` looks ``name`` up in a mapping.
Names start with a lowercase letter and may repeat.

Both modes tokenize the format string with a parsimonious PEG grammar and then
bind and validate the token stream.  Every supplied argument must be used.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from ktgen.errors import KtgenErrorCodes, TemplateError
from ktgen.names import PY_BUILTIN_TYPES, TypeName, escape_if_necessary

__all__ = [
    "ARGUMENT_CODES",
    "NO_ARG_CODES",
    "CodeFragment",
    "join_to_code",
    "parse_named",
    "parse_positional",
    "scan_directives",
]


#: Directive codes that consume an argument.
ARGUMENT_CODES = frozenset("LNST")

#: Directive codes that never take an argument (and never take an index).
NO_ARG_CODES = frozenset("%W><[]")

_STATEMENT_MARKERS = frozenset({"%>", "%<", "%[", "%]"})

_LOWERCASE = re.compile(r"[a-z][A-Za-z0-9_]*")


# ═══════════════════════════════════════════════════════════════════════════
# FORMAT STRING GRAMMARS (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════════════

POSITIONAL_GRAMMAR = Grammar(r'''
    fragment        = chunk*
    chunk           = placeholder / text
    placeholder     = "%" label code
    label           = ~r"[0-9]*"
    code            = ~r"[\s\S]?"
    text            = ~r"[^%]+"
''')

NAMED_GRAMMAR = Grammar(r'''
    fragment        = chunk*
    chunk           = placeholder / text
    placeholder     = "%" label code
    label           = ~r"(?:[A-Za-z_][A-Za-z0-9_]*:(?=[A-Za-z]))?"
    code            = ~r"[\s\S]?"
    text            = ~r"[^%]+"
''')


@dataclass(frozen=True)
class _Token:
    """One lexical unit of a format string."""

    text: str
    start: int
    placeholder: bool = False
    label: str = ""
    code: str = ""


class _TokenCollector(NodeVisitor):
    """Flattens a format-string parse tree into ``_Token`` objects."""

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or node

    def visit_fragment(self, node: Node, visited_children: List[Any]) -> List[_Token]:
        return list(visited_children)

    def visit_chunk(self, node: Node, visited_children: List[Any]) -> _Token:
        return visited_children[0]

    def visit_placeholder(self, node: Node, visited_children: List[Any]) -> _Token:
        _, label, code = visited_children
        return _Token(node.text, node.start, placeholder=True, label=label, code=code)

    def visit_label(self, node: Node, visited_children: List[Any]) -> str:
        return node.text.rstrip(":")

    def visit_code(self, node: Node, visited_children: List[Any]) -> str:
        return node.text

    def visit_text(self, node: Node, visited_children: List[Any]) -> _Token:
        return _Token(node.text, node.start)


def _tokenize(grammar: Grammar, format_string: str) -> List[_Token]:
    if not format_string:
        return []
    return _TokenCollector().visit(grammar.parse(format_string))


def scan_directives(format_string: str) -> List[Tuple[str, str]]:
    """``(index, code)`` for each placeholder of a positional format string.

    ``index`` is the raw digit text (empty for bare directives).  Nothing is
    validated here.
    """
    return [
        (token.label, token.code)
        for token in _tokenize(POSITIONAL_GRAMMAR, format_string)
        if token.placeholder
    ]


# ═══════════════════════════════════════════════════════════════════════════
# ARGUMENT COERCION
# ═══════════════════════════════════════════════════════════════════════════

def _arg_to_name(value: Any) -> str:
    if isinstance(value, str):
        return escape_if_necessary(value)
    name = getattr(value, "name", None)
    if isinstance(name, str):
        return escape_if_necessary(name)
    raise TemplateError(
        f"expected name but was {value!r}",
        code=KtgenErrorCodes.ARGUMENT_TYPE,
    )


def _arg_to_string(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _arg_to_type(value: Any) -> TypeName:
    if isinstance(value, TypeName):
        return value
    if isinstance(value, type) and value in PY_BUILTIN_TYPES:
        return PY_BUILTIN_TYPES[value]
    raise TemplateError(
        f"expected type but was {value!r}",
        code=KtgenErrorCodes.ARGUMENT_TYPE,
    )


def _coerce(format_string: str, code: str, value: Any) -> Any:
    if code == "N":
        return _arg_to_name(value)
    if code == "L":
        return value
    if code == "S":
        return _arg_to_string(value)
    if code == "T":
        return _arg_to_type(value)
    raise TemplateError(f"invalid format string: '{format_string}'")


# ═══════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════

def parse_positional(
    format_string: str, args: Sequence[Any]
) -> Tuple[List[str], List[Any]]:
    """Bind bare or indexed directives to ``args``.

    Returns the format parts and the coerced argument list, in directive
    order.  Raises ``TemplateError`` before anything is produced when the
    directives and arguments do not line up exactly.
    """
    parts: List[str] = []
    bound: List[Any] = []
    has_relative = False
    has_indexed = False
    relative_count = 0
    indexed_count = [0] * len(args)

    for token in _tokenize(POSITIONAL_GRAMMAR, format_string):
        if not token.placeholder:
            parts.append(token.text)
            continue

        c = token.code
        if not c:
            raise TemplateError(
                f"dangling format characters in '{format_string}'",
                code=KtgenErrorCodes.DANGLING_PLACEHOLDER,
            )

        if c in NO_ARG_CODES:
            if token.label:
                raise TemplateError(
                    "%%, %>, %<, %[, %], and %W may not have an index",
                    code=KtgenErrorCodes.INDEX_ON_NO_ARG_DIRECTIVE,
                )
            parts.append("%" + c)
            continue

        if c not in ARGUMENT_CODES:
            raise TemplateError(
                f"unknown format %{c} at {token.start + len(token.text) - 1} in '{format_string}'",
                code=KtgenErrorCodes.UNKNOWN_DIRECTIVE,
            )

        if token.label:
            index = int(token.label) - 1
            has_indexed = True
            if 0 <= index < len(args):
                indexed_count[index] += 1
        else:
            index = relative_count
            has_relative = True
            relative_count += 1

        if not 0 <= index < len(args):
            raise TemplateError(
                f"index {index + 1} for '{token.text}' not in range "
                f"(received {len(args)} arguments)",
                code=KtgenErrorCodes.INDEX_OUT_OF_RANGE,
            )
        if has_indexed and has_relative:
            raise TemplateError(
                "cannot mix indexed and positional parameters",
                code=KtgenErrorCodes.MIXED_ARGUMENTS,
            )

        bound.append(_coerce(format_string, c, args[index]))
        parts.append("%" + c)

    if has_indexed:
        unused = [f"%{i + 1}" for i, count in enumerate(indexed_count) if count == 0]
        if unused:
            s = "" if len(unused) == 1 else "s"
            raise TemplateError(
                f"unused argument{s}: {', '.join(unused)}",
                code=KtgenErrorCodes.UNUSED_ARGUMENTS,
            )
    elif relative_count < len(args):
        raise TemplateError(
            f"unused arguments: expected {relative_count}, received {len(args)}",
            code=KtgenErrorCodes.UNUSED_ARGUMENTS,
        )

    return parts, bound


def parse_named(
    format_string: str, arguments: Mapping[str, Any]
) -> Tuple[List[str], List[Any]]:
    """Bind ``%name:X`` directives to values in ``arguments``."""
    for name in arguments:
        if not _LOWERCASE.fullmatch(name):
            raise TemplateError(
                f"argument '{name}' must start with a lowercase character",
                code=KtgenErrorCodes.ARGUMENT_CASE,
            )

    parts: List[str] = []
    bound: List[Any] = []
    used = set()

    for token in _tokenize(NAMED_GRAMMAR, format_string):
        if not token.placeholder:
            parts.append(token.text)
            continue

        c = token.code
        if token.label:
            name = token.label
            if not _LOWERCASE.fullmatch(name):
                raise TemplateError(
                    f"argument '{name}' must start with a lowercase character",
                    code=KtgenErrorCodes.ARGUMENT_CASE,
                )
            if name not in arguments:
                raise TemplateError(
                    f"Missing named argument for %{name}",
                    code=KtgenErrorCodes.MISSING_NAMED_ARGUMENT,
                )
            if c not in ARGUMENT_CODES:
                raise TemplateError(
                    f"unknown format %{c} at {token.start + len(token.text) - 1} in '{format_string}'",
                    code=KtgenErrorCodes.UNKNOWN_DIRECTIVE,
                )
            used.add(name)
            bound.append(_coerce(format_string, c, arguments[name]))
            parts.append("%" + c)
            continue

        if not c:
            raise TemplateError(
                "dangling % at end",
                code=KtgenErrorCodes.DANGLING_PLACEHOLDER,
            )
        if c not in NO_ARG_CODES:
            raise TemplateError(
                f"unknown format %{c} at {token.start + 1} in '{format_string}'",
                code=KtgenErrorCodes.UNKNOWN_DIRECTIVE,
            )
        parts.append("%" + c)

    unused = [name for name in arguments if name not in used]
    if unused:
        s = "" if len(unused) == 1 else "s"
        raise TemplateError(
            f"unused named argument{s}: {', '.join(unused)}",
            code=KtgenErrorCodes.UNUSED_ARGUMENTS,
        )

    return parts, bound


# ═══════════════════════════════════════════════════════════════════════════
# CODE FRAGMENT
# ═══════════════════════════════════════════════════════════════════════════

def _consumes_argument(part: str) -> bool:
    return len(part) == 2 and part[0] == "%" and part[1] in ARGUMENT_CODES


class CodeFragment:
    """An immutable, reusable piece of templated code.

    Fragments compare equal when they render to the same standalone text.
    """

    __slots__ = ("format_parts", "args")

    def __init__(self, format_parts: Iterable[str], args: Iterable[Any]) -> None:
        object.__setattr__(self, "format_parts", tuple(format_parts))
        object.__setattr__(self, "args", tuple(args))

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    # --- Construction ---

    @classmethod
    def of(cls, format_string: str, *args: Any) -> "CodeFragment":
        return cls.builder().add(format_string, *args).build()

    @classmethod
    def named(cls, format_string: str, arguments: Mapping[str, Any]) -> "CodeFragment":
        return cls.builder().add_named(format_string, arguments).build()

    @staticmethod
    def builder() -> "CodeFragment.Builder":
        return CodeFragment.Builder()

    def to_builder(self) -> "CodeFragment.Builder":
        builder = CodeFragment.Builder()
        builder._format_parts.extend(self.format_parts)
        builder._args.extend(self.args)
        return builder

    # --- Queries ---

    def is_empty(self) -> bool:
        return not self.format_parts

    def __bool__(self) -> bool:
        return not self.is_empty()

    def has_statements(self) -> bool:
        return "%[" in self.format_parts

    def trim(self) -> "CodeFragment":
        """Drop leading and trailing indent/unindent/statement markers."""
        start, end = 0, len(self.format_parts)
        while start < end and self.format_parts[start] in _STATEMENT_MARKERS:
            start += 1
        while start < end and self.format_parts[end - 1] in _STATEMENT_MARKERS:
            end -= 1
        if start == 0 and end == len(self.format_parts):
            return self
        return CodeFragment(self.format_parts[start:end], self.args)

    def argument_count(self) -> int:
        return sum(1 for part in self.format_parts if _consumes_argument(part))

    # --- Rendering ---

    def __str__(self) -> str:
        from ktgen.writer import render_fragment_standalone

        return render_fragment_standalone(self)

    def __repr__(self) -> str:
        return f"CodeFragment({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, CodeFragment):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    # ═══════════════════════════════════════════════════════════════════
    # BUILDER
    # ═══════════════════════════════════════════════════════════════════

    class Builder:
        """Append-only accumulator for a ``CodeFragment``."""

        def __init__(self) -> None:
            self._format_parts: List[str] = []
            self._args: List[Any] = []

        def is_empty(self) -> bool:
            return not self._format_parts

        def add(self, format_string: str, *args: Any) -> "CodeFragment.Builder":
            parts, bound = parse_positional(format_string, args)
            self._format_parts.extend(parts)
            self._args.extend(bound)
            return self

        def add_named(
            self, format_string: str, arguments: Mapping[str, Any]
        ) -> "CodeFragment.Builder":
            parts, bound = parse_named(format_string, arguments)
            self._format_parts.extend(parts)
            self._args.extend(bound)
            return self

        def add_fragment(self, fragment: "CodeFragment") -> "CodeFragment.Builder":
            self._format_parts.extend(fragment.format_parts)
            self._args.extend(fragment.args)
            return self

        def add_statement(self, format_string: str, *args: Any) -> "CodeFragment.Builder":
            self._format_parts.append("%[")
            self.add(format_string, *args)
            self._format_parts.extend(["\n", "%]"])
            return self

        def begin_control_flow(self, control_flow: str, *args: Any) -> "CodeFragment.Builder":
            """Open a ``{`` block, e.g. ``begin_control_flow("if (%N > 0)", "x")``.

            A brace already ending the text (``"list.forEach { item ->"``) is kept.
            """
            self.add(_with_opening_brace(control_flow), *args)
            return self.indent()

        def next_control_flow(self, control_flow: str, *args: Any) -> "CodeFragment.Builder":
            self.unindent()
            self.add("} " + control_flow + " {\n", *args)
            return self.indent()

        def end_control_flow(self) -> "CodeFragment.Builder":
            self.unindent()
            return self.add("}\n")

        def indent(self) -> "CodeFragment.Builder":
            self._format_parts.append("%>")
            return self

        def unindent(self) -> "CodeFragment.Builder":
            self._format_parts.append("%<")
            return self

        def build(self) -> "CodeFragment":
            return CodeFragment(self._format_parts, self._args)


def _with_opening_brace(control_flow: str) -> str:
    for ch in reversed(control_flow):
        if ch == "{":
            return control_flow + "\n"
        if ch == "}":
            break
    return control_flow + " {\n"


CodeFragment.EMPTY = CodeFragment((), ())  # type: ignore[attr-defined]


def join_to_code(
    fragments: Iterable[CodeFragment],
    separator: str = ", ",
    prefix: str = "",
    suffix: str = "",
) -> CodeFragment:
    """Join fragments with ``separator``, like ``str.join``."""
    blocks = list(fragments)
    placeholders = _escape_percent(separator).join("%L" for _ in blocks)
    return CodeFragment.of(_escape_percent(prefix) + placeholders + _escape_percent(suffix), *blocks)


def _escape_percent(text: str) -> str:
    return text.replace("%", "%%")
