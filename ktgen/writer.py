"""
ktgen/writer.py - Symbol-aware code emission.

``CodeWriter`` interprets the directives of a ``CodeFragment`` and feeds
text to a ``LineWrapper``.  Everything the writer needs to decide *how a
symbol prints* lives in a ``RenderContext`` that is passed in explicitly:

* the unit's namespace and the implicit namespaces (never imported);
* the stack of type declarations currently being emitted (scope);
* the frozen import table used for shortening names (pass 2);
* the importable table and referenced names gathered so far (pass 1).

A writer never decides imports on its own.  The ``Renderer`` runs one
writer to discover importable symbols, freezes them, and runs a second
writer that prints with them.

Name lookup
-----------
``lookup_name`` climbs from the symbol itself to its outermost container.
At each level the simple name (or its alias) is resolved against the scope
stack and the import table; the first level that resolves to the same
symbol fixes the printed text.  If a name resolves to some *other* symbol,
the canonical name is printed.  Symbols of the unit's own namespace or an
implicit namespace print by their nested simple names.  Anything else is
recorded as importable and printed fully qualified for now.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, TextIO

from ktgen.config import DEFAULT_COLUMN_LIMIT, DEFAULT_INDENT
from ktgen.errors import KtgenErrorCodes, StructureError
from ktgen.names import (
    ARRAY,
    ArrayTypeName,
    ClassName,
    LambdaTypeName,
    NullableTypeName,
    ParameterizedTypeName,
    TypeName,
    TypeNameVisitor,
    TypeVariableName,
    WildcardTypeName,
)
from ktgen.statements import StatementFormatter
from ktgen.template import CodeFragment
from ktgen.wrapper import LineWrapper

__all__ = [
    "CodeWriter",
    "RenderContext",
    "TypeEmitter",
    "render_fragment_standalone",
    "render_type",
    "string_literal",
]

logger = logging.getLogger(__name__)

KDOC_PREFIX = " * "
COMMENT_PREFIX = "// "


# ═══════════════════════════════════════════════════════════════════════════
# STRING LITERALS
# ═══════════════════════════════════════════════════════════════════════════

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "$": "\\$",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\b": "\\b",
}


def string_literal(value: str) -> str:
    """Quote ``value`` as a Kotlin string literal."""
    out = ['"']
    for ch in value:
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif ord(ch) < 0x20 or ch == "\x7f":
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


# ═══════════════════════════════════════════════════════════════════════════
# RENDER CONTEXT
# ═══════════════════════════════════════════════════════════════════════════

class RenderContext:
    """Per-pass name resolution state.

    ``imports`` is read-only during a pass; ``importable`` and
    ``referenced_names`` only grow.  Aliases (canonical name to alias) are
    seeded into ``importable`` first so they always win.
    """

    def __init__(
        self,
        namespace: str = "",
        imports: Optional[Mapping[str, ClassName]] = None,
        aliases: Optional[Mapping[str, str]] = None,
        implicit_namespaces: Iterable[str] = ("kotlin",),
    ) -> None:
        self.namespace = namespace
        self.imports: Mapping[str, ClassName] = dict(imports or {})
        self.aliases: Dict[str, str] = dict(aliases or {})
        self.implicit_namespaces = frozenset(implicit_namespaces)
        self.scopes: List[Any] = []
        self.importable: Dict[str, ClassName] = {}
        self.referenced_names: Set[str] = set()

        for canonical, alias in self.aliases.items():
            self.importable.setdefault(alias, ClassName.best_guess(canonical))

    # --- Scope stack ---

    def push_scope(self, type_spec: Any) -> None:
        self.scopes.append(type_spec)

    def pop_scope(self, type_spec: Any) -> None:
        if not self.scopes:
            raise StructureError(
                f"pop of {type_spec.name} with an empty scope stack",
                code=KtgenErrorCodes.UNBALANCED_SCOPE,
            )
        if self.scopes[-1] is not type_spec:
            raise StructureError(
                f"pop of {type_spec.name} but the innermost scope is {self.scopes[-1].name}",
                code=KtgenErrorCodes.UNBALANCED_SCOPE,
            )
        self.scopes.pop()

    # --- Imports ---

    def mark_importable(self, class_name: ClassName) -> None:
        alias = self.aliases.get(class_name.canonical_name)
        if alias is not None:
            self.importable.setdefault(alias, class_name.as_non_null())
            return
        top = class_name.top_level_class_name()
        if not top.package:
            return
        # First discovery keeps the simple name.
        claimed = self.importable.setdefault(top.simple_name, top)
        if claimed != top:
            logger.debug("%s collides with %s; it stays qualified", top, claimed)

    def suggested_imports(self) -> Dict[str, ClassName]:
        """Importable symbols minus those shadowed by referenced simple names."""
        aliased = set(self.aliases.values())
        return {
            simple: class_name
            for simple, class_name in self.importable.items()
            if simple in aliased or simple not in self.referenced_names
        }

    def import_statements(self) -> List[str]:
        """``import`` targets for the frozen table, sorted by canonical name."""
        statements = []
        ordered = sorted(self.imports.items(), key=lambda kv: (kv[1].canonical_name, kv[0]))
        for simple, class_name in ordered:
            if simple == class_name.simple_name:
                statements.append(class_name.canonical_name)
            else:
                statements.append(f"{class_name.canonical_name} as {simple}")
        return statements

    def resolve(self, simple_name: str) -> Optional[ClassName]:
        """The symbol ``simple_name`` denotes here, or ``None``."""
        for depth in range(len(self.scopes) - 1, -1, -1):
            if simple_name in _nested_type_names(self.scopes[depth]):
                return self._stack_class_name(depth).nested_class(simple_name)

        if self.scopes and self.scopes[0].name == simple_name:
            return ClassName(self.namespace, simple_name)

        return self.imports.get(simple_name)

    def _stack_class_name(self, depth: int) -> ClassName:
        class_name = ClassName(self.namespace, self.scopes[0].name)
        for scope in self.scopes[1:depth + 1]:
            class_name = class_name.nested_class(scope.name)
        return class_name


def _nested_type_names(type_spec: Any) -> Set[str]:
    return {nested.name for nested in getattr(type_spec, "types", ())}


# ═══════════════════════════════════════════════════════════════════════════
# CODE WRITER
# ═══════════════════════════════════════════════════════════════════════════

class CodeWriter:
    """Writes fragments and declarations with lazy indentation.

    Indentation is emitted only before non-empty content, so blank lines
    carry no trailing whitespace.
    """

    def __init__(
        self,
        out: TextIO,
        context: Optional[RenderContext] = None,
        indent: str = DEFAULT_INDENT,
        column_limit: int = DEFAULT_COLUMN_LIMIT,
    ) -> None:
        self.context = context or RenderContext()
        self.indent_unit = indent
        self.out = LineWrapper(out, indent, column_limit)
        self.indent_level = 0
        self.kdoc = False
        self.comment = False
        self.statements = StatementFormatter(self.indent, self.unindent)
        self._trailing_newline = True
        self._line = ""
        self._types = TypeEmitter(self)

    # --- Indentation ---

    def indent(self, levels: int = 1) -> "CodeWriter":
        self.indent_level += levels
        return self

    def unindent(self, levels: int = 1) -> "CodeWriter":
        if self.indent_level - levels < 0:
            raise StructureError(
                f"cannot unindent {levels} from {self.indent_level}",
                code=KtgenErrorCodes.NEGATIVE_INDENT,
            )
        self.indent_level -= levels
        return self

    # --- Scope ---

    def push_scope(self, type_spec: Any) -> "CodeWriter":
        self.context.push_scope(type_spec)
        return self

    def pop_scope(self, type_spec: Any) -> "CodeWriter":
        self.context.pop_scope(type_spec)
        return self

    # --- Raw emission ---

    def emit(self, s: str, non_wrapping: bool = False) -> "CodeWriter":
        """Emit ``s``, indenting each new line lazily."""
        first = True
        for line in s.split("\n"):
            if not first:
                if (self.kdoc or self.comment) and self._trailing_newline:
                    self._emit_indentation()
                    self.out.append_non_wrapping(" *" if self.kdoc else "//")
                self.out.newline()
                completed, self._line = self._line, ""
                self._trailing_newline = True
                self.statements.line_break(completed)
            first = False
            if not line:
                continue

            if self._trailing_newline:
                self._emit_line_start()

            if non_wrapping:
                self.out.append_non_wrapping(line)
            elif self.kdoc:
                self.out.append(line, self.indent_level, KDOC_PREFIX, track_brackets=False)
            else:
                self.out.append(line, self.indent_level + 2, track_brackets=not self.comment)
            self._line += line
            self._trailing_newline = False
        return self

    def _emit_indentation(self) -> None:
        text = self.indent_unit * self.indent_level
        self.out.append_non_wrapping(text)
        self._line += text

    def _emit_line_start(self) -> None:
        self._emit_indentation()
        if self.kdoc:
            self.out.append_non_wrapping(KDOC_PREFIX)
        elif self.comment:
            self.out.append_non_wrapping(COMMENT_PREFIX)

    def wrapping_space(self) -> None:
        if self._trailing_newline:
            self._emit_line_start()
            self._trailing_newline = False
        if self.kdoc:
            self.out.wrapping_space(self.indent_level, KDOC_PREFIX)
        else:
            self.out.wrapping_space(self.indent_level + 2)
        self._line += " "

    # --- Fragments ---

    def emit_code(
        self,
        fragment: Any,
        *args: Any,
        ensure_trailing_newline: bool = False,
    ) -> "CodeWriter":
        """Interpret a fragment (or a positional format string and its args)."""
        if isinstance(fragment, str):
            fragment = CodeFragment.of(fragment, *args)
        values = iter(fragment.args)
        for part in fragment.format_parts:
            if part == "%L":
                self._emit_literal(next(values))
            elif part == "%N":
                self.emit(next(values))
            elif part == "%S":
                value = next(values)
                self.emit("null" if value is None else string_literal(value), non_wrapping=True)
            elif part == "%T":
                self.emit_type(next(values))
            elif part == "%%":
                self.emit("%")
            elif part == "%W":
                self.wrapping_space()
            elif part == "%>":
                self.indent()
            elif part == "%<":
                self.unindent()
            elif part == "%[":
                self.statements.begin()
            elif part == "%]":
                self.statements.end()
            else:
                self.emit(part)
        if ensure_trailing_newline and self.out.has_pending_segments:
            self.emit("\n")
        return self

    def _emit_literal(self, value: Any) -> None:
        if isinstance(value, CodeFragment):
            self.emit_code(value)
        elif hasattr(value, "emit") and not isinstance(value, type):
            value.emit(self)
        elif isinstance(value, bool):
            self.emit("true" if value else "false")
        elif value is None:
            self.emit("null")
        else:
            self.emit(str(value))

    def emit_kdoc(self, fragment: CodeFragment) -> None:
        if fragment.is_empty():
            return
        self.emit("/**\n")
        self.kdoc = True
        try:
            self.emit_code(fragment, ensure_trailing_newline=True)
        finally:
            self.kdoc = False
        self.emit(" */\n")

    def emit_comment(self, fragment: CodeFragment) -> None:
        # Forces the prefix on the first line.
        self._trailing_newline = True
        self.comment = True
        try:
            self.emit_code(fragment)
            self.emit("\n")
        finally:
            self.comment = False

    # --- Declarations ---

    def emit_annotations(self, annotations: Sequence[Any], inline: bool) -> None:
        for annotation in annotations:
            annotation.emit(self)
            self.emit(" " if inline else "\n")

    def emit_modifiers(self, modifiers: Iterable[Any]) -> None:
        for modifier in sorted(set(modifiers), key=_declaration_order):
            self.emit(modifier.keyword)
            self.emit(" ")

    def emit_type_variables(self, type_variables: Sequence[TypeVariableName]) -> None:
        """``<T, out R : Bound>``; extra bounds go to ``emit_where_block``."""
        if not type_variables:
            return
        self.emit("<")
        for index, variable in enumerate(type_variables):
            if index > 0:
                self.emit(",")
                self.wrapping_space()
            if variable.reified:
                self.emit("reified ")
            if variable.variance is not None:
                self.emit(variable.variance.value + " ")
            self.emit(variable.name)
            if len(variable.bounds) == 1:
                self.emit_code(" : %T", variable.bounds[0])
        self.emit(">")

    def emit_where_block(self, type_variables: Sequence[TypeVariableName]) -> None:
        constraints = [
            (variable, bound)
            for variable in type_variables
            if len(variable.bounds) > 1
            for bound in variable.bounds
        ]
        if not constraints:
            return
        self.emit(" where ")
        for index, (variable, bound) in enumerate(constraints):
            if index > 0:
                self.emit(", ")
            self.emit_code("%L : %T", variable.name, bound)

    # --- Types ---

    def emit_type(self, type_name: TypeName) -> None:
        type_name.accept(self._types)

    def lookup_name(self, class_name: ClassName) -> str:
        """The shortest name for ``class_name`` that resolves back to it."""
        context = self.context
        target = class_name.as_non_null()
        name_resolved = False
        current: Optional[ClassName] = target
        while current is not None:
            alias = context.aliases.get(current.canonical_name)
            simple_name = alias or current.simple_name
            resolved = context.resolve(simple_name)
            name_resolved = resolved is not None

            if resolved == current:
                if alias is None:
                    context.referenced_names.add(target.top_level_class_name().simple_name)
                nested = target.simple_names[len(current.simple_names):]
                return ".".join((simple_name,) + nested)
            current = current.enclosing_class_name()

        if name_resolved:
            return target.canonical_name

        if (
            target.package == context.namespace
            or target.package in context.implicit_namespaces
        ):
            context.referenced_names.add(target.top_level_class_name().simple_name)
            return ".".join(target.simple_names)

        if not self.kdoc:
            context.mark_importable(target)
        return target.canonical_name

    def close(self) -> None:
        self.out.close()


def _declaration_order(modifier: Any) -> int:
    return modifier.order


# ═══════════════════════════════════════════════════════════════════════════
# TYPE EMISSION
# ═══════════════════════════════════════════════════════════════════════════

class TypeEmitter(TypeNameVisitor):
    """Prints each type-reference variant onto a ``CodeWriter``."""

    def __init__(self, writer: CodeWriter) -> None:
        self.writer = writer

    def visit_class_name(self, node: ClassName) -> None:
        self.writer.emit(self.writer.lookup_name(node))
        if node.nullable:
            self.writer.emit("?")

    def visit_parameterized(self, node: ParameterizedTypeName) -> None:
        writer = self.writer
        if node.enclosing is not None:
            node.enclosing.accept(self)
            writer.emit("." + node.raw.simple_name)
        else:
            node.raw.accept(self)
        writer.emit("<")
        for index, argument in enumerate(node.type_arguments):
            if index > 0:
                writer.emit(",")
                writer.wrapping_space()
            argument.accept(self)
        writer.emit(">")

    def visit_type_variable(self, node: TypeVariableName) -> None:
        self.writer.emit(node.name)

    def visit_wildcard(self, node: WildcardTypeName) -> None:
        if node.lower_bound is not None:
            self.writer.emit("in ")
            node.lower_bound.accept(self)
        elif node.is_star:
            self.writer.emit("*")
        else:
            self.writer.emit("out ")
            node.upper_bound.accept(self)

    def visit_lambda(self, node: LambdaTypeName) -> None:
        writer = self.writer
        if node.suspending:
            writer.emit("suspend ")
        if node.receiver is not None:
            if isinstance(node.receiver, LambdaTypeName):
                writer.emit("(")
                node.receiver.accept(self)
                writer.emit(")")
            else:
                node.receiver.accept(self)
            writer.emit(".")
        writer.emit("(")
        for index, parameter in enumerate(node.parameters):
            if index > 0:
                writer.emit(", ")
            parameter.accept(self)
        writer.emit(") -> ")
        node.return_type.accept(self)

    def visit_array(self, node: ArrayTypeName) -> None:
        self.writer.emit(self.writer.lookup_name(ARRAY))
        self.writer.emit("<")
        node.component.accept(self)
        self.writer.emit(">")

    def visit_nullable(self, node: NullableTypeName) -> None:
        if isinstance(node.inner, LambdaTypeName):
            self.writer.emit("(")
            node.inner.accept(self)
            self.writer.emit(")?")
        else:
            node.inner.accept(self)
            self.writer.emit("?")


# ═══════════════════════════════════════════════════════════════════════════
# STANDALONE RENDERING
# ═══════════════════════════════════════════════════════════════════════════

def _standalone_writer(sink: io.StringIO) -> CodeWriter:
    # No implicit namespaces: every symbol prints fully qualified.
    context = RenderContext(implicit_namespaces=())
    return CodeWriter(sink, context, column_limit=2 ** 31 - 1)


def render_type(type_name: TypeName) -> str:
    sink = io.StringIO()
    writer = _standalone_writer(sink)
    writer.emit_type(type_name)
    writer.close()
    return sink.getvalue()


def render_fragment_standalone(fragment: CodeFragment) -> str:
    sink = io.StringIO()
    writer = _standalone_writer(sink)
    writer.emit_code(fragment)
    writer.close()
    return sink.getvalue()
