"""
ktgen/renderer.py - The two-pass rendering pipeline.

    FileSpec
        │
        ▼
    ┌────────────────────┐
    │  Pass 1 (discover) │   output discarded; records importable
    └────────┬───────────┘   symbols and referenced simple names
             │  frozen import table
             ▼
    ┌────────────────────┐
    │  Pass 2 (print)    │   same traversal, names shortened through
    └────────┬───────────┘   the import table and the scope stack
             │
             ▼
        Kotlin source text

Both passes walk the same immutable tree with fresh writers and fresh
``RenderContext`` objects, so a ``Renderer`` keeps no state between calls
and identical trees always render identically.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Callable, Dict, Mapping, Optional, TextIO

from ktgen.config import RenderConfig
from ktgen.errors import KtgenErrorCodes, StructureError
from ktgen.names import ClassName
from ktgen.specs import FileSpec
from ktgen.template import CodeFragment
from ktgen.writer import CodeWriter, RenderContext

__all__ = ["Renderer"]

logger = logging.getLogger(__name__)


class _NullSink:
    """Write target for the discovery pass."""

    def write(self, s: str) -> int:
        return len(s)


class Renderer:
    """Renders declaration trees to Kotlin source.

    Args:
        config:       Base configuration (defaults to ``RenderConfig()``).
        indent:       Overrides ``config.indent`` when given.
        column_limit: Overrides ``config.column_limit`` when given.
    """

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        indent: Optional[str] = None,
        column_limit: Optional[int] = None,
    ) -> None:
        config = (config or RenderConfig()).with_overrides(
            indent=indent, column_limit=column_limit
        )
        problems = config.validate()
        if problems:
            raise ValueError("invalid render configuration: " + "; ".join(problems))
        self.config = config

    # ─────────────────────────────────────────────────────────────────
    #  Public API
    # ─────────────────────────────────────────────────────────────────

    def render(self, file_spec: FileSpec) -> str:
        out = io.StringIO()
        self.render_to(file_spec, out)
        return out.getvalue()

    def render_to(self, file_spec: FileSpec, out: TextIO) -> None:
        imports = self.collect_imports(file_spec)
        self._run_pass(
            file_spec.package, imports, file_spec.aliases, file_spec.emit, out
        )

    def collect_imports(self, file_spec: FileSpec) -> Dict[str, ClassName]:
        """The import table pass 1 produces: simple name (or alias) to symbol."""
        return self._discover(file_spec.package, file_spec.aliases, file_spec.emit)

    def render_fragment(self, fragment: CodeFragment, namespace: str = "") -> str:
        """Render ``fragment`` on its own, shortening names as a file would.

        Import statements are not part of the result.
        """
        def emit(writer: CodeWriter) -> None:
            writer.emit_code(fragment)

        imports = self._discover(namespace, {}, emit)
        out = io.StringIO()
        self._run_pass(namespace, imports, {}, emit, out)
        return out.getvalue()

    # ─────────────────────────────────────────────────────────────────
    #  Passes
    # ─────────────────────────────────────────────────────────────────

    def _discover(
        self,
        namespace: str,
        aliases: Mapping[str, str],
        emit: Callable[[CodeWriter], Any],
    ) -> Dict[str, ClassName]:
        context = self._run_pass(namespace, {}, aliases, emit, _NullSink())
        imports = context.suggested_imports()
        logger.debug(
            "discovery pass for %r: %d importable, %d referenced, %d imported",
            namespace,
            len(context.importable),
            len(context.referenced_names),
            len(imports),
        )
        return imports

    def _run_pass(
        self,
        namespace: str,
        imports: Mapping[str, ClassName],
        aliases: Mapping[str, str],
        emit: Callable[[CodeWriter], Any],
        out: Any,
    ) -> RenderContext:
        context = RenderContext(
            namespace=namespace,
            imports=imports,
            aliases=aliases,
            implicit_namespaces=self.config.implicit_namespaces,
        )
        writer = CodeWriter(
            out,
            context,
            indent=self.config.indent,
            column_limit=self.config.column_limit,
        )
        emit(writer)
        writer.close()

        if context.scopes:
            names = ", ".join(scope.name for scope in context.scopes)
            raise StructureError(
                f"scopes left open after rendering: {names}",
                code=KtgenErrorCodes.UNBALANCED_SCOPE,
            )
        if writer.statements.in_statement:
            raise StructureError(
                "statement enter %[ has no matching statement exit %]",
                code=KtgenErrorCodes.UNMATCHED_STATEMENT_END,
            )
        return context
