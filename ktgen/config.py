"""ktgen/config.py - Rendering configuration.

A single frozen dataclass carries every knob the renderer reads.  It is
per-renderer state: two renderers with different configurations never
observe each other.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Tuple

__all__ = [
    "DEFAULT_COLUMN_LIMIT",
    "DEFAULT_INDENT",
    "RenderConfig",
]

DEFAULT_INDENT = "  "
DEFAULT_COLUMN_LIMIT = 100


@dataclass(frozen=True)
class RenderConfig:
    """Tuning knobs for a ``Renderer``."""

    indent: str = DEFAULT_INDENT
    column_limit: int = DEFAULT_COLUMN_LIMIT
    # Namespaces whose symbols are visible without an import.
    implicit_namespaces: Tuple[str, ...] = ("kotlin",)

    def validate(self) -> List[str]:
        """Return a list of validation problems (empty if valid)."""
        problems: List[str] = []
        if self.column_limit <= 0:
            problems.append("column_limit must be positive")
        if not self.indent or self.indent.strip():
            problems.append("indent must be a non-empty run of whitespace")
        if "" in self.implicit_namespaces:
            problems.append("implicit_namespaces may not contain the empty namespace")
        return problems

    def with_overrides(self, **changes) -> "RenderConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
