# ktgen/errors.py
"""
ktgen Error Types

This module provides the error infrastructure for the ktgen rendering
pipeline. Every failure is a caller-contract violation: nothing is retried,
callers fix their input and render again.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  KtgenError (base)                                                          │
│  ├── TemplateError     - Malformed format strings, argument mismatches      │
│  ├── StructureError    - Unbalanced scopes/statements, bad wildcard shapes  │
│  └── SymbolError       - Invalid identifiers, malformed qualified names     │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a unique code following the pattern KTG-XXXX where XXXX is a
4-digit number in ranges:
  - 1000-1999: Template errors (raised at parse time)
  - 2000-2999: Structure errors (raised at point of violation)
  - 3000-3999: Symbol errors (raised at construction time)
  - 9000-9999: Internal errors

Example Usage:
──────────────
    from ktgen.errors import TemplateError, KtgenErrorCodes

    try:
        CodeFragment.of("%L %L", "only-one")
    except TemplateError as e:
        assert e.code is KtgenErrorCodes.INDEX_OUT_OF_RANGE
        print(e.to_gcc_format())
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorPhase(Enum):
    """
    Pipeline phase where the error occurred.
    """

    TEMPLATE = "template"      # Format string parsing and argument binding
    STRUCTURE = "structure"    # Writer state machines and type shapes
    SYMBOL = "symbol"          # Qualified name construction
    INTERNAL = "internal"      # Library internals


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error codes for ktgen errors.

    Error codes follow the pattern PREFIX-NNNN where PREFIX is ``KTG`` and
    NNNN is a 4-digit number.
    """

    __slots__ = ("prefix", "number", "name", "phase")

    def __init__(self, prefix: str, number: int, name: str, phase: ErrorPhase) -> None:
        self.prefix = prefix
        self.number = number
        self.name = name
        self.phase = phase

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return NotImplemented


def _code(number: int, name: str, phase: ErrorPhase) -> ErrorCode:
    return ErrorCode("KTG", number, name, phase)


class KtgenErrorCodes:
    """Registry of every error code raised by ktgen."""

    # Template errors (1000-1999)
    DANGLING_PLACEHOLDER = _code(1001, "DANGLING_PLACEHOLDER", ErrorPhase.TEMPLATE)
    UNKNOWN_DIRECTIVE = _code(1002, "UNKNOWN_DIRECTIVE", ErrorPhase.TEMPLATE)
    INDEX_ON_NO_ARG_DIRECTIVE = _code(1003, "INDEX_ON_NO_ARG_DIRECTIVE", ErrorPhase.TEMPLATE)
    INDEX_OUT_OF_RANGE = _code(1004, "INDEX_OUT_OF_RANGE", ErrorPhase.TEMPLATE)
    MIXED_ARGUMENTS = _code(1005, "MIXED_ARGUMENTS", ErrorPhase.TEMPLATE)
    UNUSED_ARGUMENTS = _code(1006, "UNUSED_ARGUMENTS", ErrorPhase.TEMPLATE)
    ARGUMENT_CASE = _code(1007, "ARGUMENT_CASE", ErrorPhase.TEMPLATE)
    MISSING_NAMED_ARGUMENT = _code(1008, "MISSING_NAMED_ARGUMENT", ErrorPhase.TEMPLATE)
    ARGUMENT_TYPE = _code(1009, "ARGUMENT_TYPE", ErrorPhase.TEMPLATE)

    # Structure errors (2000-2999)
    NESTED_STATEMENT = _code(2001, "NESTED_STATEMENT", ErrorPhase.STRUCTURE)
    UNMATCHED_STATEMENT_END = _code(2002, "UNMATCHED_STATEMENT_END", ErrorPhase.STRUCTURE)
    UNBALANCED_SCOPE = _code(2003, "UNBALANCED_SCOPE", ErrorPhase.STRUCTURE)
    NEGATIVE_INDENT = _code(2004, "NEGATIVE_INDENT", ErrorPhase.STRUCTURE)
    WILDCARD_BOUNDS = _code(2005, "WILDCARD_BOUNDS", ErrorPhase.STRUCTURE)
    WRITER_CLOSED = _code(2006, "WRITER_CLOSED", ErrorPhase.STRUCTURE)
    INVALID_DECLARATION = _code(2007, "INVALID_DECLARATION", ErrorPhase.STRUCTURE)

    # Symbol errors (3000-3999)
    INVALID_IDENTIFIER = _code(3001, "INVALID_IDENTIFIER", ErrorPhase.SYMBOL)
    EMPTY_SYMBOL_PATH = _code(3002, "EMPTY_SYMBOL_PATH", ErrorPhase.SYMBOL)
    INVALID_NAMESPACE = _code(3003, "INVALID_NAMESPACE", ErrorPhase.SYMBOL)

    # Internal errors (9000-9999)
    INTERNAL_ERROR = _code(9001, "INTERNAL_ERROR", ErrorPhase.INTERNAL)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class KtgenError(Exception):
    """
    Base exception for all ktgen errors.

    ``str(error)`` is the plain message so that callers (and tests) can match
    on it; ``to_gcc_format`` adds the structured code.
    """

    default_code: ErrorCode = KtgenErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.hint = hint

    @property
    def phase(self) -> ErrorPhase:
        return self.code.phase

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        text = f"error[{self.code}]: {self.message}"
        if self.hint:
            text += f"\n  = help: {self.hint}"
        return text

    def __str__(self) -> str:
        return self.message


class TemplateError(KtgenError, ValueError):
    """Malformed format string or mismatched arguments, raised at parse time."""

    default_code = KtgenErrorCodes.UNKNOWN_DIRECTIVE


class StructureError(KtgenError, RuntimeError):
    """Broken writer state machine or malformed type shape."""

    default_code = KtgenErrorCodes.UNBALANCED_SCOPE


class SymbolError(KtgenError, ValueError):
    """Invalid identifier text or malformed qualified-symbol construction."""

    default_code = KtgenErrorCodes.INVALID_IDENTIFIER
