"""ktgen/names.py - Qualified symbols and type references.

The renderer prints types through a closed set of immutable variants:

* ``ClassName``             - a qualified symbol (namespace + nested names)
* ``ParameterizedTypeName`` - raw class + ordered type arguments
* ``TypeVariableName``      - a declared type parameter with bounds
* ``WildcardTypeName``      - ``out X`` / ``in X`` / ``*`` projections
* ``LambdaTypeName``        - ``Receiver.(A, B) -> R``
* ``ArrayTypeName``         - ``Array<Component>``
* ``NullableTypeName``      - wraps any non-class reference with ``?``

Design invariants
-----------------
* Every variant is a frozen dataclass; child sequences are tuples.
* Dispatch over the variant set goes through ``TypeNameVisitor``, whose
  methods are all abstract, so a new consumer must handle every variant.
* ``ClassName`` equality and hashing use the canonical dotted form plus the
  nullable flag.  Metadata tags never take part in equality.
"""

from __future__ import annotations

import abc
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from ktgen.errors import KtgenErrorCodes, StructureError, SymbolError

__all__ = [
    "ANY",
    "ARRAY",
    "BOOLEAN",
    "BYTE",
    "CHAR",
    "CHAR_SEQUENCE",
    "DOUBLE",
    "FLOAT",
    "INT",
    "LIST",
    "LONG",
    "MAP",
    "MUTABLE_LIST",
    "MUTABLE_MAP",
    "NOTHING",
    "PY_BUILTIN_TYPES",
    "SET",
    "SHORT",
    "STAR",
    "STRING",
    "THROWABLE",
    "UNIT",
    "ArrayTypeName",
    "ClassName",
    "LambdaTypeName",
    "NullableTypeName",
    "ParameterizedTypeName",
    "TypeName",
    "TypeNameVisitor",
    "TypeVariableName",
    "Variance",
    "WildcardTypeName",
    "escape_if_necessary",
    "is_identifier",
]


_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

KOTLIN_HARD_KEYWORDS = frozenset({
    "as", "break", "class", "continue", "do", "else", "false", "for", "fun",
    "if", "in", "interface", "is", "null", "object", "package", "return",
    "super", "this", "throw", "true", "try", "typealias", "typeof", "val",
    "var", "when", "while",
})


def is_identifier(text: str) -> bool:
    return bool(_IDENTIFIER.fullmatch(text))


def escape_if_necessary(name: str) -> str:
    """Wrap ``name`` in backticks when it cannot be printed bare."""
    if name.startswith("`") and name.endswith("`") and len(name) > 2:
        return name
    if name in KOTLIN_HARD_KEYWORDS or not is_identifier(name):
        return f"`{name}`"
    return name


def _require_identifier(text: str, what: str) -> None:
    if not isinstance(text, str) or not is_identifier(text):
        raise SymbolError(
            f"{what} {text!r} is not a valid identifier",
            code=KtgenErrorCodes.INVALID_IDENTIFIER,
        )


def _require_namespace(namespace: str) -> None:
    if not isinstance(namespace, str):
        raise SymbolError(
            f"namespace must be a string, was {namespace!r}",
            code=KtgenErrorCodes.INVALID_NAMESPACE,
        )
    if namespace and not all(is_identifier(part) for part in namespace.split(".")):
        raise SymbolError(
            f"namespace {namespace!r} is not a dotted sequence of identifiers",
            code=KtgenErrorCodes.INVALID_NAMESPACE,
        )


# ════════════════════════════════════════════════════════════════════════
# §1  Visitor protocol
# ════════════════════════════════════════════════════════════════════════


class TypeNameVisitor(abc.ABC):
    """Exhaustive visitor over the type reference variants."""

    @abc.abstractmethod
    def visit_class_name(self, node: "ClassName") -> Any: ...

    @abc.abstractmethod
    def visit_parameterized(self, node: "ParameterizedTypeName") -> Any: ...

    @abc.abstractmethod
    def visit_type_variable(self, node: "TypeVariableName") -> Any: ...

    @abc.abstractmethod
    def visit_wildcard(self, node: "WildcardTypeName") -> Any: ...

    @abc.abstractmethod
    def visit_lambda(self, node: "LambdaTypeName") -> Any: ...

    @abc.abstractmethod
    def visit_array(self, node: "ArrayTypeName") -> Any: ...

    @abc.abstractmethod
    def visit_nullable(self, node: "NullableTypeName") -> Any: ...


class TypeName(abc.ABC):
    """Base of the closed type-reference variant set."""

    __slots__ = ()

    @abc.abstractmethod
    def accept(self, visitor: TypeNameVisitor) -> Any:
        """Dispatch to the matching ``visit_*`` method."""

    @property
    def is_nullable(self) -> bool:
        return False

    def as_nullable(self) -> "TypeName":
        return NullableTypeName(self)

    def as_non_null(self) -> "TypeName":
        return self

    def __str__(self) -> str:
        # Deferred: the writer module depends on this one.
        from ktgen.writer import render_type

        return render_type(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


# ════════════════════════════════════════════════════════════════════════
# §2  Qualified symbols
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, eq=False, init=False, repr=False)
class ClassName(TypeName):
    """A namespaced, possibly nested declaration reference.

    ``ClassName("com.example", "Outer", "Inner")`` names ``Inner`` nested in
    ``Outer`` in package ``com.example``.  The empty namespace is allowed;
    at least one simple name is required.
    """

    package: str
    simple_names: Tuple[str, ...]
    nullable: bool
    tags: Mapping[str, Any]

    def __init__(
        self,
        package: str,
        *simple_names: str,
        nullable: bool = False,
        tags: Optional[Mapping[str, Any]] = None,
    ) -> None:
        _require_namespace(package)
        if not simple_names:
            raise SymbolError(
                f"{package!r} has no simple names; a class name needs at least one",
                code=KtgenErrorCodes.EMPTY_SYMBOL_PATH,
            )
        for name in simple_names:
            _require_identifier(name, "simple name")
        object.__setattr__(self, "package", package)
        object.__setattr__(self, "simple_names", tuple(simple_names))
        object.__setattr__(self, "nullable", bool(nullable))
        object.__setattr__(self, "tags", MappingProxyType(dict(tags or {})))

    @classmethod
    def best_guess(cls, canonical_name: str, nullable: bool = False) -> "ClassName":
        """Split ``canonical_name`` at the first capitalized component."""
        parts = canonical_name.split(".")
        for index, part in enumerate(parts):
            if part[:1].isupper():
                return cls(".".join(parts[:index]), *parts[index:], nullable=nullable)
        raise SymbolError(
            f"couldn't make a guess for {canonical_name}",
            code=KtgenErrorCodes.EMPTY_SYMBOL_PATH,
            hint="the first simple name must be capitalized, as in java.util.Map.Entry",
        )

    @property
    def canonical_name(self) -> str:
        names = ".".join(self.simple_names)
        return f"{self.package}.{names}" if self.package else names

    @property
    def simple_name(self) -> str:
        return self.simple_names[-1]

    @property
    def is_nullable(self) -> bool:
        return self.nullable

    def copy(
        self,
        nullable: Optional[bool] = None,
        tags: Optional[Mapping[str, Any]] = None,
    ) -> "ClassName":
        return ClassName(
            self.package,
            *self.simple_names,
            nullable=self.nullable if nullable is None else nullable,
            tags=self.tags if tags is None else tags,
        )

    def as_nullable(self) -> "ClassName":
        return self if self.nullable else self.copy(nullable=True)

    def as_non_null(self) -> "ClassName":
        return self.copy(nullable=False) if self.nullable else self

    def enclosing_class_name(self) -> Optional["ClassName"]:
        if len(self.simple_names) == 1:
            return None
        return ClassName(self.package, *self.simple_names[:-1])

    def top_level_class_name(self) -> "ClassName":
        return ClassName(self.package, self.simple_names[0])

    def nested_class(self, name: str) -> "ClassName":
        return ClassName(self.package, *self.simple_names, name)

    def peer_class(self, name: str) -> "ClassName":
        return ClassName(self.package, *self.simple_names[:-1], name)

    def parameterized_by(self, *type_arguments: TypeName) -> "ParameterizedTypeName":
        return ParameterizedTypeName(self, tuple(type_arguments))

    def accept(self, visitor: TypeNameVisitor) -> Any:
        return visitor.visit_class_name(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassName):
            return NotImplemented
        return (self.canonical_name, self.nullable) == (other.canonical_name, other.nullable)

    def __hash__(self) -> int:
        return hash((self.canonical_name, self.nullable))

    def __lt__(self, other: "ClassName") -> bool:
        return self.canonical_name < other.canonical_name

    def __str__(self) -> str:
        return self.canonical_name + ("?" if self.nullable else "")

    def __repr__(self) -> str:
        return f"ClassName({str(self)!r})"


# ════════════════════════════════════════════════════════════════════════
# §3  Composite type references
# ════════════════════════════════════════════════════════════════════════


class Variance(Enum):
    """Declaration-site variance of a type variable."""

    IN = "in"
    OUT = "out"


@dataclass(frozen=True, repr=False)
class ParameterizedTypeName(TypeName):
    """``raw<arguments>``, optionally owned by an enclosing parameterized type.

    With an ``enclosing`` owner the reference prints as
    ``Outer<A>.Inner<B>``; ``raw`` must then be nested in the owner's raw type.
    """

    raw: ClassName
    type_arguments: Tuple[TypeName, ...]
    enclosing: Optional["ParameterizedTypeName"] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_arguments", tuple(self.type_arguments))
        if not self.type_arguments:
            raise StructureError(
                f"no type arguments: {self.raw}",
                code=KtgenErrorCodes.INVALID_DECLARATION,
            )
        if self.raw.nullable:
            raise StructureError(
                f"raw type {self.raw} may not be nullable; wrap the parameterized type instead",
                code=KtgenErrorCodes.INVALID_DECLARATION,
            )
        if self.enclosing is not None and self.raw.enclosing_class_name() != self.enclosing.raw:
            raise StructureError(
                f"{self.raw} is not nested in {self.enclosing.raw}",
                code=KtgenErrorCodes.INVALID_DECLARATION,
            )

    def nested_class(self, name: str, *type_arguments: TypeName) -> "ParameterizedTypeName":
        return ParameterizedTypeName(self.raw.nested_class(name), tuple(type_arguments), self)

    def accept(self, visitor: TypeNameVisitor) -> Any:
        return visitor.visit_parameterized(self)


@dataclass(frozen=True, repr=False)
class TypeVariableName(TypeName):
    """A type parameter.  Bounds print only where the variable is declared."""

    name: str
    bounds: Tuple[TypeName, ...] = ()
    variance: Optional[Variance] = None
    reified: bool = False

    def __post_init__(self) -> None:
        _require_identifier(self.name, "type variable")
        object.__setattr__(self, "bounds", tuple(self.bounds))

    def accept(self, visitor: TypeNameVisitor) -> Any:
        return visitor.visit_type_variable(self)


@dataclass(frozen=True, repr=False)
class WildcardTypeName(TypeName):
    """A use-site projection with exactly one bound.

    ``upper_bound`` prints as ``out X`` (or ``*`` when it is ``Any?``);
    ``lower_bound`` prints as ``in X``.
    """

    upper_bound: Optional[TypeName] = None
    lower_bound: Optional[TypeName] = None

    def __post_init__(self) -> None:
        if (self.upper_bound is None) == (self.lower_bound is None):
            raise StructureError(
                "a wildcard needs exactly one upper bound or exactly one lower bound",
                code=KtgenErrorCodes.WILDCARD_BOUNDS,
            )

    @classmethod
    def producer_of(cls, upper_bound: TypeName) -> "WildcardTypeName":
        return cls(upper_bound=upper_bound)

    @classmethod
    def consumer_of(cls, lower_bound: TypeName) -> "WildcardTypeName":
        return cls(lower_bound=lower_bound)

    @property
    def is_star(self) -> bool:
        return self.upper_bound == ANY.as_nullable()

    def accept(self, visitor: TypeNameVisitor) -> Any:
        return visitor.visit_wildcard(self)


@dataclass(frozen=True, repr=False)
class LambdaTypeName(TypeName):
    """A function type: ``Receiver.(A, B) -> R``."""

    parameters: Tuple[TypeName, ...] = ()
    return_type: TypeName = field(default=None)  # type: ignore[assignment]
    receiver: Optional[TypeName] = None
    suspending: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
        if self.return_type is None:
            object.__setattr__(self, "return_type", UNIT)

    def accept(self, visitor: TypeNameVisitor) -> Any:
        return visitor.visit_lambda(self)


@dataclass(frozen=True, repr=False)
class ArrayTypeName(TypeName):
    """``Array<component>``."""

    component: TypeName

    def accept(self, visitor: TypeNameVisitor) -> Any:
        return visitor.visit_array(self)


@dataclass(frozen=True, repr=False)
class NullableTypeName(TypeName):
    """Marks a non-class reference as nullable: ``inner?``."""

    inner: TypeName

    def __post_init__(self) -> None:
        if isinstance(self.inner, NullableTypeName):
            object.__setattr__(self, "inner", self.inner.inner)

    @property
    def is_nullable(self) -> bool:
        return True

    def as_nullable(self) -> "NullableTypeName":
        return self

    def as_non_null(self) -> TypeName:
        return self.inner

    def accept(self, visitor: TypeNameVisitor) -> Any:
        return visitor.visit_nullable(self)


# ════════════════════════════════════════════════════════════════════════
# §4  Well-known names
# ════════════════════════════════════════════════════════════════════════

ANY = ClassName("kotlin", "Any")
ARRAY = ClassName("kotlin", "Array")
UNIT = ClassName("kotlin", "Unit")
BOOLEAN = ClassName("kotlin", "Boolean")
BYTE = ClassName("kotlin", "Byte")
SHORT = ClassName("kotlin", "Short")
INT = ClassName("kotlin", "Int")
LONG = ClassName("kotlin", "Long")
CHAR = ClassName("kotlin", "Char")
FLOAT = ClassName("kotlin", "Float")
DOUBLE = ClassName("kotlin", "Double")
STRING = ClassName("kotlin", "String")
CHAR_SEQUENCE = ClassName("kotlin", "CharSequence")
NOTHING = ClassName("kotlin", "Nothing")
THROWABLE = ClassName("kotlin", "Throwable")
LIST = ClassName("kotlin.collections", "List")
MUTABLE_LIST = ClassName("kotlin.collections", "MutableList")
SET = ClassName("kotlin.collections", "Set")
MAP = ClassName("kotlin.collections", "Map")
MUTABLE_MAP = ClassName("kotlin.collections", "MutableMap")

STAR = WildcardTypeName.producer_of(ANY.as_nullable())

#: Python builtins accepted wherever a type reference is expected.
PY_BUILTIN_TYPES: Mapping[type, ClassName] = MappingProxyType({
    object: ANY,
    bool: BOOLEAN,
    int: INT,
    float: DOUBLE,
    str: STRING,
    bytes: ClassName("kotlin", "ByteArray"),
    list: LIST,
    tuple: LIST,
    set: SET,
    frozenset: SET,
    dict: MAP,
    type(None): UNIT,
})
