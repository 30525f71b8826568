"""
ktgen/specs.py - Declaration descriptors.

Immutable descriptions of a Kotlin file and its declarations.  They carry
no layout logic beyond knowing the order in which their own parts are
written; name shortening, wrapping and indentation belong to the writer.

Every child sequence is stored as a tuple, so one descriptor tree can be
rendered repeatedly and shared freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from ktgen.errors import KtgenErrorCodes, StructureError
from ktgen.names import ClassName, TypeName, TypeVariableName, UNIT, escape_if_necessary
from ktgen.template import CodeFragment

__all__ = [
    "AnnotationSpec",
    "FileSpec",
    "FunSpec",
    "Modifier",
    "ParameterSpec",
    "PropertySpec",
    "TypeKind",
    "TypeSpec",
]


class Modifier(Enum):
    """Kotlin modifiers, declared in the order they are written."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"
    INTERNAL = "internal"
    EXPECT = "expect"
    ACTUAL = "actual"
    FINAL = "final"
    OPEN = "open"
    ABSTRACT = "abstract"
    SEALED = "sealed"
    CONST = "const"
    EXTERNAL = "external"
    OVERRIDE = "override"
    LATEINIT = "lateinit"
    TAILREC = "tailrec"
    VARARG = "vararg"
    SUSPEND = "suspend"
    INNER = "inner"
    ENUM = "enum"
    ANNOTATION = "annotation"
    VALUE = "value"
    FUN = "fun"
    COMPANION = "companion"
    INLINE = "inline"
    NOINLINE = "noinline"
    CROSSINLINE = "crossinline"
    DATA = "data"

    @property
    def keyword(self) -> str:
        return self.value

    @property
    def order(self) -> int:
        return _MODIFIER_ORDER[self]


_MODIFIER_ORDER = {modifier: index for index, modifier in enumerate(Modifier)}


class TypeKind(Enum):
    CLASS = "class"
    INTERFACE = "interface"
    OBJECT = "object"


def _tupled(instance: Any, *names: str) -> None:
    for name in names:
        object.__setattr__(instance, name, tuple(getattr(instance, name)))


def _frozen_modifiers(instance: Any) -> None:
    object.__setattr__(instance, "modifiers", frozenset(instance.modifiers))


# ═══════════════════════════════════════════════════════════════════════════
# MEMBERS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AnnotationSpec:
    """``@Type`` or ``@Type(member, member)``."""

    type: ClassName
    members: Tuple[CodeFragment, ...] = ()

    def __post_init__(self) -> None:
        _tupled(self, "members")

    def emit(self, writer: Any) -> None:
        writer.emit_code("@%T", self.type)
        if self.members:
            writer.emit("(")
            for index, member in enumerate(self.members):
                if index > 0:
                    writer.emit(",")
                    writer.wrapping_space()
                writer.emit_code(member)
            writer.emit(")")


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    type: TypeName
    modifiers: frozenset = frozenset()
    default_value: Optional[Any] = None

    def __post_init__(self) -> None:
        _frozen_modifiers(self)

    def emit(self, writer: Any) -> None:
        writer.emit_modifiers(self.modifiers)
        writer.emit_code("%N: %T", self.name, self.type)
        if self.default_value is not None:
            writer.emit_code(" = %L", self.default_value)


@dataclass(frozen=True)
class PropertySpec:
    """A ``val``/``var`` declaration, written as one statement."""

    name: str
    type: TypeName
    modifiers: frozenset = frozenset()
    mutable: bool = False
    initializer: Optional[CodeFragment] = None
    kdoc: CodeFragment = CodeFragment.EMPTY
    annotations: Tuple[AnnotationSpec, ...] = ()

    def __post_init__(self) -> None:
        _frozen_modifiers(self)
        _tupled(self, "annotations")

    def emit(self, writer: Any) -> None:
        writer.emit_kdoc(self.kdoc)
        writer.emit_annotations(self.annotations, inline=False)
        writer.emit_modifiers(self.modifiers)
        keyword = "var" if self.mutable else "val"
        writer.emit_code("%[%L %N: %T", keyword, self.name, self.type)
        if self.initializer is not None:
            writer.emit_code(" = %L", self.initializer)
        writer.emit_code("\n%]")


@dataclass(frozen=True)
class FunSpec:
    """A function.  ``body=None`` declares it without braces."""

    name: str
    parameters: Tuple[ParameterSpec, ...] = ()
    return_type: Optional[TypeName] = None
    receiver_type: Optional[TypeName] = None
    modifiers: frozenset = frozenset()
    type_variables: Tuple[TypeVariableName, ...] = ()
    body: Optional[CodeFragment] = CodeFragment.EMPTY
    kdoc: CodeFragment = CodeFragment.EMPTY
    annotations: Tuple[AnnotationSpec, ...] = ()

    def __post_init__(self) -> None:
        _frozen_modifiers(self)
        _tupled(self, "parameters", "type_variables", "annotations")

    def emit(self, writer: Any) -> None:
        writer.emit_kdoc(self.kdoc)
        writer.emit_annotations(self.annotations, inline=False)
        writer.emit_modifiers(self.modifiers)
        writer.emit("fun ")
        if self.type_variables:
            writer.emit_type_variables(self.type_variables)
            writer.emit(" ")
        if self.receiver_type is not None:
            writer.emit_code("%T.", self.receiver_type)
        writer.emit_code("%N(", self.name)
        for index, parameter in enumerate(self.parameters):
            if index > 0:
                writer.emit(",")
                writer.wrapping_space()
            parameter.emit(writer)
        writer.emit(")")
        if self.return_type is not None and self.return_type != UNIT:
            writer.emit_code(": %T", self.return_type)
        writer.emit_where_block(self.type_variables)

        if self.body is None:
            writer.emit("\n")
            return
        writer.emit(" {\n")
        writer.indent()
        writer.emit_code(self.body, ensure_trailing_newline=True)
        writer.unindent()
        writer.emit("}\n")


# ═══════════════════════════════════════════════════════════════════════════
# CONTAINERS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TypeSpec:
    """A class, interface or object declaration.

    The type is pushed onto the writer's scope stack for its whole
    emission, so its own name and its nested types print unqualified.
    """

    name: str
    kind: TypeKind = TypeKind.CLASS
    modifiers: frozenset = frozenset()
    type_variables: Tuple[TypeVariableName, ...] = ()
    superclass: Optional[TypeName] = None
    superinterfaces: Tuple[TypeName, ...] = ()
    properties: Tuple[PropertySpec, ...] = ()
    functions: Tuple[FunSpec, ...] = ()
    types: Tuple["TypeSpec", ...] = ()
    kdoc: CodeFragment = CodeFragment.EMPTY
    annotations: Tuple[AnnotationSpec, ...] = ()

    def __post_init__(self) -> None:
        _frozen_modifiers(self)
        _tupled(
            self,
            "type_variables", "superinterfaces", "properties",
            "functions", "types", "annotations",
        )
        if self.superclass is not None and self.kind is TypeKind.INTERFACE:
            raise StructureError(
                f"interface {self.name} cannot have a superclass",
                code=KtgenErrorCodes.INVALID_DECLARATION,
            )
        if self.type_variables and self.kind is TypeKind.OBJECT:
            raise StructureError(
                f"object {self.name} cannot declare type variables",
                code=KtgenErrorCodes.INVALID_DECLARATION,
            )

    @property
    def has_members(self) -> bool:
        return bool(self.properties or self.functions or self.types)

    def emit(self, writer: Any) -> None:
        writer.push_scope(self)

        writer.emit_kdoc(self.kdoc)
        writer.emit_annotations(self.annotations, inline=False)
        writer.emit_modifiers(self.modifiers)
        writer.emit_code("%L %N", self.kind.value, self.name)
        writer.emit_type_variables(self.type_variables)

        supertypes = []
        if self.superclass is not None:
            supertypes.append(CodeFragment.of("%T()", self.superclass))
        supertypes.extend(CodeFragment.of("%T", t) for t in self.superinterfaces)
        for index, supertype in enumerate(supertypes):
            writer.emit(" : " if index == 0 else ", ")
            writer.emit_code(supertype)
        writer.emit_where_block(self.type_variables)

        if not self.has_members:
            writer.emit("\n")
            writer.pop_scope(self)
            return

        writer.emit(" {\n")
        writer.indent()
        members = list(self.properties) + list(self.functions) + list(self.types)
        for index, member in enumerate(members):
            if index > 0:
                writer.emit("\n")
            member.emit(writer)
        writer.unindent()
        writer.emit("}\n")

        writer.pop_scope(self)


Member = Union[TypeSpec, FunSpec, PropertySpec]


@dataclass(frozen=True)
class FileSpec:
    """One output unit: a package, its imports and top-level members.

    ``aliases`` maps canonical names to import aliases.
    """

    package: str
    name: str
    members: Tuple[Member, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=dict)
    comment: CodeFragment = CodeFragment.EMPTY

    def __post_init__(self) -> None:
        _tupled(self, "members")
        object.__setattr__(self, "aliases", MappingProxyType(dict(self.aliases)))

    def emit(self, writer: Any) -> None:
        if not self.comment.is_empty():
            writer.emit_comment(self.comment)

        if self.package:
            package = ".".join(escape_if_necessary(part) for part in self.package.split("."))
            writer.emit_code("package %L\n", package)
            writer.emit("\n")

        imports = writer.context.import_statements()
        if imports:
            for statement in imports:
                writer.emit_code("import %L\n", statement)
            writer.emit("\n")

        for index, member in enumerate(self.members):
            if index > 0:
                writer.emit("\n")
            member.emit(writer)
