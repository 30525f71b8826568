"""ktgen - Kotlin source generation.

ktgen renders readable Kotlin source from immutable declaration trees and
templated code fragments, choosing imports and line breaks for the caller.

Submodules
----------
names
    ``ClassName`` and the closed set of type references, plus well-known
    constants such as ``STRING`` and ``LIST``.

template
    ``CodeFragment``: format strings with ``%L %N %S %T`` placeholders and
    the ``%W %> %< %[ %]`` control directives.

wrapper, statements
    Bracket-aware soft line wrapping and continuation indentation.

writer, renderer
    The symbol writer and the two-pass ``Renderer`` that builds the import
    table before printing.

specs
    ``FileSpec``, ``TypeSpec``, ``FunSpec``, ``PropertySpec`` and friends.

Usage
-----
Programmatic::

    from ktgen import CodeFragment, FileSpec, FunSpec, Renderer, ClassName

    hello = FunSpec(
        "hello",
        body=CodeFragment.of("println(%S)\\n", "Hello, world"),
    )
    print(Renderer().render(FileSpec("com.example", "Hello", (hello,))))

Command-line::

    python -m ktgen format 'val %N: %T' answer kotlin.Int
"""

from __future__ import annotations

__version__: str = "0.1.0"
__description__: str = "ktgen - Kotlin source generation with automatic imports and wrapping"

from ktgen.config import RenderConfig
from ktgen.errors import (
    ErrorCode,
    KtgenError,
    KtgenErrorCodes,
    StructureError,
    SymbolError,
    TemplateError,
)
from ktgen.names import (
    ANY,
    STAR,
    STRING,
    UNIT,
    ArrayTypeName,
    ClassName,
    LambdaTypeName,
    NullableTypeName,
    ParameterizedTypeName,
    TypeName,
    TypeNameVisitor,
    TypeVariableName,
    Variance,
    WildcardTypeName,
)
from ktgen.template import CodeFragment, join_to_code
from ktgen.wrapper import LineWrapper
from ktgen.statements import ContinuationStyle, StatementFormatter
from ktgen.writer import CodeWriter, RenderContext
from ktgen.specs import (
    AnnotationSpec,
    FileSpec,
    FunSpec,
    Modifier,
    ParameterSpec,
    PropertySpec,
    TypeKind,
    TypeSpec,
)
from ktgen.renderer import Renderer

__all__: list = [
    "ANY",
    "STAR",
    "STRING",
    "UNIT",
    "AnnotationSpec",
    "ArrayTypeName",
    "ClassName",
    "CodeFragment",
    "CodeWriter",
    "ContinuationStyle",
    "ErrorCode",
    "FileSpec",
    "FunSpec",
    "KtgenError",
    "KtgenErrorCodes",
    "LambdaTypeName",
    "LineWrapper",
    "Modifier",
    "NullableTypeName",
    "ParameterSpec",
    "ParameterizedTypeName",
    "PropertySpec",
    "RenderConfig",
    "RenderContext",
    "Renderer",
    "StatementFormatter",
    "StructureError",
    "SymbolError",
    "TemplateError",
    "TypeKind",
    "TypeName",
    "TypeNameVisitor",
    "TypeSpec",
    "TypeVariableName",
    "Variance",
    "WildcardTypeName",
    "join_to_code",
]
