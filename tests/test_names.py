# tests/test_names.py
"""
Qualified symbols and the type-reference variants.
"""

import pytest

from ktgen.errors import KtgenErrorCodes, StructureError, SymbolError
from ktgen.names import (
    ANY,
    INT,
    LIST,
    MAP,
    STAR,
    STRING,
    UNIT,
    ArrayTypeName,
    ClassName,
    LambdaTypeName,
    NullableTypeName,
    TypeNameVisitor,
    TypeVariableName,
    WildcardTypeName,
    escape_if_necessary,
)


class TestClassName:

    def test_parts(self):
        name = ClassName("com.example", "Outer", "Inner")
        assert name.canonical_name == "com.example.Outer.Inner"
        assert name.simple_name == "Inner"
        assert name.enclosing_class_name() == ClassName("com.example", "Outer")
        assert name.top_level_class_name() == ClassName("com.example", "Outer")

    def test_empty_package(self):
        name = ClassName("", "Main")
        assert name.canonical_name == "Main"

    def test_nested_and_peer(self):
        outer = ClassName("a.b", "Outer")
        assert outer.nested_class("In").canonical_name == "a.b.Outer.In"
        assert outer.nested_class("In").peer_class("Other").canonical_name == "a.b.Outer.Other"

    def test_best_guess(self):
        name = ClassName.best_guess("java.util.Map.Entry")
        assert name.package == "java.util"
        assert name.simple_names == ("Map", "Entry")

    def test_best_guess_needs_capitalized_part(self):
        with pytest.raises(SymbolError) as info:
            ClassName.best_guess("all.lower.case")
        assert info.value.to_gcc_format() == (
            "error[KTG-3002]: couldn't make a guess for all.lower.case\n"
            "  = help: the first simple name must be capitalized, as in java.util.Map.Entry"
        )

    def test_requires_a_simple_name(self):
        with pytest.raises(SymbolError) as info:
            ClassName("com.example")
        assert info.value.code is KtgenErrorCodes.EMPTY_SYMBOL_PATH

    def test_rejects_invalid_identifier(self):
        with pytest.raises(SymbolError) as info:
            ClassName("com.example", "1st")
        assert info.value.code is KtgenErrorCodes.INVALID_IDENTIFIER

    def test_rejects_malformed_namespace(self):
        with pytest.raises(SymbolError) as info:
            ClassName("com..example", "A")
        assert info.value.code is KtgenErrorCodes.INVALID_NAMESPACE

    def test_equality_ignores_tags(self):
        tagged = ClassName("a", "B", tags={"origin": "test"})
        assert tagged == ClassName("a", "B")
        assert hash(tagged) == hash(ClassName("a", "B"))
        assert tagged.tags["origin"] == "test"

    def test_nullability_is_part_of_identity(self):
        assert ClassName("a", "B") != ClassName("a", "B", nullable=True)
        assert ClassName("a", "B").as_nullable().as_non_null() == ClassName("a", "B")

    def test_str(self):
        assert str(ClassName("a", "B", nullable=True)) == "a.B?"

    def test_immutable(self):
        with pytest.raises(AttributeError):
            ClassName("a", "B").package = "c"

    def test_ordering(self):
        names = [ClassName("b", "A"), ClassName("a", "Z")]
        assert sorted(names) == [ClassName("a", "Z"), ClassName("b", "A")]


class TestCompositeTypes:

    def test_parameterized(self):
        assert str(LIST.parameterized_by(STRING)) == "kotlin.collections.List<kotlin.String>"

    def test_parameterized_arguments_are_separated(self):
        text = str(MAP.parameterized_by(STRING, INT))
        assert text == "kotlin.collections.Map<kotlin.String, kotlin.Int>"

    def test_parameterized_needs_arguments(self):
        with pytest.raises(StructureError):
            LIST.parameterized_by()

    def test_parameterized_raw_may_not_be_nullable(self):
        with pytest.raises(StructureError):
            LIST.as_nullable().parameterized_by(STRING)

    def test_parameterized_nested_in_owner(self):
        outer = ClassName("a", "Outer").parameterized_by(STRING)
        inner = outer.nested_class("Inner", INT)
        assert str(inner) == "a.Outer<kotlin.String>.Inner<kotlin.Int>"

    def test_type_variable_prints_its_name(self):
        assert str(TypeVariableName("T", bounds=(ANY,))) == "T"

    def test_type_variable_name_is_checked(self):
        with pytest.raises(SymbolError):
            TypeVariableName("not valid")

    def test_wildcards(self):
        assert str(WildcardTypeName.producer_of(STRING)) == "out kotlin.String"
        assert str(WildcardTypeName.consumer_of(STRING)) == "in kotlin.String"
        assert str(STAR) == "*"
        assert STAR.is_star

    @pytest.mark.parametrize("bounds", [{}, {"upper_bound": ANY, "lower_bound": STRING}])
    def test_wildcard_needs_exactly_one_bound(self, bounds):
        with pytest.raises(StructureError) as info:
            WildcardTypeName(**bounds)
        assert info.value.code is KtgenErrorCodes.WILDCARD_BOUNDS

    def test_lambda(self):
        assert str(LambdaTypeName((INT,), STRING)) == "(kotlin.Int) -> kotlin.String"

    def test_lambda_defaults_to_unit(self):
        assert LambdaTypeName().return_type == UNIT

    def test_lambda_with_receiver(self):
        text = str(LambdaTypeName((), receiver=STRING))
        assert text == "kotlin.String.() -> kotlin.Unit"

    def test_lambda_receiver_that_is_a_lambda(self):
        text = str(LambdaTypeName((), receiver=LambdaTypeName()))
        assert text == "(() -> kotlin.Unit).() -> kotlin.Unit"

    def test_suspending_lambda(self):
        assert str(LambdaTypeName(suspending=True)) == "suspend () -> kotlin.Unit"

    def test_nullable_lambda(self):
        assert str(LambdaTypeName().as_nullable()) == "(() -> kotlin.Unit)?"

    def test_nullable_wrapper_flattens(self):
        inner = ArrayTypeName(INT)
        wrapped = NullableTypeName(NullableTypeName(inner))
        assert wrapped.inner == inner
        assert wrapped.as_non_null() == inner
        assert wrapped.is_nullable

    def test_array(self):
        assert str(ArrayTypeName(INT)) == "kotlin.Array<kotlin.Int>"


class TestVisitor:

    def test_visitor_must_handle_every_variant(self):
        class Partial(TypeNameVisitor):
            def visit_class_name(self, node):
                return node

        with pytest.raises(TypeError):
            Partial()


class TestEscaping:

    @pytest.mark.parametrize("name, expected", [
        ("value", "value"),
        ("fun", "`fun`"),
        ("in", "`in`"),
        ("two words", "`two words`"),
        ("`already`", "`already`"),
    ])
    def test_escape_if_necessary(self, name, expected):
        assert escape_if_necessary(name) == expected
