# tests/test_template.py
"""
Format-string parsing, argument binding and the CodeFragment builder.
"""

import re

import pytest

from ktgen.errors import ErrorPhase, KtgenErrorCodes, TemplateError
from ktgen.names import INT, STRING, ClassName
from ktgen.specs import FunSpec
from ktgen.template import CodeFragment, join_to_code, scan_directives


def raises_template(message):
    return pytest.raises(TemplateError, match=re.escape(message))


class TestPositionalBinding:

    def test_bare_directives_consume_in_order(self):
        fragment = CodeFragment.of("%N = %S", "x", "hi")
        assert fragment.format_parts == ("%N", " = ", "%S")
        assert fragment.args == ("x", "hi")

    def test_indexed_directive_may_repeat(self):
        fragment = CodeFragment.of("%1L + %1L", 2)
        assert fragment.args == (2, 2)
        assert str(fragment) == "2 + 2"

    def test_indexed_out_of_order(self):
        assert str(CodeFragment.of("%2L %1L", "a", "b")) == "b a"

    def test_percent_escape(self):
        assert str(CodeFragment.of("100%%")) == "100%"

    def test_control_directives_take_no_argument(self):
        fragment = CodeFragment.of("%>%W%<%[%]")
        assert fragment.format_parts == ("%>", "%W", "%<", "%[", "%]")
        assert fragment.args == ()

    def test_argument_count_matches_directives(self):
        fragment = CodeFragment.of("%L(%N, %S)%>", 1, "b", "c")
        assert fragment.argument_count() == 3
        assert len(fragment.args) == 3


class TestPositionalErrors:

    def test_dangling_percent(self):
        with raises_template("dangling format characters in 'abc%'"):
            CodeFragment.of("abc%")

    def test_unknown_directive(self):
        with raises_template("unknown format %Q at 1 in '%Q'"):
            CodeFragment.of("%Q")

    def test_unknown_directive_position(self):
        with raises_template("unknown format %Z at 4 in 'ab %Z'"):
            CodeFragment.of("ab %Z")

    @pytest.mark.parametrize("fmt", ["%1%", "%1>", "%1<", "%1[", "%1]", "%1W"])
    def test_no_arg_directive_rejects_index(self, fmt):
        with raises_template("%%, %>, %<, %[, %], and %W may not have an index"):
            CodeFragment.of(fmt, "x")

    def test_relative_index_out_of_range(self):
        with raises_template("index 2 for '%L' not in range (received 1 arguments)"):
            CodeFragment.of("%L %L", "a")

    def test_explicit_index_out_of_range(self):
        with raises_template("index 3 for '%3L' not in range (received 2 arguments)"):
            CodeFragment.of("%1L %3L", "a", "b")

    def test_mixing_indexed_and_relative(self):
        with raises_template("cannot mix indexed and positional parameters"):
            CodeFragment.of("%L %1L", "a")

    def test_unused_relative_arguments(self):
        with raises_template("unused arguments: expected 1, received 2"):
            CodeFragment.of("%L", "a", "b")

    def test_arguments_without_directives(self):
        with raises_template("unused arguments: expected 0, received 1"):
            CodeFragment.of("plain text", "a")

    def test_single_unused_indexed_argument(self):
        with raises_template("unused argument: %2"):
            CodeFragment.of("%1L %3L", "a", "b", "c")

    def test_several_unused_indexed_arguments(self):
        with raises_template("unused arguments: %2, %3"):
            CodeFragment.of("%1L", "a", "b", "c")

    def test_error_carries_code(self):
        with pytest.raises(TemplateError) as info:
            CodeFragment.of("%L %L", "a")
        assert info.value.code is KtgenErrorCodes.INDEX_OUT_OF_RANGE
        assert info.value.phase is ErrorPhase.TEMPLATE
        assert info.value.to_gcc_format() == (
            "error[KTG-1004]: index 2 for '%L' not in range (received 1 arguments)"
        )

    def test_template_error_is_value_error(self):
        with pytest.raises(ValueError):
            CodeFragment.of("%")


class TestNamedBinding:

    def test_named_argument(self):
        fragment = CodeFragment.named("%count:L apples", {"count": 3})
        assert str(fragment) == "3 apples"

    def test_name_may_repeat(self):
        assert str(CodeFragment.named("%a:L-%a:L", {"a": 1})) == "1-1"

    def test_control_directives(self):
        fragment = CodeFragment.named("%>%W%<%%", {})
        assert fragment.format_parts == ("%>", "%W", "%<", "%%")

    def test_missing_argument(self):
        with raises_template("Missing named argument for %b"):
            CodeFragment.named("%a:L %b:L", {"a": 1})

    def test_argument_must_start_lowercase(self):
        with raises_template("argument 'Count' must start with a lowercase character"):
            CodeFragment.named("%Count:L", {"Count": 1})

    def test_unused_named_argument(self):
        with raises_template("unused named argument: extra"):
            CodeFragment.named("%a:L", {"a": 1, "extra": 2})

    def test_several_unused_named_arguments(self):
        with raises_template("unused named arguments: b, c"):
            CodeFragment.named("%a:L", {"a": 1, "b": 2, "c": 3})

    def test_dangling_percent(self):
        with raises_template("dangling % at end"):
            CodeFragment.named("abc%", {})

    def test_bare_argument_directive_is_unknown(self):
        with raises_template("unknown format %L at 1 in '%L'"):
            CodeFragment.named("%L", {})


class TestCoercion:

    def test_name_escapes_keywords(self):
        assert CodeFragment.of("%N", "class").args == ("`class`",)

    def test_name_escapes_non_identifiers(self):
        assert str(CodeFragment.of("%N", "two words")) == "`two words`"

    def test_name_from_descriptor(self):
        assert CodeFragment.of("%N", FunSpec("compute")).args == ("compute",)

    def test_name_rejects_other_values(self):
        with raises_template("expected name but was 3"):
            CodeFragment.of("%N", 3)

    def test_type_rejects_strings(self):
        with raises_template("expected type but was 'String'"):
            CodeFragment.of("%T", "String")

    def test_type_accepts_python_builtins(self):
        assert CodeFragment.of("%T", int).args == (INT,)
        assert CodeFragment.of("%T", str).args == (STRING,)

    def test_string_converts_non_text(self):
        assert CodeFragment.of("%S", 5).args == ("5",)

    def test_string_none_is_null(self):
        assert str(CodeFragment.of("%S", None)) == "null"

    def test_string_escaping(self):
        fragment = CodeFragment.of("%S", 'a "b" $c\n')
        assert str(fragment) == '"a \\"b\\" \\$c\\n"'

    def test_literal_booleans_and_none(self):
        assert str(CodeFragment.of("%L %L %L", True, False, None)) == "true false null"

    def test_literal_nested_fragment(self):
        inner = CodeFragment.of("%S", "y")
        assert str(CodeFragment.of("val x = %L", inner)) == 'val x = "y"'

    def test_type_renders_fully_qualified_standalone(self):
        assert str(CodeFragment.of("%T", ClassName("org.lib", "Bar"))) == "org.lib.Bar"


class TestCodeFragment:

    def test_equality_uses_rendered_text(self):
        assert CodeFragment.of("%L", "a") == CodeFragment.of("a")
        assert hash(CodeFragment.of("%L", "a")) == hash(CodeFragment.of("a"))

    def test_empty(self):
        assert CodeFragment.builder().build().is_empty()
        assert CodeFragment.of("").is_empty()
        assert not CodeFragment.of("x").is_empty()

    def test_immutable(self):
        fragment = CodeFragment.of("x")
        with pytest.raises(AttributeError):
            fragment.args = ()

    def test_trim_drops_outer_control_directives(self):
        fragment = CodeFragment.builder().indent().add("x").unindent().build()
        assert fragment.trim().format_parts == ("x",)

    def test_add_statement(self):
        fragment = CodeFragment.builder().add_statement("return %L", 1).build()
        assert fragment.format_parts == ("%[", "return ", "%L", "\n", "%]")
        assert fragment.has_statements()

    def test_to_builder_leaves_original_unchanged(self):
        original = CodeFragment.of("a")
        extended = original.to_builder().add("b").build()
        assert str(extended) == "ab"
        assert str(original) == "a"

    def test_reusable_across_renders(self):
        fragment = CodeFragment.of("%T", ClassName("org.lib", "Bar"))
        assert str(fragment) == str(fragment)

    def test_control_flow(self):
        fragment = (
            CodeFragment.builder()
            .begin_control_flow("if (%N > 0)", "x")
            .add_statement("return %N", "x")
            .next_control_flow("else")
            .add_statement("return 0")
            .end_control_flow()
            .build()
        )
        assert str(fragment) == (
            "if (x > 0) {\n"
            "  return x\n"
            "} else {\n"
            "  return 0\n"
            "}\n"
        )

    def test_control_flow_keeps_existing_brace(self):
        fragment = (
            CodeFragment.builder()
            .begin_control_flow("items.forEach { item ->")
            .add_statement("println(item)")
            .end_control_flow()
            .build()
        )
        assert str(fragment) == "items.forEach { item ->\n  println(item)\n}\n"


class TestJoinToCode:

    def test_join_with_default_separator(self):
        parts = [CodeFragment.of("a"), CodeFragment.of("b"), CodeFragment.of("c")]
        assert str(join_to_code(parts)) == "a, b, c"

    def test_prefix_and_suffix(self):
        parts = [CodeFragment.of("%L", 1), CodeFragment.of("%L", 2)]
        assert str(join_to_code(parts, " + ", prefix="(", suffix=")")) == "(1 + 2)"

    def test_percent_in_separator(self):
        parts = [CodeFragment.of("a"), CodeFragment.of("b")]
        assert str(join_to_code(parts, " % ")) == "a % b"

    def test_join_nothing(self):
        assert join_to_code([]).is_empty()


class TestScanDirectives:

    def test_reports_index_and_code(self):
        assert scan_directives("%N = %2T%%") == [("", "N"), ("2", "T"), ("", "%")]
