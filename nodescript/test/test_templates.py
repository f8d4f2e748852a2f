import pytest

from nodescript.compiler.errors import UnknownLanguageError
from nodescript.compiler.templates import (
    LANGUAGE_REGISTRY,
    LUA,
    PYTHON,
    CodeWriter,
    LanguageProfile,
    convert,
    get_language,
    placeholders,
    register_language,
    render_literal,
    safe_name,
    substitute,
    var_name,
)
from nodescript.core.Types import BOOL, FLOAT, INT, STRING, Value, ValueType


class TestCodeWriter:

    def test_lines_and_comments(self):
        w = CodeWriter(comment_prefix="--")
        w.comment("header").writeln("if x then").extend(["    y()", "end"]).blank()
        assert w.lines() == ["-- header", "if x then", "    y()", "end", ""]
        assert w.result() == "-- header\nif x then\n    y()\nend\n"


class TestRenderLiteral:

    @pytest.mark.parametrize("value, python, lua", [
        (Value.of(True), "True", "true"),
        (Value.of(False), "False", "false"),
        (Value.of(42), "42", "42"),
        (Value.of(2.0), "2.0", "2.0"),
        (Value.of("say \"hi\""), '"say \\"hi\\""', '"say \\"hi\\""'),
        (Value.of("a\x01b"), '"a\\u0001b"', '"a\\001b"'),
        (Value.of("line\nnext\t"), '"line\\nnext\\t"', '"line\\nnext\\t"'),
        (Value.of("back\\slash"), '"back\\\\slash"', '"back\\\\slash"'),
        (Value.of(float("inf")), 'float("inf")', "math.huge"),
        (Value.of(float("-inf")), '-float("inf")', "-math.huge"),
        (Value.of(float("nan")), 'float("nan")', "(0/0)"),
        (None, "None", "nil"),
    ])
    def test_literals(self, value, python, lua):
        assert render_literal(value, PYTHON) == python
        assert render_literal(value, LUA) == lua

    def test_unicode_strings_kept(self):
        assert render_literal(Value.of("héllo"), PYTHON) == '"héllo"'

    def test_custom_payload_is_source_text(self):
        assert render_literal(Value.custom("Point", "Point(1, 2)"), PYTHON) == "Point(1, 2)"


class TestConvert:

    def test_same_type_untouched(self):
        assert convert("x", INT, INT, PYTHON) == "x"

    def test_unknown_source_untouched(self):
        assert convert("x", None, STRING, PYTHON) == "x"

    def test_scalar_mismatch(self):
        assert convert("x", INT, STRING, PYTHON) == "str(x)"
        assert convert("x", STRING, FLOAT, PYTHON) == "float(x)"
        assert convert("x", INT, STRING, LUA) == "tostring(x)"
        assert convert("x", STRING, FLOAT, LUA) == "tonumber(x)"

    def test_multi_target_accepts_member(self):
        assert convert("x", INT, ValueType.multi(INT, STRING), PYTHON) == "x"

    def test_custom_passes_through(self):
        point = ValueType.custom("Point")
        assert convert("p", point, STRING, PYTHON) == "p"
        assert convert("s", STRING, point, PYTHON) == "s"
        assert convert("b", BOOL, ValueType.multi(INT), PYTHON) == "b"


class TestNames:

    def test_safe_name(self):
        assert safe_name("Read File") == "read_file"
        assert safe_name("  x+y ") == "x_y"
        assert safe_name("???") == "node"

    def test_var_name(self):
        assert var_name("Add Numbers", 7, "sum") == "add_numbers_7_sum"


class TestSubstitute:

    def test_placeholders_resolved(self):
        seen = []

        def resolve(kind, name):
            seen.append((kind, name))
            return f"<{kind}.{name}>"

        text = substitute("${out:y} = f(${port:a}, ${field: n })", resolve)
        assert text == "<out.y> = f(<port.a>, <field.n>)"
        assert seen == [("out", "y"), ("port", "a"), ("field", "n")]

    def test_dollar_escape(self):
        assert substitute("cost = '$$5'", lambda kind, name: "") == "cost = '$5'"

    def test_unrecognised_text_left_alone(self):
        assert substitute("${other:x} $x", lambda kind, name: "!") == "${other:x} $x"

    def test_placeholders_listing(self):
        assert placeholders("$$ ${port:a} ${out:b}") == [("port", "a"), ("out", "b")]


class TestLanguageRegistry:

    def test_builtin_profiles(self):
        assert get_language("python") is PYTHON
        assert get_language("lua") is LUA

    def test_unknown_language(self):
        with pytest.raises(UnknownLanguageError) as excinfo:
            get_language("cobol")
        assert "cobol" in str(excinfo.value)

    def test_register_language(self):
        ruby = LanguageProfile(
            name="ruby",
            comment_prefix="#",
            true_literal="true",
            false_literal="false",
            null_literal="nil",
            import_format=lambda module: f"require '{module}'",
            assert_format="raise unless {}",
        )
        try:
            register_language(ruby)
            assert get_language("ruby").import_line("json") == "require 'json'"
            assert render_literal(Value.of("x"), ruby) == '"x"'
        finally:
            LANGUAGE_REGISTRY.pop("ruby", None)

    def test_import_lines(self):
        assert PYTHON.import_line("math") == "import math"
        assert PYTHON.import_line("from os import path") == "from os import path"
        assert LUA.import_line("socket.http") == 'local http = require("socket.http")'
        assert LUA.assertion("x > 0") == "assert(x > 0)"
        assert PYTHON.assertion("x > 0") == "assert x > 0"
