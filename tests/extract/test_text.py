import pytest

from hmatch.extract.text import compile_text_pattern, match_text
from hmatch.extract.values import Invalid
from hmatch.template.nodes import LiteralSegment, PropBinding, PropSegment


def lit(text):
    return LiteralSegment(text)


def prop(name, type="string", nullable=False):
    return PropSegment(PropBinding(name, type, nullable))


class TestSingleProp:
    """A lone prop binds the whole text."""

    def test_whole_text(self):
        assert match_text((prop("x"),), "  a\tb  ") == {"x": "a\tb"}

    def test_number(self):
        assert match_text((prop("x", "number"),), " 42 ") == {"x": 42.0}

    def test_whitespace_only_is_invalid_when_required(self):
        assert isinstance(match_text((prop("x"),), "   "), Invalid)

    def test_whitespace_only_is_null_when_nullable(self):
        assert match_text((prop("x", nullable=True),), "   ") == {"x": None}


class TestLiterals:
    """Literals must be present; matching is case-sensitive containment."""

    def test_literal_only(self):
        segments = (lit("FOO"),)
        assert match_text(segments, "FOO") == {}
        assert match_text(segments, "  xx FOO yy ") == {}
        assert isinstance(match_text(segments, ""), Invalid)
        assert isinstance(match_text(segments, "foo"), Invalid)

    def test_literal_whitespace_is_flexible(self):
        assert match_text((lit("per month"),), "10 per\n   month") == {}

    def test_no_segments(self):
        assert match_text((), "anything") == {}


class TestMixed:
    """Props between literals."""

    SEGMENTS = (prop("foo", nullable=True), lit("TEXT"), prop("bar", nullable=True))

    @pytest.mark.parametrize("text, expected", [
        ("TEXT", {"foo": None, "bar": None}),
        ("fooTEXTbar", {"foo": "foo", "bar": "bar"}),
        ("foo  TEXT  bar", {"foo": "foo", "bar": "bar"}),
        ("foo  TEXT", {"foo": "foo", "bar": None}),
        ("TEXT  bar", {"foo": None, "bar": "bar"}),
    ])
    def test_nullable_props_around_literal(self, text, expected):
        assert match_text(self.SEGMENTS, text) == expected

    def test_number_with_unit(self):
        segments = (prop("price", "number"), lit("$"))
        assert match_text(segments, "10$") == {"price": 10.0}
        assert match_text(segments, "10 $") == {"price": 10.0}
        assert isinstance(match_text(segments, "A $"), Invalid)

    def test_two_numbers(self):
        segments = (prop("price", "number"), lit("$"), prop("discount", "number"), lit("$"))
        assert match_text(segments, "100 $ 50 $") == {"price": 100.0, "discount": 50.0}

    def test_required_prop_needs_text(self):
        segments = (lit("Price:"), prop("price", "number"))
        assert match_text(segments, "Price: 12.5") == {"price": 12.5}
        assert isinstance(match_text(segments, "Price:"), Invalid)

    def test_leading_prop_anchors_at_start(self):
        segments = (prop("a"), lit("-"), prop("b"))
        assert match_text(segments, "x - y") == {"a": "x", "b": "y"}


def test_patterns_are_cached():
    segments = (prop("a"), lit("GB"))
    first = compile_text_pattern(segments)
    assert compile_text_pattern(segments) is first
    pattern, props = first
    assert props == (PropBinding("a"),)
    assert pattern.pattern == r"\A\s*(.+)\s*GB"
