"""Tests for the index-spec parser and flat-name matching.

Tests cover:
- parse_spec for plain, indexed, blank-slot and malformed requests
- match_indexed_name with literal and regex bases and custom separators
- format_indexed_name / match_indexed_name round trip
"""

import pytest

from tidydraws.draws.spec import (
    DEFAULT_SEPARATOR,
    IndexSpec,
    format_indexed_name,
    match_indexed_name,
    parse_spec,
    split_indexed_name,
)
from tidydraws.errors import ParseError

# =============================================================================
# parse_spec
# =============================================================================


class TestParseSpec:
    def test_plain_name(self):
        spec = parse_spec("sigma")
        assert spec == IndexSpec(base="sigma")
        assert not spec.is_indexed
        assert spec.index_columns == ()

    def test_indexed_name(self):
        spec = parse_spec("b[term, group]")
        assert spec.base == "b"
        assert spec.slots == ("term", "group")
        assert spec.index_columns == ("term", "group")
        assert spec.separator == DEFAULT_SEPARATOR

    def test_blank_slot(self):
        spec = parse_spec("b[,group]")
        assert spec.slots == ("", "group")
        assert spec.index_columns == ("group",)

    def test_str_round_trip(self):
        assert str(parse_spec("b[term,group]")) == "b[term,group]"
        assert str(parse_spec("mu")) == "mu"

    def test_parsed_spec_returned_unchanged(self):
        spec = IndexSpec(base="b", slots=("i",))
        assert parse_spec(spec) is spec

    def test_regex_flag_and_separator_carried(self):
        spec = parse_spec("b_.*[i]", regex=True, separator=":")
        assert spec.regex
        assert spec.separator == ":"

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_spec_raises(self, text):
        with pytest.raises(ParseError, match="empty"):
            parse_spec(text)

    @pytest.mark.parametrize("text", ["b[i", "b]i[", "b[i]x"])
    def test_malformed_brackets_raise(self, text):
        with pytest.raises(ParseError, match="malformed"):
            parse_spec(text)

    def test_missing_base_raises(self):
        with pytest.raises(ParseError, match="missing variable name"):
            parse_spec("[i]")

    def test_duplicated_slot_raises(self):
        with pytest.raises(ParseError, match="duplicated"):
            parse_spec("b[i,i]")


# =============================================================================
# Flat-name matching
# =============================================================================


class TestMatchIndexedName:
    def test_basic_tokens(self):
        assert match_indexed_name("b[1,2]", "b") == ["1", "2"]

    def test_space_separator(self):
        assert match_indexed_name("b[(Intercept) condition:A]", "b") == [
            "(Intercept)",
            "condition:A",
        ]

    def test_other_base_does_not_match(self):
        assert match_indexed_name("bb[1]", "b") is None
        assert match_indexed_name("b", "b") is None

    def test_metacharacters_are_literal(self):
        assert match_indexed_name("b.x[1]", "b.x") == ["1"]
        assert match_indexed_name("bax[1]", "b.x") is None

    def test_regex_base(self):
        assert split_indexed_name("b_age[3]", r"b_\w+", regex=True) == ("b_age", ["3"])

    def test_custom_separator(self):
        assert match_indexed_name("b[1:2]", "b", separator=":") == ["1", "2"]

    @pytest.mark.parametrize(
        "tokens",
        [["1"], ["1", "2"], ["(Intercept)", "condition:A"], ["a", "b", "c"]],
    )
    def test_format_then_match_returns_tokens(self, tokens):
        flat = format_indexed_name("theta", tokens)
        assert match_indexed_name(flat, "theta") == tokens

    def test_format_without_tokens(self):
        assert format_indexed_name("mu", []) == "mu"
