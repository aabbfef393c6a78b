"""Tests for the tidydraws exception hierarchy."""

import pytest

from tidydraws.errors import (
    EstimationError,
    GroupingError,
    JoinError,
    ParseError,
    TidyDrawsError,
)


class TestTidyDrawsError:
    def test_message_without_context(self):
        err = TidyDrawsError("no draws")
        assert str(err) == "no draws"
        assert err.context == {}

    def test_context_prefix_in_display_order(self):
        err = TidyDrawsError("no draws", width=0.95, group=("a",), variable="b")
        assert str(err) == "[variable=b, group=('a',), width=0.95] no draws"

    def test_context_skips_none_fields(self):
        err = EstimationError("bad width", width=1.5)
        assert err.context == {"width": 1.5}
        assert err.message == "bad width"

    @pytest.mark.parametrize("cls", [ParseError, JoinError, GroupingError, EstimationError])
    def test_subclasses_are_value_errors(self, cls):
        err = cls("boom", variable="x")
        assert isinstance(err, TidyDrawsError)
        assert isinstance(err, ValueError)
        with pytest.raises(ValueError, match=r"\[variable=x\] boom"):
            raise err
