"""Tests for grouped point-interval summaries.

Tests cover:
- Target and grouping inference (and its errors)
- Output layout: columns, width-major row order, multi-target naming
- derive, na_rm, collect mode, degenerate mode fallback
- The shorthand functions
"""

import numpy as np
import pandas as pd
import pytest

from tidydraws.errors import EstimationError, GroupingError
from tidydraws.summary.estimators import hdi, qi
from tidydraws.summary.point_interval import (
    mean_hdi,
    mean_qi,
    median_hdi,
    median_qi,
    mode_hdi,
    mode_qi,
    point_interval,
    point_interval_collect,
    resolve_columns,
    summary_columns,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def draws():
    """Two groups x 200 draws of ``b`` and ``c`` plus draw columns."""
    rng = np.random.default_rng(1)
    n = 200
    return pd.DataFrame(
        {
            "group": ["a"] * n + ["b"] * n,
            ".chain": np.ones(2 * n, dtype=int),
            ".iteration": np.tile(np.arange(1, n + 1), 2),
            ".draw": np.tile(np.arange(1, n + 1), 2),
            "b": np.concatenate([rng.normal(0, 1, n), rng.normal(5, 1, n)]),
            "c": rng.normal(size=2 * n),
        }
    )


# =============================================================================
# Column resolution
# =============================================================================


class TestResolveColumns:
    def test_targets_given_groups_are_the_rest(self, draws):
        assert resolve_columns(draws, "b") == (["b"], ["group", "c"])

    def test_by_given_single_remaining_target(self, draws):
        assert resolve_columns(draws[["group", ".draw", "b"]], by="group") == (["b"], ["group"])

    def test_by_given_several_remaining_raises(self, draws):
        with pytest.raises(GroupingError, match="cannot infer target"):
            resolve_columns(draws, by="group")

    def test_nothing_given_single_numeric(self, draws):
        assert resolve_columns(draws[["group", ".draw", "b"]]) == (["b"], ["group"])

    def test_nothing_given_several_numeric_raises(self, draws):
        with pytest.raises(GroupingError, match="2 numeric"):
            resolve_columns(draws)

    def test_reserved_column_raises(self, draws):
        with pytest.raises(GroupingError, match="reserved"):
            resolve_columns(draws, ".draw")

    def test_missing_column_raises(self, draws):
        with pytest.raises(GroupingError, match="not found"):
            resolve_columns(draws, "nope")

    def test_overlap_raises(self, draws):
        with pytest.raises(GroupingError, match="both targets and groups"):
            resolve_columns(draws, "b", by=["b", "group"])


# =============================================================================
# point_interval
# =============================================================================


class TestPointInterval:
    def test_single_target_layout(self, draws):
        summary = point_interval(draws, "b", by="group")
        assert summary.columns.tolist() == [
            "group", "b", ".lower", ".upper", ".width", ".point", ".interval",
        ]
        assert summary["group"].tolist() == ["a", "b"]
        assert (summary[".point"] == "median").all()
        assert (summary[".interval"] == "qi").all()

    def test_values_match_estimators(self, draws):
        summary = point_interval(draws, "b", by="group", point="mean", interval="hdi", widths=0.8)
        values = draws.loc[draws["group"] == "b", "b"].to_numpy()
        row = summary.iloc[1]
        assert row["b"] == pytest.approx(values.mean())
        assert (row[".lower"], row[".upper"]) == pytest.approx(hdi(values, 0.8))

    def test_width_major_and_sorted(self, draws):
        summary = point_interval(draws, "b", by="group", widths=[0.95, 0.5])
        assert summary[".width"].tolist() == [0.5, 0.5, 0.95, 0.95]
        assert summary["group"].tolist() == ["a", "b", "a", "b"]

    def test_intervals_nest_and_contain_point(self, draws):
        summary = point_interval(draws, "b", by="group", widths=[0.5, 0.8, 0.95])
        assert (summary[".lower"] <= summary["b"]).all()
        assert (summary["b"] <= summary[".upper"]).all()
        for _, rows in summary.groupby("group"):
            rows = rows.sort_values(".width")
            assert rows[".lower"].is_monotonic_decreasing
            assert rows[".upper"].is_monotonic_increasing

    def test_multiple_targets_are_prefixed(self, draws):
        summary = point_interval(draws, ["b", "c"], by="group")
        assert summary.columns.tolist() == [
            "group", "b", "b.lower", "b.upper", "c", "c.lower", "c.upper",
            ".width", ".point", ".interval",
        ]

    def test_no_groups(self, draws):
        summary = point_interval(draws, "b", by=[])
        assert len(summary) == 1
        assert summary.columns.tolist()[0] == "b"

    def test_series_input(self):
        summary = point_interval(pd.Series(np.arange(101.0), name="x"), widths=0.5)
        assert summary["x"].item() == 50.0
        assert (summary[".lower"].item(), summary[".upper"].item()) == qi(np.arange(101.0), 0.5)

    def test_group_order_is_first_appearance(self, draws):
        reordered = pd.concat([draws[draws["group"] == "b"], draws[draws["group"] == "a"]])
        summary = point_interval(reordered, "b", by="group")
        assert summary["group"].tolist() == ["b", "a"]

    def test_derive_adds_targets(self, draws):
        summary = point_interval(
            draws,
            by="group",
            derive={"b_minus_c": lambda df: df["b"] - df["c"]},
        )
        assert "b_minus_c" in summary.columns
        assert summary.columns.tolist()[0] == "group"

    def test_callable_estimators(self, draws):
        def biggest(x):
            return float(np.max(x))

        summary = point_interval(
            draws, "b", by="group",
            point=biggest,
            interval=lambda x, w: (float(np.min(x)), float(np.max(x))),
        )
        assert (summary["b"] == summary[".upper"]).all()
        assert summary[".point"].iloc[0] == "biggest"

    def test_bool_targets_summarized_as_numbers(self):
        df = pd.DataFrame({"flag": [True, False, True, True]})
        summary = mean_qi(df, "flag", by=[])
        assert summary["flag"].item() == 0.75


class TestPointIntervalErrors:
    @pytest.mark.parametrize("widths", [0.0, 1.0, [0.5, 1.2], []])
    def test_invalid_widths(self, draws, widths):
        with pytest.raises(EstimationError):
            point_interval(draws, "b", by="group", widths=widths)

    def test_unknown_estimator(self, draws):
        with pytest.raises(EstimationError, match="unknown point estimator"):
            point_interval(draws, "b", by="group", point="trimmed")

    def test_non_numeric_target(self, draws):
        with pytest.raises(GroupingError, match="not numeric"):
            point_interval(draws, "group", by=[])

    def test_missing_values_raise_with_group(self, draws):
        draws.loc[0, "b"] = np.nan
        with pytest.raises(EstimationError, match="missing") as excinfo:
            point_interval(draws, "b", by="group")
        assert excinfo.value.group == ("a",)
        assert excinfo.value.variable == "b"

    def test_na_rm_drops_missing(self, draws):
        draws.loc[0, "b"] = np.nan
        summary = point_interval(draws, "b", by="group", na_rm=True)
        assert summary["b"].notna().all()

    def test_empty_table(self, draws):
        with pytest.raises(EstimationError, match="no draws"):
            point_interval(draws.iloc[:0], "b", by="group")


class TestCollectMode:
    def test_failing_group_skipped(self, draws):
        draws.loc[draws["group"] == "a", "b"] = np.nan
        summary, errors = point_interval_collect(draws, "b", by="group")
        assert summary["group"].tolist() == ["b"]
        assert len(errors) == 1
        assert errors[0].group == ("a",)

    def test_call_level_errors_still_raise(self, draws):
        with pytest.raises(EstimationError):
            point_interval_collect(draws, "b", by="group", widths=2.0)


class TestModeFallback:
    def test_single_draw_falls_back_to_median(self):
        df = pd.DataFrame({"g": ["a", "b", "b", "b"], "x": [1.5, 0.1, 0.2, 0.3]})
        summary = mode_qi(df, "x", by="g", widths=[0.5, 0.9])
        row = summary[(summary["g"] == "a")]
        assert (row["x"] == 1.5).all()
        assert (row[".lower"] == 1.5).all()
        assert (row[".upper"] == 1.5).all()

    def test_threshold_configurable(self):
        df = pd.DataFrame({"x": [1.0, 2.0, 3.5]})
        summary = mode_hdi(df, "x", by=[], min_mode_draws=5)
        assert summary["x"].item() == 2.0


# =============================================================================
# Shorthands and helpers
# =============================================================================


class TestShorthands:
    @pytest.mark.parametrize(
        "fn, point, interval",
        [
            (mean_qi, "mean", "qi"),
            (median_qi, "median", "qi"),
            (mode_qi, "mode", "qi"),
            (mean_hdi, "mean", "hdi"),
            (median_hdi, "median", "hdi"),
            (mode_hdi, "mode", "hdi"),
        ],
    )
    def test_names_and_estimators(self, draws, fn, point, interval):
        assert fn.__name__ == f"{point}_{interval}"
        summary = fn(draws, "b", by="group")
        assert (summary[".point"] == point).all()
        assert (summary[".interval"] == interval).all()


class TestSummaryColumns:
    def test_single_target(self, draws):
        summary = median_qi(draws, "b", by="group")
        assert summary_columns(summary) == ("b", ".lower", ".upper", ["group"])

    def test_multi_target_requires_value(self, draws):
        summary = median_qi(draws, ["b", "c"], by="group")
        with pytest.raises(GroupingError, match="several targets"):
            summary_columns(summary)
        assert summary_columns(summary, "c") == ("c", "c.lower", "c.upper", ["group"])

    def test_not_a_summary(self, draws):
        with pytest.raises(GroupingError, match="no interval columns"):
            summary_columns(draws)
