"""Point-interval summaries and level comparisons for long-format draws.

Usage:
    >>> from tidydraws.summary import compare_levels, median_qi
    >>> median_qi(draws, "b", by="group", widths=[0.66, 0.95])
    >>> compare_levels(draws, "b", by="group", comparison="control")
"""

from .compare import Comparison, compare_levels, level_pairs
from .estimators import (
    INTERVAL_ESTIMATORS,
    POINT_ESTIMATORS,
    density,
    hdi,
    mean,
    median,
    mode,
    qi,
    quantile_dots,
)
from .point_interval import (
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

__all__ = [
    # estimators
    "INTERVAL_ESTIMATORS",
    "POINT_ESTIMATORS",
    "density",
    "hdi",
    "mean",
    "median",
    "mode",
    "qi",
    "quantile_dots",
    # point_interval
    "mean_hdi",
    "mean_qi",
    "median_hdi",
    "median_qi",
    "mode_hdi",
    "mode_qi",
    "point_interval",
    "point_interval_collect",
    "resolve_columns",
    "summary_columns",
    # compare
    "Comparison",
    "compare_levels",
    "level_pairs",
]
