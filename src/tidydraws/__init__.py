"""Tidy long-format tables and point-interval summaries of posterior draws.

Plotting lives in ``tidydraws.plotting`` (matplotlib) and
``tidydraws.visualization`` (Plotly) and is not imported here.
"""

from tidydraws.draws import (
    ArrayDrawSource,
    DictDrawSource,
    from_chains,
    from_dataframe,
    from_inference_data,
    gather_draws,
    list_variables,
    parse_spec,
    spread_draws,
)
from tidydraws.errors import EstimationError, GroupingError, JoinError, ParseError, TidyDrawsError
from tidydraws.summary import (
    compare_levels,
    mean_hdi,
    mean_qi,
    median_hdi,
    median_qi,
    mode_hdi,
    mode_qi,
    point_interval,
)

__version__ = "0.1.0"

__all__ = [
    "ArrayDrawSource",
    "DictDrawSource",
    "EstimationError",
    "GroupingError",
    "JoinError",
    "ParseError",
    "TidyDrawsError",
    "compare_levels",
    "from_chains",
    "from_dataframe",
    "from_inference_data",
    "gather_draws",
    "list_variables",
    "mean_hdi",
    "mean_qi",
    "median_hdi",
    "median_qi",
    "mode_hdi",
    "mode_qi",
    "parse_spec",
    "point_interval",
    "spread_draws",
]
