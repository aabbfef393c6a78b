"""Raw draw sources, the index-spec parser and the long-format reshaper.

Key functions:
- list_variables: flat variable names available in a source
- parse_spec / match_indexed_name: the ``b[term,group]`` mini-language
- spread_draws / reshape: one value column per variable, joined on indices
- gather_draws: ``.variable`` / ``.value`` long format

Usage:
    >>> from tidydraws.draws import ArrayDrawSource, spread_draws
    >>> source = ArrayDrawSource(samples, ["mu", "b[1]", "b[2]"])
    >>> draws = spread_draws(source, "b[i]", "mu")
"""

from .reshape import DRAW_COLUMNS, CollapsePolicy, draw_ids, gather_draws, reshape, spread_draws
from .sources import (
    ArrayDrawSource,
    DictDrawSource,
    DrawSource,
    from_chains,
    from_dataframe,
    from_inference_data,
    list_variables,
)
from .spec import (
    DEFAULT_SEPARATOR,
    IndexSpec,
    format_indexed_name,
    match_indexed_name,
    parse_spec,
    split_indexed_name,
)

__all__ = [
    # sources
    "ArrayDrawSource",
    "DictDrawSource",
    "DrawSource",
    "from_chains",
    "from_dataframe",
    "from_inference_data",
    "list_variables",
    # spec
    "DEFAULT_SEPARATOR",
    "IndexSpec",
    "format_indexed_name",
    "match_indexed_name",
    "parse_spec",
    "split_indexed_name",
    # reshape
    "DRAW_COLUMNS",
    "CollapsePolicy",
    "draw_ids",
    "gather_draws",
    "reshape",
    "spread_draws",
]
