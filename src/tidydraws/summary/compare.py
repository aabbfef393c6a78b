"""Draw-by-draw comparisons between levels of a factor column.

Each comparison ``A - B`` subtracts level B's value from level A's value
within the same draw. Rows are matched on the draw ids plus any remaining
index columns (the non-numeric columns); a draw present for only one of the
two levels is dropped, never zero-filled. Other value columns are dropped
from the result.

Comparison modes:
- pairwise: every unordered pair, later level minus earlier level
  (``ordered=True`` adds the reverse direction)
- consecutive: each level minus the one before it
- control: each level minus a control level (the first level by default)

Usage:
    >>> draws = spread_draws(source, "b[term,group]")
    >>> diffs = compare_levels(draws, "b", by="group", comparison="control")
    >>> diffs["group"].unique()[:2].tolist()
    ['condition:B - condition:A', 'condition:C - condition:A']
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import Literal

import pandas as pd
import structlog
from pandas.api.types import is_numeric_dtype

from tidydraws.draws.reshape import DRAW_COLUMNS
from tidydraws.errors import GroupingError

log = structlog.get_logger()

__all__ = [
    "Comparison",
    "compare_levels",
    "level_pairs",
]

Comparison = Literal["pairwise", "consecutive", "control"]


def _levels(series: pd.Series) -> list[Hashable]:
    """Factor levels: category order for categoricals, else first appearance."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        observed = set(series.dropna().unique())
        return [level for level in series.cat.categories if level in observed]
    return list(pd.unique(series.dropna()))


def level_pairs(
    levels: Sequence[Hashable],
    comparison: Comparison = "pairwise",
    control: Hashable | None = None,
    ordered: bool = False,
) -> list[tuple[Hashable, Hashable]]:
    """List (A, B) pairs, meaning ``A - B``, for a comparison mode.

    Examples
    --------
    >>> level_pairs(["a", "b", "c"])
    [('b', 'a'), ('c', 'a'), ('c', 'b')]
    >>> level_pairs(["a", "b", "c"], "consecutive")
    [('b', 'a'), ('c', 'b')]
    >>> level_pairs(["a", "b", "c"], "control", control="b")
    [('a', 'b'), ('c', 'b')]
    """
    levels = list(levels)
    if comparison == "pairwise":
        pairs = [(levels[j], levels[i]) for i in range(len(levels)) for j in range(i + 1, len(levels))]
        if ordered:
            pairs += [(b, a) for a, b in pairs]
        return pairs
    if comparison == "consecutive":
        return [(levels[i + 1], levels[i]) for i in range(len(levels) - 1)]
    if comparison == "control":
        if control is None:
            control = levels[0]
        if control not in levels:
            raise GroupingError(f"control level {control!r} not found among levels {levels}")
        return [(level, control) for level in levels if level != control]
    raise GroupingError(
        f"unknown comparison {comparison!r}; expected 'pairwise', 'consecutive' or 'control'"
    )


def compare_levels(
    draws: pd.DataFrame,
    variable: str,
    by: str,
    comparison: Comparison = "pairwise",
    *,
    control: Hashable | None = None,
    ordered: bool = False,
    match_on: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Replace a value column by draw-wise differences between factor levels.

    Parameters
    ----------
    draws : pd.DataFrame
        Long-format draws table.
    variable : str
        Numeric value column to difference.
    by : str
        Factor column whose levels are compared. In the output it holds
        labels of the form ``"A - B"``.
    comparison : {"pairwise", "consecutive", "control"}, default "pairwise"
        Which level pairs to compare.
    control : hashable, optional
        Control level for ``comparison="control"``. Defaults to the first
        level.
    ordered : bool, default False
        For pairwise comparisons, include both ``A - B`` and ``B - A``.
    match_on : sequence of str, optional
        Columns that identify the same draw across levels. Defaults to the
        draw-id columns plus every non-numeric column besides ``by``.

    Returns
    -------
    pd.DataFrame
        The ``match_on`` columns, ``by`` and ``variable`` in their original
        order, one row per matched draw per comparison, comparisons in pair
        order.

    Raises
    ------
    GroupingError
        Unknown or non-numeric columns, fewer than two levels, no columns to
        match draws on, duplicate rows within a level, or a bad control.
    """
    missing = [c for c in (variable, by) if c not in draws.columns]
    if missing:
        raise GroupingError(f"columns not found in draws table: {missing}")
    if variable == by:
        raise GroupingError("variable and by must be different columns", variable=variable)
    if not is_numeric_dtype(draws[variable]):
        raise GroupingError(f"value column is not numeric (dtype {draws[variable].dtype})", variable=variable)

    if match_on is None:
        keys = [
            c
            for c in draws.columns
            if c not in (variable, by) and (c in DRAW_COLUMNS or not is_numeric_dtype(draws[c]))
        ]
    else:
        keys = list(match_on)
        unknown = [c for c in keys if c not in draws.columns or c in (variable, by)]
        if unknown:
            raise GroupingError(f"match_on columns must be other columns of the draws table: {unknown}")
    if not keys:
        raise GroupingError("no columns left to match draws on", variable=variable)

    levels = _levels(draws[by])
    if len(levels) < 2:
        raise GroupingError(f"need at least two levels of {by!r} to compare, found {levels}", variable=variable)

    frames: dict[Hashable, pd.DataFrame] = {}
    for level in levels:
        frame = draws.loc[draws[by] == level, [*keys, variable]]
        if frame.duplicated(subset=keys).any():
            raise GroupingError(
                f"level {level!r} has more than one row per draw; "
                "summarize or drop the extra columns first",
                variable=variable,
                group=(level,),
            )
        frames[level] = frame

    pairs = level_pairs(levels, comparison, control=control, ordered=ordered)

    pieces = []
    for a, b in pairs:
        merged = frames[a].merge(frames[b], on=keys, how="inner", suffixes=(".a", ".b"))
        difference = merged[f"{variable}.a"] - merged[f"{variable}.b"]
        piece = merged[keys].copy()
        piece[by] = f"{a} - {b}"
        piece[variable] = difference
        piece = piece[difference.notna()]
        pieces.append(piece)

    log.debug(
        "levels_compared",
        variable=variable,
        by=by,
        comparison=comparison,
        n_levels=len(levels),
        n_comparisons=len(pairs),
    )
    result = pd.concat(pieces, ignore_index=True)
    return result[[c for c in draws.columns if c in (*keys, by, variable)]]
