"""Grouped point-and-interval summaries of long-format draws.

Summaries run in two explicit phases:

1. derive: optional callables add computed columns to the draws table
2. group and summarize: every (group, width) pair yields one output row

Grouping is explicit. Reserved draw columns (``.chain``, ``.iteration``,
``.draw``) are never targets or groups. Given ``targets``, every other
column is a grouping column unless ``by`` says otherwise; given only ``by``,
the single remaining column is the target. Ambiguity raises GroupingError
rather than guessing.

Output columns:
- grouping columns, in table order
- ``<target>``: point estimate (``<target>.lower``/``.upper`` per target
  when summarizing several, plain ``.lower``/``.upper`` for one)
- ``.width``: probability mass of the interval
- ``.point`` / ``.interval``: estimator names

Usage:
    >>> draws = spread_draws(source, "b[term,group]")
    >>> summary = mean_qi(draws, "b", by="group", widths=[0.66, 0.95])
    >>> summary.columns.tolist()
    ['group', 'b', '.lower', '.upper', '.width', '.point', '.interval']
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd
import structlog
from pandas.api.types import is_numeric_dtype

from tidydraws.draws.reshape import DRAW_COLUMNS
from tidydraws.errors import EstimationError, GroupingError, TidyDrawsError
from tidydraws.summary.estimators import (
    INTERVAL_ESTIMATORS,
    POINT_ESTIMATORS,
    median,
    validate_width,
)

log = structlog.get_logger()

__all__ = [
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
]

PointFunc = Callable[[np.ndarray], float]
IntervalFunc = Callable[[np.ndarray, float], tuple[float, float]]


def _as_list(value: str | Sequence[str] | None) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


def _as_frame(data: pd.DataFrame | pd.Series | np.ndarray) -> pd.DataFrame:
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, pd.Series):
        return data.to_frame(name=data.name if data.name is not None else "value")
    return pd.DataFrame({"value": np.asarray(data).reshape(-1)})


def _resolve_estimator(
    estimator: str | Callable,
    registry: Mapping[str, Callable],
    kind: str,
) -> tuple[str, Callable]:
    if callable(estimator):
        return getattr(estimator, "__name__", kind), estimator
    try:
        return estimator, registry[estimator]
    except KeyError:
        raise EstimationError(
            f"unknown {kind} estimator {estimator!r}; expected one of {sorted(registry)}"
        ) from None


def resolve_columns(
    df: pd.DataFrame,
    targets: str | Sequence[str] | None = None,
    by: str | Sequence[str] | None = None,
) -> tuple[list[str], list[str]]:
    """Work out (targets, grouping columns) for a draws table.

    Raises
    ------
    GroupingError
        Unknown or reserved columns, overlapping targets and groups, or no
        single unambiguous target.
    """
    target_list = _as_list(targets)
    by_list = _as_list(by)

    named = (target_list or []) + (by_list or [])
    missing = [c for c in named if c not in df.columns]
    if missing:
        raise GroupingError(f"columns not found in draws table: {missing}")
    reserved = [c for c in named if c in DRAW_COLUMNS]
    if reserved:
        raise GroupingError(f"reserved draw columns cannot be targets or groups: {reserved}")

    available = [c for c in df.columns if c not in DRAW_COLUMNS]

    if target_list is not None and by_list is not None:
        overlap = sorted(set(target_list) & set(by_list))
        if overlap:
            raise GroupingError(f"columns are both targets and groups: {overlap}")
    elif target_list is not None:
        by_list = [c for c in available if c not in target_list]
    elif by_list is not None:
        remaining = [c for c in available if c not in by_list]
        if len(remaining) != 1:
            raise GroupingError(
                f"cannot infer target: {len(remaining)} non-grouping columns remain "
                f"({remaining}); pass targets explicitly"
            )
        target_list = remaining
    else:
        numeric = [c for c in available if is_numeric_dtype(df[c])]
        if len(numeric) != 1:
            raise GroupingError(
                f"cannot infer target: found {len(numeric)} numeric columns "
                f"({numeric}); pass targets or by explicitly"
            )
        target_list = numeric
        by_list = [c for c in available if c not in numeric]

    if not target_list:
        raise GroupingError("no target columns to summarize")

    return target_list, by_list


def _group_values(
    group: pd.DataFrame,
    target: str,
    key: tuple,
    na_rm: bool,
) -> np.ndarray:
    series = group[target]
    if not is_numeric_dtype(series):
        raise GroupingError(f"target column is not numeric (dtype {series.dtype})", variable=target)

    missing = series.isna()
    if missing.any():
        if not na_rm:
            raise EstimationError(
                f"{int(missing.sum())} missing draw(s); pass na_rm=True to drop them",
                variable=target,
                group=key,
            )
        series = series[~missing]

    if series.empty:
        raise EstimationError("no draws", variable=target, group=key)
    if pd.api.types.is_extension_array_dtype(series.dtype) or series.dtype.kind == "b":
        return series.to_numpy(dtype=float)
    return series.to_numpy()


def _summarize_target(
    values: np.ndarray,
    target: str,
    key: tuple,
    widths: Sequence[float],
    point: tuple[str, PointFunc],
    interval: tuple[str, IntervalFunc],
    min_mode_draws: int,
) -> tuple[float, list[tuple[float, float]]]:
    point_name, point_fn = point
    _, interval_fn = interval

    if point_name == "mode" and values.size < min_mode_draws:
        estimate = median(values)
        log.warning(
            "degenerate_mode_estimate",
            variable=target,
            group=key,
            n_draws=int(values.size),
            min_mode_draws=min_mode_draws,
        )
        return estimate, [(estimate, estimate) for _ in widths]

    estimate = float(point_fn(values))
    bounds = []
    for width in widths:
        try:
            bounds.append(interval_fn(values, width))
        except EstimationError as exc:
            raise EstimationError(exc.message, variable=target, group=key, width=width) from exc
    return estimate, bounds


def _summarize(
    data: pd.DataFrame | pd.Series | np.ndarray,
    targets: str | Sequence[str] | None,
    by: str | Sequence[str] | None,
    derive: Mapping[str, Callable[[pd.DataFrame], Any]] | None,
    point: str | PointFunc,
    interval: str | IntervalFunc,
    widths: float | Sequence[float],
    na_rm: bool,
    min_mode_draws: int,
    collect: bool,
) -> tuple[pd.DataFrame, list[TidyDrawsError]]:
    width_list = [widths] if np.isscalar(widths) else list(widths)
    if not width_list:
        raise EstimationError("at least one width is required")
    width_list = sorted({validate_width(w) for w in width_list})

    point_spec = _resolve_estimator(point, POINT_ESTIMATORS, "point")
    interval_spec = _resolve_estimator(interval, INTERVAL_ESTIMATORS, "interval")

    df = _as_frame(data)
    if derive:
        df = df.copy()
        for name, fn in derive.items():
            df[name] = fn(df)
        if targets is None:
            targets = list(derive)

    target_list, group_columns = resolve_columns(df, targets, by)
    if len(df) == 0:
        raise EstimationError("no draws")

    if group_columns:
        grouped = df.groupby(group_columns, sort=False, dropna=False, observed=True)
        groups = [(k if isinstance(k, tuple) else (k,), g) for k, g in grouped]
    else:
        groups = [((), df)]

    log.debug(
        "point_interval_start",
        targets=target_list,
        by=group_columns,
        n_groups=len(groups),
        widths=width_list,
        point=point_spec[0],
        interval=interval_spec[0],
    )

    single = len(target_list) == 1
    rows: list[tuple[int, int, dict[str, Any]]] = []
    errors: list[TidyDrawsError] = []

    for group_position, (key, group) in enumerate(groups):
        try:
            results = {}
            for target in target_list:
                values = _group_values(group, target, key, na_rm)
                results[target] = _summarize_target(
                    values, target, key, width_list, point_spec, interval_spec, min_mode_draws
                )
        except TidyDrawsError as exc:
            if not collect:
                raise
            log.debug("group_skipped", group=key, error=str(exc))
            errors.append(exc)
            continue

        for width_position, width in enumerate(width_list):
            row: dict[str, Any] = dict(zip(group_columns, key))
            for target, (estimate, bounds) in results.items():
                lower, upper = bounds[width_position]
                prefix = "" if single else target
                row[target] = estimate
                row[f"{prefix}.lower"] = lower
                row[f"{prefix}.upper"] = upper
            row[".width"] = width
            row[".point"] = point_spec[0]
            row[".interval"] = interval_spec[0]
            rows.append((width_position, group_position, row))

    rows.sort(key=lambda item: (item[0], item[1]))
    value_columns = []
    for target in target_list:
        prefix = "" if single else target
        value_columns += [target, f"{prefix}.lower", f"{prefix}.upper"]
    columns = [*group_columns, *value_columns, ".width", ".point", ".interval"]

    summary = pd.DataFrame([row for _, _, row in rows], columns=columns)
    return summary, errors


def point_interval(
    data: pd.DataFrame | pd.Series | np.ndarray,
    targets: str | Sequence[str] | None = None,
    *,
    by: str | Sequence[str] | None = None,
    derive: Mapping[str, Callable[[pd.DataFrame], Any]] | None = None,
    point: str | PointFunc = "median",
    interval: str | IntervalFunc = "qi",
    widths: float | Sequence[float] = 0.95,
    na_rm: bool = False,
    min_mode_draws: int = 2,
) -> pd.DataFrame:
    """Summarize draws with a point estimate and intervals per group.

    Parameters
    ----------
    data : pd.DataFrame | pd.Series | np.ndarray
        Long-format draws table. A Series or array is one anonymous group.
    targets : str | Sequence[str], optional
        Value columns to summarize. Inferred when None (see module docs).
    by : str | Sequence[str], optional
        Grouping columns. Defaults to every non-target, non-reserved column.
    derive : Mapping[str, Callable], optional
        Columns computed from the table before grouping, in order. They
        become the targets when ``targets`` is None.
    point : {"mean", "median", "mode"} or callable, default "median"
        Point statistic.
    interval : {"qi", "hdi"} or callable, default "qi"
        Interval statistic, called as ``interval(values, width)``.
    widths : float | Sequence[float], default 0.95
        Probability masses in (0, 1). Output is sorted ascending by width.
    na_rm : bool, default False
        Drop missing draws instead of raising.
    min_mode_draws : int, default 2
        Below this many draws, ``point="mode"`` falls back to the median
        with a zero-width interval (logged as a warning).

    Returns
    -------
    pd.DataFrame
        One row per (group, width), width-major.

    Raises
    ------
    GroupingError
        Ambiguous, missing or non-numeric targets/groups.
    EstimationError
        Invalid width, unknown estimator, empty group or missing draws.
    """
    summary, _ = _summarize(
        data, targets, by, derive, point, interval, widths, na_rm, min_mode_draws, collect=False
    )
    return summary


def point_interval_collect(
    data: pd.DataFrame | pd.Series | np.ndarray,
    targets: str | Sequence[str] | None = None,
    *,
    by: str | Sequence[str] | None = None,
    derive: Mapping[str, Callable[[pd.DataFrame], Any]] | None = None,
    point: str | PointFunc = "median",
    interval: str | IntervalFunc = "qi",
    widths: float | Sequence[float] = 0.95,
    na_rm: bool = False,
    min_mode_draws: int = 2,
) -> tuple[pd.DataFrame, list[TidyDrawsError]]:
    """Like point_interval(), but skip failing groups and return their errors.

    Validation that applies to the whole call (widths, estimator names,
    target resolution) still raises.
    """
    return _summarize(
        data, targets, by, derive, point, interval, widths, na_rm, min_mode_draws, collect=True
    )


def _shorthand(point: str, interval: str) -> Callable[..., pd.DataFrame]:
    def summarize(data, targets=None, **kwargs) -> pd.DataFrame:
        return point_interval(data, targets, point=point, interval=interval, **kwargs)

    summarize.__name__ = summarize.__qualname__ = f"{point}_{interval}"
    summarize.__doc__ = f"point_interval() with point={point!r} and interval={interval!r}."
    return summarize


mean_qi = _shorthand("mean", "qi")
median_qi = _shorthand("median", "qi")
mode_qi = _shorthand("mode", "qi")
mean_hdi = _shorthand("mean", "hdi")
median_hdi = _shorthand("median", "hdi")
mode_hdi = _shorthand("mode", "hdi")


SUMMARY_COLUMNS = (".width", ".point", ".interval")


def summary_columns(summary: pd.DataFrame, value: str | None = None) -> tuple[str, str, str, list[str]]:
    """Locate (value, lower, upper, group columns) in a point_interval() table.

    ``value`` is required only when the table summarizes several targets.

    Raises
    ------
    GroupingError
        If the table does not look like point_interval() output or ``value``
        is ambiguous.
    """
    if ".lower" in summary.columns:
        position = summary.columns.get_loc(".lower")
        inferred = summary.columns[position - 1]
        if value is not None and value != inferred:
            raise GroupingError(f"summary table holds {inferred!r}, not {value!r}", variable=value)
        value = inferred
        lower, upper = ".lower", ".upper"
    else:
        targets = [c[: -len(".lower")] for c in summary.columns if str(c).endswith(".lower")]
        if not targets:
            raise GroupingError("table has no interval columns; expected point_interval() output")
        if value is None:
            if len(targets) != 1:
                raise GroupingError(f"summary holds several targets {targets}; pass value explicitly")
            value = targets[0]
        if value not in targets:
            raise GroupingError(f"no interval columns for {value!r}", variable=value)
        lower, upper = f"{value}.lower", f"{value}.upper"

    value_columns = {value, lower, upper}
    for column in summary.columns:
        if str(column).endswith((".lower", ".upper")):
            value_columns.add(column)
            value_columns.add(str(column).rsplit(".", 1)[0])
    groups = [c for c in summary.columns if c not in value_columns and c not in SUMMARY_COLUMNS]
    return value, lower, upper, groups
