"""Matplotlib primitives for visualizing draws and their summaries.

Every function draws onto ``ax`` (a new figure when omitted) and returns the
axes, so primitives compose on the same plot. Groups run top to bottom on
the y axis in first-appearance order.

Key functions:
- plot_pointinterval: thick-to-thin interval lines plus the point estimate
- plot_halfeye / plot_eye: density slab (one-sided / mirrored) with a
  point-interval underneath
- plot_lineribbon: nested bands per width over an ordered x
- plot_dots: quantile dotplot, each dot 1 / n_dots of the mass

Usage:
    >>> draws = spread_draws(source, "b[term,group]")
    >>> with set_publication_style():
    ...     ax = plot_halfeye(draws, "b", by="group")
    ...     save_figure(ax.figure, "figs", "halfeye_b")
"""

from __future__ import annotations

from collections.abc import Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from tidydraws.plotting.figures import COLORBLIND_COLORS
from tidydraws.summary.estimators import density, quantile_dots
from tidydraws.summary.point_interval import point_interval, summary_columns

__all__ = [
    "plot_dots",
    "plot_eye",
    "plot_halfeye",
    "plot_lineribbon",
    "plot_pointinterval",
]

# slab height as a fraction of the spacing between groups
SLAB_SCALE = 0.9


def _axes(ax: plt.Axes | None) -> plt.Axes:
    if ax is None:
        _, ax = plt.subplots()
    return ax


def _as_list(columns: str | Sequence[str] | None) -> list[str]:
    if columns is None:
        return []
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def _group_labels(df: pd.DataFrame, columns: Sequence[str]) -> pd.Series:
    if not columns:
        return pd.Series([""] * len(df), index=df.index)
    return df[list(columns)].astype(str).agg(", ".join, axis=1)


def _line_widths(widths: Sequence[float], thickest: float = 4.0, thinnest: float = 1.0) -> dict[float, float]:
    ordered = sorted(widths)
    if len(ordered) == 1:
        return {ordered[0]: (thickest + thinnest) / 2}
    step = (thickest - thinnest) / (len(ordered) - 1)
    return {w: thickest - i * step for i, w in enumerate(ordered)}


def _set_group_ticks(ax: plt.Axes, labels: Sequence[str]) -> None:
    ax.set_yticks(range(len(labels)))
    ax.set_yticklabels(labels)
    if not ax.yaxis_inverted():
        ax.invert_yaxis()


def _draw_intervals(
    ax: plt.Axes,
    summary: pd.DataFrame,
    value: str,
    lower: str,
    upper: str,
    positions: pd.Series,
    color: str,
) -> None:
    widths = summary[".width"].unique()
    line_widths = _line_widths(widths)
    for width in sorted(widths, reverse=True):
        rows = summary[summary[".width"] == width]
        ax.hlines(
            positions[rows.index],
            rows[lower],
            rows[upper],
            color=color,
            linewidth=line_widths[width],
            label=f"{width:.0%}",
        )
    points = summary[summary[".width"] == widths.min()]
    ax.plot(
        points[value],
        positions[points.index],
        "o",
        color=color,
        markersize=5,
        markeredgecolor="white",
        markeredgewidth=0.8,
        zorder=3,
    )


def plot_pointinterval(
    summary: pd.DataFrame,
    y: str | Sequence[str] | None = None,
    value: str | None = None,
    ax: plt.Axes | None = None,
    color: str = COLORBLIND_COLORS[0],
) -> plt.Axes:
    """Plot point estimates with one interval line per width.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of point_interval(), possibly with several widths.
    y : str | Sequence[str], optional
        Columns labelling rows on the y axis. Defaults to the summary's
        grouping columns.
    value : str, optional
        Target to plot; required when the summary holds several.
    ax : plt.Axes, optional
        Axes to draw on.
    color : str
        Line and marker color.

    Returns
    -------
    plt.Axes
        The axes drawn on.
    """
    ax = _axes(ax)
    value, lower, upper, groups = summary_columns(summary, value)
    label_columns = _as_list(y) if y is not None else groups

    summary = summary.reset_index(drop=True)
    labels = _group_labels(summary, label_columns)
    order = list(pd.unique(labels))
    positions = labels.map({label: i for i, label in enumerate(order)})

    _draw_intervals(ax, summary, value, lower, upper, positions, color)
    _set_group_ticks(ax, order)
    ax.set_xlabel(value)
    return ax


def _plot_slabs(
    draws: pd.DataFrame,
    value: str,
    by: str | Sequence[str] | None,
    ax: plt.Axes | None,
    widths: Sequence[float],
    point: str,
    interval: str,
    mirrored: bool,
) -> plt.Axes:
    ax = _axes(ax)
    summary = point_interval(draws, value, by=by, point=point, interval=interval, widths=widths)
    _, lower, upper, groups = summary_columns(summary, value)

    summary = summary.reset_index(drop=True)
    labels = _group_labels(summary, groups)
    order = list(pd.unique(labels))
    positions = labels.map({label: i for i, label in enumerate(order)})
    draw_labels = _group_labels(draws, groups)

    # y grows downward after inversion, so slabs extend toward smaller y
    for i, label in enumerate(order):
        grid, dens = density(draws.loc[draw_labels == label, value].to_numpy())
        height = dens / dens.max() * SLAB_SCALE
        slab_color = COLORBLIND_COLORS[(i + 5) % len(COLORBLIND_COLORS)]
        if mirrored:
            ax.fill_between(grid, i - height / 2, i + height / 2, color=slab_color, alpha=0.6, linewidth=0)
        else:
            ax.fill_between(grid, i, i - height, color=slab_color, alpha=0.6, linewidth=0)

    _draw_intervals(ax, summary, value, lower, upper, positions, "#333333")
    _set_group_ticks(ax, order)
    ax.set_xlabel(value)
    return ax


def plot_halfeye(
    draws: pd.DataFrame,
    value: str,
    by: str | Sequence[str] | None = None,
    ax: plt.Axes | None = None,
    widths: Sequence[float] = (0.66, 0.95),
    point: str = "median",
    interval: str = "qi",
) -> plt.Axes:
    """Plot a density slab above a point-interval for each group.

    Parameters
    ----------
    draws : pd.DataFrame
        Long-format draws table.
    value : str
        Value column.
    by : str | Sequence[str], optional
        Grouping columns; defaults as in point_interval().
    ax : plt.Axes, optional
        Axes to draw on.
    widths, point, interval
        Passed to point_interval().
    """
    return _plot_slabs(draws, value, by, ax, widths, point, interval, mirrored=False)


def plot_eye(
    draws: pd.DataFrame,
    value: str,
    by: str | Sequence[str] | None = None,
    ax: plt.Axes | None = None,
    widths: Sequence[float] = (0.66, 0.95),
    point: str = "median",
    interval: str = "qi",
) -> plt.Axes:
    """Like plot_halfeye() but with the slab mirrored around the interval."""
    return _plot_slabs(draws, value, by, ax, widths, point, interval, mirrored=True)


def plot_lineribbon(
    summary: pd.DataFrame,
    x: str,
    value: str | None = None,
    ax: plt.Axes | None = None,
) -> plt.Axes:
    """Plot nested interval bands over an ordered x with the point estimate line.

    Each remaining grouping column combination gets its own color. Wider
    intervals are drawn lighter and underneath narrower ones.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of point_interval() grouped by at least ``x``.
    x : str
        Column giving the x axis; must be numeric or orderable.
    value : str, optional
        Target to plot; required when the summary holds several.
    ax : plt.Axes, optional
        Axes to draw on.
    """
    ax = _axes(ax)
    value, lower, upper, groups = summary_columns(summary, value)
    if x not in summary.columns:
        raise KeyError(f"x column {x!r} not in summary")
    series_columns = [g for g in groups if g != x]

    summary = summary.reset_index(drop=True)
    series_labels = _group_labels(summary, series_columns)
    widths = sorted(summary[".width"].unique(), reverse=True)
    alphas = np.linspace(0.25, 0.6, len(widths)) if len(widths) > 1 else [0.4]

    for i, label in enumerate(pd.unique(series_labels)):
        color = COLORBLIND_COLORS[i % len(COLORBLIND_COLORS)]
        rows = summary[series_labels == label].sort_values(x, kind="stable")
        for width, alpha in zip(widths, alphas):
            band = rows[rows[".width"] == width]
            ax.fill_between(band[x], band[lower], band[upper], color=color, alpha=alpha, linewidth=0)
        line = rows[rows[".width"] == widths[-1]]
        ax.plot(line[x], line[value], color=color, label=label or None)

    ax.set_xlabel(x)
    ax.set_ylabel(value)
    if series_columns:
        ax.legend(title=", ".join(series_columns))
    return ax


def _stack(dots: np.ndarray, binwidth: float) -> tuple[np.ndarray, np.ndarray]:
    """Bin sorted dots and return (bin centers, stack position) per dot."""
    if binwidth <= 0:
        return dots, np.arange(dots.size, dtype=float)
    bins = np.floor((dots - dots[0]) / binwidth).astype(int)
    centers = dots[0] + (bins + 0.5) * binwidth
    heights = np.zeros(dots.size)
    for b in np.unique(bins):
        members = np.flatnonzero(bins == b)
        heights[members] = np.arange(members.size)
    return centers, heights


def plot_dots(
    draws: pd.DataFrame,
    value: str,
    by: str | Sequence[str] | None = None,
    n_dots: int = 100,
    ax: plt.Axes | None = None,
) -> plt.Axes:
    """Plot a quantile dotplot for each group.

    ``n_dots`` quantiles are stacked into bins so each dot represents
    ``1 / n_dots`` of the probability mass.

    Parameters
    ----------
    draws : pd.DataFrame
        Long-format draws table.
    value : str
        Value column.
    by : str | Sequence[str], optional
        Grouping columns; each group gets its own row.
    n_dots : int, default 100
        Number of quantile dots per group.
    ax : plt.Axes, optional
        Axes to draw on.
    """
    ax = _axes(ax)
    by = _as_list(by)
    labels = _group_labels(draws, by)
    order = list(pd.unique(labels))

    binwidth = float(np.ptp(draws[value].to_numpy())) / np.sqrt(n_dots) / 2
    stacks = []
    for label in order:
        dots = np.sort(quantile_dots(draws.loc[labels == label, value].to_numpy(), n_dots=n_dots))
        stacks.append(_stack(dots, binwidth))
    tallest = max(float(h.max()) + 1 for _, h in stacks)
    dot_height = SLAB_SCALE / tallest

    for i, (centers, heights) in enumerate(stacks):
        ax.scatter(
            centers,
            i - (heights + 0.5) * dot_height,
            s=max(4.0, 120.0 * dot_height),
            color=COLORBLIND_COLORS[i % len(COLORBLIND_COLORS)],
            edgecolors="none",
        )

    _set_group_ticks(ax, order)
    ax.set_xlabel(value)
    return ax
