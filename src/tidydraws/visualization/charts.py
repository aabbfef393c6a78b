"""Interactive Plotly charts for point-interval summaries.

These mirror the matplotlib primitives in plotting/geoms.py but add hover
and zoom. Both take the output of point_interval() (or, for the half-eye,
the long-format draws themselves).

Usage:
    >>> from tidydraws.visualization.charts import create_interval_chart
    >>> summary = median_qi(draws, "b", by="group", widths=[0.66, 0.95])
    >>> fig = create_interval_chart(summary)
    >>> fig.show()
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd
import plotly.graph_objects as go

from tidydraws.summary.point_interval import point_interval, summary_columns
from tidydraws.visualization.theme import COLORBLIND_COLORS, interval_color

__all__ = [
    "create_halfeye_chart",
    "create_interval_chart",
]


def _labels(df: pd.DataFrame, columns: Sequence[str]) -> pd.Series:
    if not columns:
        return pd.Series([""] * len(df), index=df.index)
    return df[list(columns)].astype(str).agg(", ".join, axis=1)


def _line_widths(widths: Sequence[float], thickest: float = 8.0, thinnest: float = 2.0) -> dict[float, float]:
    """Narrower intervals get thicker lines."""
    ordered = sorted(widths)
    if len(ordered) == 1:
        return {ordered[0]: thickest / 2}
    step = (thickest - thinnest) / (len(ordered) - 1)
    return {w: thickest - i * step for i, w in enumerate(ordered)}


def _add_intervals(
    fig: go.Figure,
    summary: pd.DataFrame,
    value: str,
    lower: str,
    upper: str,
    labels: pd.Series,
    color: str,
) -> None:
    line_widths = _line_widths(summary[".width"].unique())
    for width in sorted(summary[".width"].unique(), reverse=True):
        rows = summary[summary[".width"] == width]
        xs: list = []
        ys: list = []
        for idx, row in rows.iterrows():
            xs += [row[lower], row[upper], None]
            ys += [labels[idx], labels[idx], None]
        fig.add_trace(
            go.Scatter(
                x=xs,
                y=ys,
                mode="lines",
                line=dict(color=color, width=line_widths[width]),
                name=f"{width:.0%} interval",
                hoverinfo="skip",
            )
        )

    # the point estimate repeats for every width; one marker per group
    points = summary[summary[".width"] == summary[".width"].min()]
    fig.add_trace(
        go.Scatter(
            x=points[value],
            y=labels[points.index],
            mode="markers",
            marker=dict(size=10, color=color, line=dict(color="white", width=1)),
            name=str(summary[".point"].iloc[0]),
            hovertemplate="<b>%{y}</b><br>Estimate: %{x:.3f}<extra></extra>",
        )
    )


def create_interval_chart(
    summary: pd.DataFrame,
    value: str | None = None,
    label_col: str | Sequence[str] | None = None,
    template: str = "tidydraws_light",
    title: str | None = None,
) -> go.Figure:
    """Create an interactive point-interval (forest) chart.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of point_interval(), possibly with several widths.
    value : str, optional
        Target to plot; required when the summary holds several.
    label_col : str | Sequence[str], optional
        Columns labelling each row on the y axis. Defaults to the summary's
        grouping columns.
    template : str, default "tidydraws_light"
        Plotly template name.
    title : str, optional
        Figure title.

    Returns
    -------
    go.Figure
        Interactive Plotly figure.
    """
    value, lower, upper, groups = summary_columns(summary, value)
    if label_col is None:
        label_col = groups
    elif isinstance(label_col, str):
        label_col = [label_col]

    summary = summary.reset_index(drop=True)
    labels = _labels(summary, label_col)

    fig = go.Figure()
    _add_intervals(fig, summary, value, lower, upper, labels, COLORBLIND_COLORS[0])

    fig.update_layout(
        title=title or f"{value}: {summary['.point'].iloc[0]} and {summary['.interval'].iloc[0]}",
        xaxis_title=value,
        yaxis_title="",
        template=template,
        yaxis=dict(categoryorder="array", categoryarray=list(pd.unique(labels))[::-1]),
    )
    return fig


def create_halfeye_chart(
    draws: pd.DataFrame,
    value: str,
    by: str | Sequence[str] | None = None,
    widths: Sequence[float] = (0.66, 0.95),
    point: str = "median",
    interval: str = "qi",
    template: str = "tidydraws_light",
) -> go.Figure:
    """Create an interactive half-eye chart: density slab plus point-interval.

    Parameters
    ----------
    draws : pd.DataFrame
        Long-format draws table.
    value : str
        Value column.
    by : str | Sequence[str], optional
        Grouping columns, one slab per group. Defaults to every non-value,
        non-reserved column (see point_interval()).
    widths, point, interval
        Passed to point_interval().
    template : str, default "tidydraws_light"
        Plotly template name.
    """
    summary = point_interval(
        draws, value, by=by, point=point, interval=interval, widths=widths
    )
    _, lower, upper, groups = summary_columns(summary, value)
    summary = summary.reset_index(drop=True)
    labels = _labels(summary, groups)

    fig = go.Figure()
    draw_labels = _labels(draws, groups)
    for position, label in enumerate(pd.unique(labels)):
        fig.add_trace(
            go.Violin(
                x=draws.loc[draw_labels == label, value],
                y=[label] * int((draw_labels == label).sum()),
                orientation="h",
                side="positive",
                points=False,
                fillcolor=COLORBLIND_COLORS[(position + 5) % len(COLORBLIND_COLORS)],
                showlegend=False,
            )
        )

    _add_intervals(fig, summary, value, lower, upper, labels, interval_color(template))
    fig.update_layout(
        title=f"{value}: {point} and {interval}",
        xaxis_title=value,
        yaxis_title="",
        template=template,
        violinmode="overlay",
    )
    return fig
