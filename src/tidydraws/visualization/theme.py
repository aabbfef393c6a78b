"""Plotly templates for tidydraws charts.

Colorblind-safe templates matching the matplotlib style in
plotting/figures.py, in light and dark variants. Both draw a reference line
at x = 0, where contrasts from compare_levels() change sign, and carry
violin defaults for half-eye slabs.

The Wong (2011) colorblind-safe palette is used for all charts:
https://www.nature.com/articles/nmeth.1618

Usage:
    >>> fig.update_layout(template="tidydraws_dark")
    >>> interval_color("tidydraws_dark")
    '#E0E0E0'
"""

from __future__ import annotations

import plotly.graph_objects as go
import plotly.io as pio

__all__ = [
    "COLORBLIND_COLORS",
    "THEMES",
    "interval_color",
    "register_themes",
]

# Same palette as plotting/figures.py
COLORBLIND_COLORS = [
    "#0072B2",  # Blue
    "#E69F00",  # Orange
    "#009E73",  # Green
    "#CC79A7",  # Pink
    "#F0E442",  # Yellow
    "#56B4E9",  # Light blue
    "#D55E00",  # Red-orange
]

# name -> (ink, paper, plot area, grid)
THEMES: dict[str, tuple[str, str, str, str]] = {
    "tidydraws_light": ("#333333", "white", "white", "rgba(0,0,0,0.1)"),
    "tidydraws_dark": ("#E0E0E0", "#1E1E1E", "#2D2D2D", "rgba(255,255,255,0.1)"),
}


def _template(ink: str, paper: str, plot: str, grid: str) -> go.layout.Template:
    serif = dict(family="serif", size=12, color=ink)
    return go.layout.Template(
        layout=go.Layout(
            colorway=COLORBLIND_COLORS,
            font=serif,
            title=dict(font=dict(size=16, family="serif")),
            paper_bgcolor=paper,
            plot_bgcolor=plot,
            xaxis=dict(
                showgrid=True,
                gridcolor=grid,
                gridwidth=0.5,
                zeroline=True,
                zerolinecolor=ink,
                zerolinewidth=0.75,
            ),
            # one row per group; categorical gridlines only add clutter
            yaxis=dict(showgrid=False, automargin=True),
            hovermode="closest",
            legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0),
        ),
        data=dict(
            violin=[
                go.Violin(
                    side="positive",
                    orientation="h",
                    points=False,
                    line=dict(width=0),
                    opacity=0.6,
                    width=0.9,
                    hoverinfo="skip",
                )
            ],
        ),
    )


def interval_color(template: str) -> str:
    """Ink colour for intervals drawn over slabs; dark grey outside our themes."""
    return THEMES.get(template, THEMES["tidydraws_light"])[0]


def register_themes() -> None:
    """Register every template in THEMES with Plotly.

    Plotly's default template is left unchanged.
    """
    for name, colors in THEMES.items():
        pio.templates[name] = _template(*colors)


register_themes()
