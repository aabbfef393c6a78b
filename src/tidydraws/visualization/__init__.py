"""Interactive Plotly charts for point-interval summaries.

Importing this module registers the "tidydraws_light" and "tidydraws_dark"
templates.

Usage:
    >>> from tidydraws.visualization import create_interval_chart
    >>> fig = create_interval_chart(median_qi(draws, "b", by="group"))
    >>> fig.show()
"""

from __future__ import annotations

from tidydraws.visualization.charts import create_halfeye_chart, create_interval_chart
from tidydraws.visualization.theme import COLORBLIND_COLORS, THEMES, interval_color, register_themes

__all__ = [
    "COLORBLIND_COLORS",
    "THEMES",
    "create_halfeye_chart",
    "create_interval_chart",
    "interval_color",
    "register_themes",
]
