"""Static matplotlib plots of draws and point-interval summaries."""

from .figures import COLORBLIND_COLORS, save_figure, set_publication_style
from .geoms import plot_dots, plot_eye, plot_halfeye, plot_lineribbon, plot_pointinterval

__all__ = [
    "COLORBLIND_COLORS",
    "plot_dots",
    "plot_eye",
    "plot_halfeye",
    "plot_lineribbon",
    "plot_pointinterval",
    "save_figure",
    "set_publication_style",
]
