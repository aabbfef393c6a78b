"""YAML-backed configuration for reshaping, summaries and plots."""

from .loader import load_config
from .schema import PlotConfig, ReshapeConfig, SummaryConfig, TidyDrawsConfig

__all__ = [
    "PlotConfig",
    "ReshapeConfig",
    "SummaryConfig",
    "TidyDrawsConfig",
    "load_config",
]
