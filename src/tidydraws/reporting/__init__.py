"""Publication tables for point-interval summaries."""

from .tables import export_table, format_summary_table

__all__ = [
    "export_table",
    "format_summary_table",
]
