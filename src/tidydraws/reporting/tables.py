"""Publication-quality tables from point-interval summaries.

Summaries coming out of point_interval() carry full float precision. The
functions here round each row to the precision its interval supports
(matching decimal places to uncertainty magnitude) and export to LaTeX and
CSV for manuscript inclusion.

Key functions:
- format_summary_table: Estimate / Lower / Upper strings with adaptive precision
- export_table: Dual-format export (CSV + LaTeX)

Usage:
    >>> from tidydraws.reporting.tables import format_summary_table, export_table
    >>> summary = mean_qi(draws, "b", by="group", widths=[0.66, 0.95])
    >>> table = format_summary_table(summary)
    >>> export_table(table, "reports/b_summary", caption="Group effects")
"""

from pathlib import Path

import numpy as np
import pandas as pd
from uncertainties import ufloat

from tidydraws.summary.point_interval import summary_columns

__all__ = [
    "export_table",
    "format_summary_table",
]


def _format_with_precision(
    value: float,
    uncertainty: float,
    min_decimals: int = 2,
    max_decimals: int = 6,
) -> str:
    """Format a value with adaptive precision based on uncertainty magnitude.

    Uses the Particle Data Group (PDG) convention: round uncertainty to 2
    significant figures, then match the value's decimal places to the
    uncertainty.

    Parameters
    ----------
    value : float
        The value to format.
    uncertainty : float
        The uncertainty associated with the value.
    min_decimals : int, default 2
        Minimum decimal places to show even for large uncertainties.
    max_decimals : int, default 6
        Maximum decimal places to prevent excessive precision.

    Returns
    -------
    str
        Formatted value string with appropriate decimal places.

    Examples
    --------
    >>> _format_with_precision(1.234, 0.05)
    '1.234'
    >>> _format_with_precision(100.5, 10.0)
    '100.50'
    """
    if not np.isfinite(value):
        return str(value)
    if not np.isfinite(uncertainty) or uncertainty <= 0:
        return f"{value:.{min_decimals}f}"

    try:
        formatted = f"{ufloat(value, uncertainty):.2uS}"
    except (ValueError, OverflowError):
        return f"{value:.{min_decimals}f}"

    # short form is "1.234(56)"; older releases may print "1.234+/-0.056"
    if "+/-" in formatted:
        val_str = formatted.split("+/-")[0].strip()
    else:
        val_str = formatted.split("(")[0].strip()

    decimals = len(val_str.split(".")[-1]) if "." in val_str else 0
    decimals = max(min_decimals, min(decimals, max_decimals))
    return f"{value:.{decimals}f}"


def format_summary_table(
    summary: pd.DataFrame,
    value: str | None = None,
    min_decimals: int = 2,
    max_decimals: int = 6,
) -> pd.DataFrame:
    """Round a point_interval() summary for publication.

    The interval half-width ``(upper - lower) / 2`` acts as the uncertainty
    that sets the number of decimals; the bounds share the estimate's
    decimals so each row reads consistently.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of point_interval().
    value : str, optional
        Target to format; required when the summary holds several.
    min_decimals, max_decimals : int
        Bounds on the decimals shown.

    Returns
    -------
    pd.DataFrame
        Columns Estimate, Lower, Upper (strings) and Width, indexed by the
        summary's grouping columns.

    Examples
    --------
    >>> format_summary_table(mean_qi(draws, "b", by="group"))
           Estimate  Lower  Upper  Width
    group
    A          0.12  -0.41   0.66   0.95
    """
    value, lower, upper, groups = summary_columns(summary, value)

    rows = []
    for _, row in summary.iterrows():
        half_width = (float(row[upper]) - float(row[lower])) / 2
        estimate = _format_with_precision(
            float(row[value]), half_width, min_decimals, max_decimals
        )
        decimals = len(estimate.split(".")[-1]) if "." in estimate else min_decimals
        rows.append(
            {
                "Estimate": estimate,
                "Lower": f"{float(row[lower]):.{decimals}f}",
                "Upper": f"{float(row[upper]):.{decimals}f}",
                "Width": row[".width"],
            }
        )

    table = pd.DataFrame(rows, columns=["Estimate", "Lower", "Upper", "Width"])
    if len(groups) == 1:
        table.index = pd.Index(summary[groups[0]].astype(str).to_numpy(), name=groups[0])
    elif groups:
        table.index = pd.MultiIndex.from_frame(summary[groups].astype(str))
    return table


def export_table(
    df: pd.DataFrame,
    output_path: str | Path,
    formats: tuple[str, ...] = ("csv", "tex"),
    caption: str | None = None,
    label: str | None = None,
) -> list[Path]:
    """Export table to CSV and/or LaTeX formats.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to export. Index is preserved in output.
    output_path : str | Path
        Base path for output files (without extension).
        E.g., "reports/tables/b_summary" creates b_summary.csv and b_summary.tex.
    formats : tuple[str, ...], default ("csv", "tex")
        Output formats to generate. Options: "csv", "tex".
    caption : str | None, optional
        Caption for LaTeX table. If None, no caption is added.
    label : str | None, optional
        Label for LaTeX table (for cross-referencing). If None, derived from filename.

    Returns
    -------
    list[Path]
        List of paths to created files.

    Raises
    ------
    ValueError
        If ``formats`` names an unknown format.
    """
    unknown = set(formats) - {"csv", "tex"}
    if unknown:
        raise ValueError(f"Unknown table formats: {sorted(unknown)}")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    created_files = []

    if "csv" in formats:
        csv_path = output_path.with_suffix(".csv")
        df.to_csv(csv_path, index=True)
        created_files.append(csv_path)

    if "tex" in formats:
        tex_path = output_path.with_suffix(".tex")

        if label is None:
            label = f"tab:{output_path.stem}"

        latex_str = df.to_latex(
            index=True,
            escape=True,
            caption=caption,
            label=label,
            position="htbp",
        )
        tex_path.write_text(latex_str)
        created_files.append(tex_path)

    return created_files
