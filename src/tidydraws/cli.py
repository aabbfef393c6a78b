"""Command-line interface for tidydraws.

Reads raw draws from a CSV file (one column per flat variable name, with
optional chain/iteration columns), reshapes the requested variables and
prints or writes their point-interval summaries.

Usage:
    tidydraws variables draws.csv
    tidydraws summarize draws.csv "b[term,group]" --width 0.66 --width 0.95
    tidydraws summarize draws.csv "b[,group]" --point mode --interval hdi -o out.csv
    tidydraws plot draws.csv "b[,group]" --kind halfeye --html
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import pandas as pd
import structlog
import typer

from tidydraws import __version__
from tidydraws.config import load_config
from tidydraws.draws import DRAW_COLUMNS, from_dataframe, list_variables, parse_spec, spread_draws
from tidydraws.errors import TidyDrawsError
from tidydraws.summary import point_interval
from tidydraws.utils.logging import setup_logging

log = structlog.get_logger()

app = typer.Typer(
    add_completion=False,
    help="Tidy long-format tables and point-interval summaries of posterior draws.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
    ),
) -> None:
    """tidydraws - tidy posterior draws."""
    if version:
        typer.echo(f"tidydraws version {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _read_draws(path: Path) -> pd.DataFrame:
    if not path.exists():
        typer.echo(f"Error: draws file not found: {path}", err=True)
        raise typer.Exit(code=1)
    return pd.read_csv(path)


@app.command("variables")
def variables(
    draws_file: Path = typer.Argument(..., help="CSV file of raw draws"),
) -> None:
    """List the flat variable names found in a draws file."""
    try:
        source = from_dataframe(_read_draws(draws_file))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    for name in sorted(list_variables(source)):
        typer.echo(name)


@app.command("summarize")
def summarize(
    draws_file: Path = typer.Argument(..., help="CSV file of raw draws"),
    specs: list[str] = typer.Argument(..., help="Variable requests, e.g. 'b[term,group]'"),
    width: Annotated[Optional[list[float]], typer.Option(
        "--width",
        "-w",
        help="Interval width in (0, 1); repeat for several. Defaults to the config.",
    )] = None,
    point: Annotated[Optional[str], typer.Option(help="Point estimator: mean, median or mode")] = None,
    interval: Annotated[Optional[str], typer.Option(help="Interval estimator: qi or hdi")] = None,
    separator: Annotated[Optional[str], typer.Option(
        help="Regex splitting index tokens in flat names",
    )] = None,
    regex: bool = typer.Option(False, "--regex", help="Treat variable names as regular expressions"),
    config: Annotated[Optional[list[Path]], typer.Option(
        "--config",
        "-c",
        help="YAML config file; repeat to layer overrides",
    )] = None,
    output: Annotated[Optional[Path], typer.Option(
        "--output",
        "-o",
        help="Write the summary as CSV instead of printing it",
    )] = None,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging"),
) -> None:
    """Reshape the requested variables and summarize each by its indices."""
    setup_logging(verbose=verbose)

    try:
        cfg = load_config(
            config,
            overrides={
                "reshape.separator": separator,
                "summary.point": point,
                "summary.interval": interval,
                "summary.widths": width or None,
            },
        )
        parsed = [parse_spec(s, regex=regex, separator=cfg.reshape.separator) for s in specs]

        source = from_dataframe(_read_draws(draws_file))
        draws = spread_draws(source, *parsed, collapse=cfg.reshape.collapse)

        index_columns = {c for spec in parsed for c in spec.index_columns}
        targets = [c for c in draws.columns if c not in DRAW_COLUMNS and c not in index_columns]
        summary = point_interval(
            draws,
            targets,
            point=cfg.summary.point,
            interval=cfg.summary.interval,
            widths=cfg.summary.widths,
            na_rm=cfg.summary.na_rm,
            min_mode_draws=cfg.summary.min_mode_draws,
        )
    except TidyDrawsError as e:
        log.debug("summarize_failed", error=str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    except ValueError as e:
        # malformed draws files, invalid config values and flags
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        summary.to_csv(output, index=False)
        typer.echo(f"Wrote {len(summary)} rows to {output}")
    else:
        typer.echo(summary.to_string(index=False))


PLOT_KINDS = ("halfeye", "eye", "dots", "pointinterval")


@app.command("plot")
def plot(
    draws_file: Path = typer.Argument(..., help="CSV file of raw draws"),
    spec: str = typer.Argument(..., help="Variable request, e.g. 'b[,group]'"),
    kind: str = typer.Option("halfeye", "--kind", "-k", help=f"One of {', '.join(PLOT_KINDS)}"),
    output_dir: Path = typer.Option(Path("figures"), "--output-dir", "-d", help="Directory for figures"),
    name: Optional[str] = typer.Option(None, "--name", help="Base filename; defaults to '<kind>_<variable>'"),
    html: bool = typer.Option(False, "--html", help="Also write an interactive Plotly chart"),
    config: Annotated[Optional[list[Path]], typer.Option(
        "--config",
        "-c",
        help="YAML config file; repeat to layer overrides",
    )] = None,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging"),
) -> None:
    """Plot one variable's draws, one row per index combination."""
    # matplotlib and plotly are only needed here
    from tidydraws.plotting import (
        plot_dots,
        plot_eye,
        plot_halfeye,
        plot_pointinterval,
        save_figure,
        set_publication_style,
    )
    from tidydraws.visualization import create_halfeye_chart

    setup_logging(verbose=verbose)
    if kind not in PLOT_KINDS:
        typer.echo(f"Error: unknown plot kind {kind!r}; expected one of {', '.join(PLOT_KINDS)}", err=True)
        raise typer.Exit(code=1)

    try:
        cfg = load_config(config)
        parsed = parse_spec(spec, separator=cfg.reshape.separator)
        source = from_dataframe(_read_draws(draws_file))
        draws = spread_draws(source, parsed, collapse=cfg.reshape.collapse)

        by = list(parsed.index_columns)
        value = next(c for c in draws.columns if c not in DRAW_COLUMNS and c not in by)
        summary_options = dict(
            widths=cfg.summary.widths, point=cfg.summary.point, interval=cfg.summary.interval
        )
        filename_base = name or f"{kind}_{value}"

        with set_publication_style():
            if kind == "halfeye":
                ax = plot_halfeye(draws, value, by=by, **summary_options)
            elif kind == "eye":
                ax = plot_eye(draws, value, by=by, **summary_options)
            elif kind == "dots":
                ax = plot_dots(draws, value, by=by, n_dots=cfg.plot.n_dots)
            else:
                summary = point_interval(draws, value, by=by, **summary_options)
                ax = plot_pointinterval(summary)
            paths = list(save_figure(ax.figure, output_dir, filename_base, dpi=cfg.plot.dpi))

        if html:
            fig = create_halfeye_chart(draws, value, by=by, template=cfg.plot.template, **summary_options)
            html_path = output_dir / f"{filename_base}.html"
            fig.write_html(html_path)
            paths.append(html_path)
    except TidyDrawsError as e:
        log.debug("plot_failed", error=str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    for path in paths:
        typer.echo(f"Wrote {path}")


if __name__ == "__main__":
    app()
