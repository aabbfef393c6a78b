"""Tests for the tidydraws command-line interface."""

import re

import matplotlib

matplotlib.use("Agg")
import numpy as np
import pandas as pd
import pytest
from typer.testing import CliRunner

from tidydraws.cli import app
from tidydraws import __version__

runner = CliRunner()


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


@pytest.fixture
def draws_csv(tmp_path):
    """CmdStan-style CSV: 2 chains x 20 iterations, b[term,group] and sigma."""
    rng = np.random.default_rng(11)
    n = 40
    df = pd.DataFrame(
        {
            "lp__": rng.normal(size=n),
            "chain__": np.repeat([1, 2], n // 2),
            "iter__": np.tile(np.arange(1, n // 2 + 1), 2),
            "b[(Intercept) condition:A]": rng.normal(0, 1, n),
            "b[(Intercept) condition:B]": rng.normal(3, 1, n),
            "sigma": np.abs(rng.normal(1, 0.1, n)),
        }
    )
    path = tmp_path / "draws.csv"
    df.to_csv(path, index=False)
    return path


class TestCLIHelp:
    def test_main_help_shows_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        output = strip_ansi(result.stdout)
        assert "variables" in output
        assert "summarize" in output
        assert "plot" in output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestVariablesCommand:
    def test_lists_flat_names(self, draws_csv):
        result = runner.invoke(app, ["variables", str(draws_csv)])
        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines == [
            "b[(Intercept) condition:A]",
            "b[(Intercept) condition:B]",
            "sigma",
        ]

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["variables", str(tmp_path / "nope.csv")])
        assert result.exit_code == 1


class TestSummarizeCommand:
    def test_prints_summary(self, draws_csv):
        result = runner.invoke(app, ["summarize", str(draws_csv), "b[,group]", "-w", "0.9"])
        assert result.exit_code == 0, result.output
        assert "condition:A" in result.stdout
        assert "condition:B" in result.stdout
        assert ".lower" in result.stdout

    def test_writes_csv_with_config_widths(self, draws_csv, tmp_path):
        config = tmp_path / "cfg.yaml"
        config.write_text("summary:\n  point: mean\n  widths: [0.5, 0.8]\n", encoding="utf-8")
        out = tmp_path / "out" / "summary.csv"
        result = runner.invoke(
            app,
            ["summarize", str(draws_csv), "b[,group]", "--config", str(config), "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        summary = pd.read_csv(out)
        assert len(summary) == 2 * 2
        assert sorted(summary[".width"].unique()) == [0.5, 0.8]
        assert (summary[".point"] == "mean").all()

    def test_flags_override_config(self, draws_csv, tmp_path):
        out = tmp_path / "summary.csv"
        result = runner.invoke(
            app,
            ["summarize", str(draws_csv), "sigma", "--point", "mode", "--interval", "hdi", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        summary = pd.read_csv(out)
        assert summary.columns.tolist()[0] == "sigma"
        assert (summary[".interval"] == "hdi").all()

    def test_parse_error_exits_1(self, draws_csv):
        result = runner.invoke(app, ["summarize", str(draws_csv), "b[group]"])
        assert result.exit_code == 1
        assert "expects 1" in result.output

    def test_bad_width_exits_1(self, draws_csv):
        result = runner.invoke(app, ["summarize", str(draws_csv), "sigma", "-w", "1.5"])
        assert result.exit_code == 1
        assert "(0, 1)" in result.output

    def test_bad_point_flag_exits_1(self, draws_csv):
        result = runner.invoke(app, ["summarize", str(draws_csv), "sigma", "--point", "trimmed"])
        assert result.exit_code == 1
        assert "point" in result.output


class TestPlotCommand:
    @pytest.mark.parametrize("kind", ["halfeye", "eye", "dots", "pointinterval"])
    def test_writes_figures(self, draws_csv, tmp_path, kind):
        out_dir = tmp_path / "figs"
        result = runner.invoke(
            app,
            ["plot", str(draws_csv), "b[,group]", "--kind", kind, "--output-dir", str(out_dir)],
        )
        assert result.exit_code == 0, result.output
        assert (out_dir / f"{kind}_b.pdf").exists()
        assert (out_dir / f"{kind}_b.png").exists()

    def test_html_chart(self, draws_csv, tmp_path):
        result = runner.invoke(
            app,
            ["plot", str(draws_csv), "b[,group]", "-d", str(tmp_path), "--name", "b", "--html"],
        )
        assert result.exit_code == 0, result.output
        assert (tmp_path / "b.html").exists()

    def test_unknown_kind(self, draws_csv, tmp_path):
        result = runner.invoke(app, ["plot", str(draws_csv), "sigma", "--kind", "violin"])
        assert result.exit_code == 1
