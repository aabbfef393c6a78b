"""Pytest configuration and shared fixtures.

The sys.path manipulation below enables running tests directly via
`pytest` without requiring `pip install -e .`.

For production projects, prefer using `pip install -e .` and removing
the path manipulation.
"""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from tidydraws.draws import ArrayDrawSource, spread_draws  # noqa: E402

GROUPS = ["condition:A", "condition:B", "condition:C", "condition:D", "condition:E"]


def make_grouped_source(
    n_chains: int = 2,
    n_iterations: int = 50,
    seed: int = 42,
) -> ArrayDrawSource:
    """Source with ``b[(Intercept) condition:X]`` for five groups plus ``sigma``.

    Group k (0-based) has draws centred on k so summaries are ordered.
    """
    rng = np.random.default_rng(seed)
    names = [f"b[(Intercept) {g}]" for g in GROUPS] + ["sigma"]
    draws = np.empty((n_chains, n_iterations, len(names)))
    for k in range(len(GROUPS)):
        draws[:, :, k] = rng.normal(loc=k, scale=0.5, size=(n_chains, n_iterations))
    draws[:, :, -1] = np.abs(rng.normal(1.0, 0.1, size=(n_chains, n_iterations)))
    return ArrayDrawSource(draws, names)


@pytest.fixture
def grouped_source() -> ArrayDrawSource:
    """Five-group source, 2 chains x 50 iterations."""
    return make_grouped_source()


@pytest.fixture
def grouped_draws(grouped_source) -> pd.DataFrame:
    """Long-format ``b`` draws with a ``group`` column (500 rows)."""
    return spread_draws(grouped_source, "b[,group]")
