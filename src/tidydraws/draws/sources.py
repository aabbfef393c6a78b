"""Raw draw sources.

The reshaping engine needs only two things from a model-fitting back end: the
ordered list of flat variable names, and the ``(chain, iteration)`` array of
draws for any one of them. This module defines that protocol and adapters for
the shapes samplers usually produce:

- ArrayDrawSource: one array shaped (chain, iteration, variable), or a
  (iteration, variable) matrix for a single chain
- DictDrawSource: mapping of flat name to (chain, iteration) array
- from_chains: list of per-chain (iteration, variable) matrices
- from_dataframe: wide draws table as written by CmdStan / cmdstanpy
- from_inference_data: ArviZ InferenceData or xarray Dataset, flattened to
  Stan-style names such as ``b[1,2]``

Usage:
    >>> import numpy as np
    >>> source = ArrayDrawSource(np.zeros((2, 50, 3)), ["mu", "b[1]", "b[2]"])
    >>> sorted(list_variables(source))
    ['b[1]', 'b[2]', 'mu']
    >>> source.get_draws("mu").shape
    (2, 50)
"""

from __future__ import annotations

import itertools
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

import arviz as az
import numpy as np
import pandas as pd
import structlog
import xarray as xr

from tidydraws.draws.spec import DEFAULT_SEPARATOR

log = structlog.get_logger()

__all__ = [
    "ArrayDrawSource",
    "DictDrawSource",
    "DrawSource",
    "from_chains",
    "from_dataframe",
    "from_inference_data",
    "list_variables",
]

# Column name pairs recognised for chain / iteration in wide draws tables
_CHAIN_COLUMNS = ("chain__", ".chain", "chain")
_ITERATION_COLUMNS = ("iter__", ".iteration", "iteration")
_DRAW_COLUMNS = ("draw__", ".draw", "draw")


@runtime_checkable
class DrawSource(Protocol):
    """Protocol every raw draw source implements."""

    @property
    def variables(self) -> tuple[str, ...]:
        """Flat variable names, in source order."""
        ...

    @property
    def n_chains(self) -> int: ...

    @property
    def n_iterations(self) -> int: ...

    def get_draws(self, name: str) -> np.ndarray:
        """Return the (n_chains, n_iterations) draws for a flat name."""
        ...


def list_variables(source: DrawSource) -> set[str]:
    """Return every distinct flat variable name available in ``source``."""
    return set(source.variables)


class ArrayDrawSource:
    """Draw source backed by a single (chain, iteration, variable) array.

    Parameters
    ----------
    draws : np.ndarray
        3-D array (chain, iteration, variable), or a 2-D
        (iteration, variable) matrix treated as a single chain.
    variable_names : Sequence[str]
        Flat name for each entry of the last axis.

    Raises
    ------
    ValueError
        If the array is not 2-D or 3-D, the name count does not match the
        last axis, or names are duplicated.
    """

    def __init__(self, draws: np.ndarray, variable_names: Sequence[str]) -> None:
        draws = np.asarray(draws)
        if draws.ndim == 2:
            draws = draws[np.newaxis, :, :]
        if draws.ndim != 3:
            raise ValueError(
                f"draws must be 2-D (iteration, variable) or 3-D (chain, iteration, variable), "
                f"got shape {draws.shape}"
            )
        names = tuple(variable_names)
        if len(names) != draws.shape[2]:
            raise ValueError(
                f"Got {len(names)} variable names for {draws.shape[2]} variables"
            )
        _check_unique(names)

        self._draws = draws
        self._names = names
        self._positions = {name: i for i, name in enumerate(names)}

    @property
    def variables(self) -> tuple[str, ...]:
        return self._names

    @property
    def n_chains(self) -> int:
        return self._draws.shape[0]

    @property
    def n_iterations(self) -> int:
        return self._draws.shape[1]

    def get_draws(self, name: str) -> np.ndarray:
        try:
            position = self._positions[name]
        except KeyError:
            raise KeyError(f"Unknown variable {name!r}") from None
        return self._draws[:, :, position]

    def __repr__(self) -> str:
        return (
            f"ArrayDrawSource(n_chains={self.n_chains}, n_iterations={self.n_iterations}, "
            f"n_variables={len(self._names)})"
        )


class DictDrawSource:
    """Draw source backed by a mapping of flat name to draws.

    Each value is a (chain, iteration) array, or a 1-D array for a single
    chain. All variables must share the same shape.
    """

    def __init__(self, draws: Mapping[str, np.ndarray]) -> None:
        arrays: dict[str, np.ndarray] = {}
        shape: tuple[int, ...] | None = None
        for name, values in draws.items():
            values = np.asarray(values)
            if values.ndim == 1:
                values = values[np.newaxis, :]
            if values.ndim != 2:
                raise ValueError(
                    f"Draws for {name!r} must be 1-D or (chain, iteration), got shape {values.shape}"
                )
            if shape is None:
                shape = values.shape
            elif values.shape != shape:
                raise ValueError(
                    f"Draws for {name!r} have shape {values.shape}, expected {shape}"
                )
            arrays[str(name)] = values

        self._draws = arrays
        self._shape = shape or (0, 0)

    @property
    def variables(self) -> tuple[str, ...]:
        return tuple(self._draws)

    @property
    def n_chains(self) -> int:
        return self._shape[0]

    @property
    def n_iterations(self) -> int:
        return self._shape[1]

    def get_draws(self, name: str) -> np.ndarray:
        try:
            return self._draws[name]
        except KeyError:
            raise KeyError(f"Unknown variable {name!r}") from None

    def __repr__(self) -> str:
        return (
            f"DictDrawSource(n_chains={self.n_chains}, n_iterations={self.n_iterations}, "
            f"n_variables={len(self._draws)})"
        )


def _check_unique(names: Sequence[str]) -> None:
    counts = Counter(names)
    duplicated = sorted(name for name, count in counts.items() if count > 1)
    if duplicated:
        raise ValueError(f"Duplicated variable names: {duplicated}")


def from_chains(
    chains: Sequence[np.ndarray],
    variable_names: Sequence[str],
) -> ArrayDrawSource:
    """Build a source from a list of per-chain (iteration, variable) matrices.

    This is the layout of coda's ``mcmc.list`` and of most hand-rolled
    samplers that run chains independently.

    Raises
    ------
    ValueError
        If no chains are given or chains differ in shape.
    """
    if len(chains) == 0:
        raise ValueError("from_chains() needs at least one chain")

    matrices = [np.asarray(chain) for chain in chains]
    matrices = [m[:, np.newaxis] if m.ndim == 1 else m for m in matrices]
    shapes = {m.shape for m in matrices}
    if len(shapes) != 1:
        raise ValueError(f"All chains must have the same shape, got {sorted(shapes)}")

    return ArrayDrawSource(np.stack(matrices, axis=0), variable_names)


def _find_column(df: pd.DataFrame, requested: str | None, candidates: tuple[str, ...]) -> str | None:
    if requested is not None:
        if requested not in df.columns:
            raise ValueError(f"Column {requested!r} not found in draws table")
        return requested
    return next((c for c in candidates if c in df.columns), None)


def from_dataframe(
    df: pd.DataFrame,
    chain_col: str | None = None,
    iteration_col: str | None = None,
) -> ArrayDrawSource:
    """Build a source from a wide draws table, one column per flat name.

    Recognises CmdStan/cmdstanpy bookkeeping columns (``chain__``,
    ``iter__``, ``draw__``) as well as ``.chain`` / ``.iteration`` /
    ``.draw``. Other columns ending in ``__`` (``lp__``, ``accept_stat__``,
    ...) are sampler diagnostics and are excluded. Without a chain column
    the table is one chain.

    Parameters
    ----------
    df : pd.DataFrame
        Wide draws table.
    chain_col : str, optional
        Chain column name. Auto-detected if None.
    iteration_col : str, optional
        Iteration column name. Auto-detected if None; without one, rows are
        taken in order within each chain.

    Raises
    ------
    ValueError
        If chains have different lengths or no variable columns remain.
    """
    chain_col = _find_column(df, chain_col, _CHAIN_COLUMNS)
    iteration_col = _find_column(df, iteration_col, _ITERATION_COLUMNS)
    bookkeeping = {chain_col, iteration_col, *_DRAW_COLUMNS}

    names = [
        str(c)
        for c in df.columns
        if c not in bookkeeping and not str(c).endswith("__")
    ]
    if not names:
        raise ValueError("Draws table has no variable columns")

    if chain_col is None:
        ordered = df.sort_values(iteration_col, kind="stable") if iteration_col else df
        values = ordered[names].to_numpy(dtype=float)[np.newaxis, :, :]
    else:
        sort_cols = [chain_col] + ([iteration_col] if iteration_col else [])
        ordered = df.sort_values(sort_cols, kind="stable")
        chains = [
            group[names].to_numpy(dtype=float)
            for _, group in ordered.groupby(chain_col, sort=True)
        ]
        lengths = sorted({len(chain) for chain in chains})
        if len(lengths) != 1:
            raise ValueError(f"Chains have different lengths: {lengths}")
        values = np.stack(chains, axis=0)

    log.debug(
        "draws_table_loaded",
        n_variables=len(names),
        n_chains=values.shape[0],
        n_iterations=values.shape[1],
    )
    return ArrayDrawSource(values, names)


def from_inference_data(
    data: az.InferenceData | xr.Dataset,
    group: str = "posterior",
    var_names: Sequence[str] | None = None,
    joiner: str = ",",
    separator: str = DEFAULT_SEPARATOR,
) -> ArrayDrawSource:
    """Build a source from an ArviZ InferenceData group or xarray Dataset.

    Each data variable's non-(chain, draw) dimensions are flattened into
    Stan-style flat names using coordinate values, e.g. a variable ``b``
    with dims (chain, draw, term, group) yields ``b[Intercept,A]``.

    Parameters
    ----------
    data : az.InferenceData | xr.Dataset
        Posterior samples. Datasets must have ``chain`` and ``draw`` dims.
    group : str, default "posterior"
        InferenceData group to read.
    var_names : Sequence[str], optional
        Restrict to these data variables. Defaults to all.
    joiner : str, default ","
        Text placed between coordinate labels in a flat name.
    separator : str, default DEFAULT_SEPARATOR
        Pattern the names will be split with by spread_draws(). It must
        match ``joiner`` and must not occur inside any coordinate label, so
        that every flat name splits back into its labels.

    Raises
    ------
    ValueError
        If the group is missing, a variable lacks chain/draw dimensions, or
        a coordinate label contains ``separator``.

    Examples
    --------
    Labels with spaces need a joiner the default separator does not split:

    >>> source = from_inference_data(idata, joiner="|", separator=r"[|]")  # doctest: +SKIP
    >>> spread_draws(source, "b[term]", separator=r"[|]")  # doctest: +SKIP
    """
    if re.fullmatch(separator, joiner) is None:
        raise ValueError(f"joiner {joiner!r} is not matched by separator {separator!r}")

    if isinstance(data, az.InferenceData):
        if group not in data.groups():
            raise ValueError(f"InferenceData must have {group!r} group")
        dataset = data[group]
    elif isinstance(data, xr.Dataset):
        dataset = data
    else:
        raise TypeError(f"Expected InferenceData or xarray Dataset, got {type(data).__name__}")

    names: list[str] = []
    columns: list[np.ndarray] = []
    for var_name in var_names if var_names is not None else list(dataset.data_vars):
        array = dataset[var_name]
        if "chain" not in array.dims or "draw" not in array.dims:
            raise ValueError(f"Variable {var_name!r} must have 'chain' and 'draw' dimensions")

        extra_dims = [d for d in array.dims if d not in ("chain", "draw")]
        array = array.transpose("chain", "draw", *extra_dims)
        values = array.to_numpy()

        if not extra_dims:
            names.append(str(var_name))
            columns.append(values)
            continue

        coords = [_coordinate_labels(array, d) for d in extra_dims]
        split = [label for labels in coords for label in labels if re.search(separator, label)]
        if split:
            raise ValueError(
                f"Coordinate labels of {var_name!r} contain the separator {separator!r}: {split}; "
                "pass a joiner and separator that do not occur in the labels"
            )
        flat = values.reshape(values.shape[0], values.shape[1], -1)
        for position, labels in enumerate(itertools.product(*coords)):
            names.append(f"{var_name}[{joiner.join(labels)}]")
            columns.append(flat[:, :, position])

    if not columns:
        raise ValueError(f"No variables found in {group!r}")
    return ArrayDrawSource(np.stack(columns, axis=-1), names)


def _coordinate_labels(array: xr.DataArray, dim: str) -> list[str]:
    if dim in array.coords:
        return [str(v) for v in array.coords[dim].to_numpy()]
    return [str(i) for i in range(array.sizes[dim])]
