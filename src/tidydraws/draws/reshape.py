"""Reshape raw draws into long-format ("tidy") tables.

Each request is an index spec such as ``"b[term,group]"``. Matching flat
names are parsed into index columns and stacked one row per draw; requests
are then combined with a natural full outer join on the draw columns plus
any index columns they share. Requests that share no index column are
broadcast against each other (a cross join within each draw).

Reserved columns:
- ``.chain``: 1-based chain id
- ``.iteration``: 1-based iteration within chain
- ``.draw``: 1-based global draw id, unique per (chain, iteration)

Blank slots (``"b[,group]"``) drop that level of resolution. When two flat
names reduce to the same index tuple, ``collapse`` decides what happens:
``"error"`` (default) raises ParseError, ``"last"`` keeps the flat name that
comes last in source order.

Usage:
    >>> draws = spread_draws(source, "b[term,group]", "sigma")
    >>> draws.columns.tolist()
    ['term', 'group', '.chain', '.iteration', '.draw', 'b', 'sigma']
    >>> long = gather_draws(source, "b[term,group]", "sigma")
    >>> long[".variable"].unique().tolist()
    ['b', 'sigma']
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

import numpy as np
import pandas as pd
import structlog

from tidydraws.draws.sources import DrawSource
from tidydraws.draws.spec import DEFAULT_SEPARATOR, IndexSpec, parse_spec, split_indexed_name
from tidydraws.errors import JoinError, ParseError

log = structlog.get_logger()

__all__ = [
    "DRAW_COLUMNS",
    "CollapsePolicy",
    "draw_ids",
    "gather_draws",
    "reshape",
    "spread_draws",
]

DRAW_COLUMNS = (".chain", ".iteration", ".draw")

CollapsePolicy = Literal["error", "last"]


@dataclass(frozen=True)
class _Match:
    flat_name: str
    base: str
    tokens: tuple[str, ...]


@dataclass(frozen=True)
class _Variable:
    """One value column: a base name and the flat names feeding it."""

    spec: IndexSpec
    base: str
    matches: tuple[_Match, ...]

    @property
    def index_columns(self) -> tuple[str, ...]:
        return self.spec.index_columns


def draw_ids(n_chains: int, n_iterations: int) -> pd.DataFrame:
    """Draw id columns in chain-major order, matching ``array.reshape(-1)``."""
    return pd.DataFrame(
        {
            ".chain": np.repeat(np.arange(1, n_chains + 1), n_iterations),
            ".iteration": np.tile(np.arange(1, n_iterations + 1), n_chains),
            ".draw": np.arange(1, n_chains * n_iterations + 1),
        }
    )


def _match_request(source: DrawSource, spec: IndexSpec) -> list[_Match]:
    matches: list[_Match] = []
    for flat_name in source.variables:
        if not spec.is_indexed:
            if spec.regex:
                if re.fullmatch(spec.base, flat_name):
                    matches.append(_Match(flat_name, flat_name, ()))
            elif flat_name == spec.base:
                matches.append(_Match(flat_name, flat_name, ()))
            continue

        result = split_indexed_name(flat_name, spec.base, spec.separator, spec.regex)
        if result is None:
            continue
        base, tokens = result
        if len(tokens) != len(spec.slots):
            raise ParseError(
                f"{flat_name!r} has {len(tokens)} index token(s) {tokens}, "
                f"but {spec} expects {len(spec.slots)}",
                variable=flat_name,
            )
        matches.append(_Match(flat_name, base, tuple(tokens)))

    if not matches:
        message = f"no variables match {spec}"
        if not spec.is_indexed and not spec.regex:
            indexed = [n for n in source.variables if n.startswith(f"{spec.base}[")]
            if indexed:
                message += f" (found indexed names such as {indexed[0]!r}; add index slots)"
        raise ParseError(message, variable=str(spec))

    return matches


def _collapse(spec: IndexSpec, base: str, matches: list[_Match], policy: CollapsePolicy) -> list[_Match]:
    """Apply the blank-slot collapse policy to matches sharing a base."""
    if len(spec.index_columns) == len(spec.slots):
        return matches

    by_key: dict[tuple[str, ...], list[_Match]] = {}
    for match in matches:
        key = tuple(token for slot, token in zip(spec.slots, match.tokens) if slot)
        by_key.setdefault(key, []).append(match)

    collisions = {key: group for key, group in by_key.items() if len(group) > 1}
    if not collisions:
        return matches

    if policy == "error":
        key, group = next(iter(collisions.items()))
        names = [m.flat_name for m in group]
        raise ParseError(
            f"blank slot(s) in {spec} collapse {names} onto index {list(key)}; "
            "name the slot or use collapse='last'",
            variable=base,
        )
    if policy != "last":
        raise ValueError(f"Unknown collapse policy {policy!r}; expected 'error' or 'last'")

    log.debug("blank_slot_collapse", spec=str(spec), base=base, n_collisions=len(collisions))
    keep = {group[-1].flat_name for group in by_key.values()}
    return [m for m in matches if m.flat_name in keep]


def _resolve(
    source: DrawSource,
    specs: Sequence[IndexSpec],
    collapse: CollapsePolicy,
) -> list[_Variable]:
    variables: list[_Variable] = []
    owner: dict[str, IndexSpec] = {}

    for spec in specs:
        reserved = [c for c in spec.index_columns if c in (*DRAW_COLUMNS, ".variable", ".value")]
        if reserved:
            raise JoinError(
                f"index column(s) {reserved} in {spec} collide with reserved draw columns",
                variable=spec.base,
            )
        matches = _match_request(source, spec)

        bases: dict[str, list[_Match]] = {}
        for match in matches:
            bases.setdefault(match.base, []).append(match)

        log.debug(
            "request_matched",
            spec=str(spec),
            n_flat_names=len(matches),
            bases=list(bases),
        )

        for base, group in bases.items():
            if base in owner:
                if spec.regex or owner[base].regex:
                    raise ParseError(
                        f"regex request {spec} matches {base!r}, which is also requested by {owner[base]}",
                        variable=base,
                    )
                raise JoinError(f"{base!r} is requested more than once", variable=base)
            owner[base] = spec
            variables.append(_Variable(spec, base, tuple(_collapse(spec, base, group, collapse))))

    index_columns = {c for v in variables for c in v.index_columns}
    for variable in variables:
        if variable.base in DRAW_COLUMNS:
            raise JoinError(f"{variable.base!r} is a reserved draw column", variable=variable.base)
        if variable.base in index_columns:
            raise JoinError(
                f"value column {variable.base!r} collides with an index column of the same name",
                variable=variable.base,
            )
    return variables


def _variable_frame(source: DrawSource, variable: _Variable, value_column: str) -> pd.DataFrame:
    ids = draw_ids(source.n_chains, source.n_iterations)
    pieces = []
    for match in variable.matches:
        values = np.asarray(source.get_draws(match.flat_name)).reshape(-1)
        columns: dict[str, object] = {
            slot: token for slot, token in zip(variable.spec.slots, match.tokens) if slot
        }
        piece = ids.assign(**columns)
        piece[value_column] = values
        pieces.append(piece)
    frame = pd.concat(pieces, ignore_index=True)
    return frame[[*variable.index_columns, *DRAW_COLUMNS, value_column]]


def _first_appearance(frames: Iterable[pd.DataFrame], columns: Sequence[str]) -> dict[str, dict[str, int]]:
    orders: dict[str, dict[str, int]] = {c: {} for c in columns}
    for frame in frames:
        for column in columns:
            if column not in frame.columns:
                continue
            order = orders[column]
            for value in pd.unique(frame[column]):
                order.setdefault(value, len(order))
    return orders


def _sort(
    df: pd.DataFrame,
    index_columns: Sequence[str],
    orders: dict[str, dict[str, int]],
    lead: Sequence[str] = (),
) -> pd.DataFrame:
    def key(series: pd.Series) -> pd.Series:
        if series.name in orders:
            return series.map(orders[series.name])
        return series

    by = [*lead, *index_columns, ".draw"]
    return df.sort_values(by, key=key, kind="stable", na_position="last").reset_index(drop=True)


def _ordered_index_columns(variables: Sequence[_Variable]) -> list[str]:
    columns: list[str] = []
    for variable in variables:
        columns.extend(c for c in variable.index_columns if c not in columns)
    return columns


def _as_specs(
    requests: Iterable[str | IndexSpec],
    regex: bool = False,
    separator: str = DEFAULT_SEPARATOR,
) -> list[IndexSpec]:
    specs = [parse_spec(r, regex=regex, separator=separator) for r in requests]
    if not specs:
        raise ParseError("at least one variable request is required")
    return specs


def reshape(
    source: DrawSource,
    requests: Iterable[str | IndexSpec],
    *,
    collapse: CollapsePolicy = "error",
) -> pd.DataFrame:
    """Reshape one or more variable requests into a single long-format table.

    Parameters
    ----------
    source : DrawSource
        Raw draws.
    requests : Iterable[str | IndexSpec]
        Spec strings (parsed with default options) or parsed IndexSpecs.
    collapse : {"error", "last"}, default "error"
        Policy when blank slots map several flat names onto one index tuple.

    Returns
    -------
    pd.DataFrame
        Index columns (strings), ``.chain``, ``.iteration``, ``.draw``, then
        one value column per matched base name. Rows are ordered by index
        values (in order of first appearance) then draw.

    Raises
    ------
    ParseError
        No match, slot-count mismatch, ambiguous regex or collapse.
    JoinError
        Value columns collide with each other, index or draw columns, or an
        index column is named after a reserved column.
    """
    specs = _as_specs(requests)
    variables = _resolve(source, specs, collapse)

    frames = [_variable_frame(source, v, v.base) for v in variables]
    index_columns = _ordered_index_columns(variables)

    result = frames[0]
    for frame in frames[1:]:
        shared = [c for c in index_columns if c in result.columns and c in frame.columns]
        result = result.merge(frame, on=[*DRAW_COLUMNS, *shared], how="outer")

    present = [c for c in index_columns if c in result.columns]
    result = _sort(result, present, _first_appearance(frames, present))
    result = result[[*present, *DRAW_COLUMNS, *(v.base for v in variables)]]

    log.debug(
        "draws_reshaped",
        n_rows=len(result),
        index_columns=present,
        value_columns=[v.base for v in variables],
    )
    return result


def spread_draws(
    source: DrawSource,
    *specs: str | IndexSpec,
    regex: bool = False,
    separator: str = DEFAULT_SEPARATOR,
    collapse: CollapsePolicy = "error",
) -> pd.DataFrame:
    """Wide-by-variable draws table: one value column per variable.

    Spec strings are parsed with ``regex`` and ``separator``; see reshape().

    Examples
    --------
    >>> spread_draws(source, "b[term,group]", separator=r"[, :]+")  # doctest: +SKIP
    """
    return reshape(source, _as_specs(specs, regex, separator), collapse=collapse)


def gather_draws(
    source: DrawSource,
    *specs: str | IndexSpec,
    regex: bool = False,
    separator: str = DEFAULT_SEPARATOR,
    collapse: CollapsePolicy = "error",
) -> pd.DataFrame:
    """Long-by-variable draws table with ``.variable`` and ``.value`` columns.

    Variables are stacked rather than joined; index columns a variable does
    not have are NaN for its rows.
    """
    variables = _resolve(source, _as_specs(specs, regex, separator), collapse)

    frames = []
    for variable in variables:
        frame = _variable_frame(source, variable, ".value")
        frame.insert(len(frame.columns) - 1, ".variable", variable.base)
        frames.append(frame)

    index_columns = _ordered_index_columns(variables)
    result = pd.concat(frames, ignore_index=True)
    orders = _first_appearance(frames, [*index_columns, ".variable"])
    result = _sort(result, index_columns, orders, lead=[".variable"])
    return result[[*index_columns, *DRAW_COLUMNS, ".variable", ".value"]]
