"""Config loader.

Settings resolve in layers, each overriding the one before:

1. Defaults from the schema
2. YAML files, in the order given (``${VAR}`` references expanded)
3. Explicit overrides, e.g. CLI flags, as dotted keys such as
   ``"summary.point"``; ``None`` means "not given" and is skipped
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .schema import TidyDrawsConfig


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _expand_env_vars(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, str):
        return os.path.expandvars(value)
    return value


def _read_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of config sections, got {type(data).__name__}")
    return data


def _nest(overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Turn ``{"summary.point": "mode"}`` into ``{"summary": {"point": "mode"}}``."""
    nested: dict[str, Any] = {}
    for dotted, value in overrides.items():
        if value is None:
            continue
        *sections, field = dotted.split(".")
        target = nested
        for section in sections:
            target = target.setdefault(section, {})
        target[field] = value
    return nested


def load_config(
    paths: str | Path | list[str | Path] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> TidyDrawsConfig:
    """Load and validate config from YAML files plus explicit overrides.

    With no paths and no overrides, returns the defaults. Overrides are
    validated like file values, so a bad ``"summary.widths"`` raises
    pydantic's ValidationError.

    Examples
    --------
    >>> cfg = load_config(overrides={"summary.point": "mode", "summary.interval": None})
    >>> cfg.summary.point, cfg.summary.interval
    ('mode', 'qi')
    """
    if paths is None:
        path_list = []
    elif isinstance(paths, (str, Path)):
        path_list = [paths]
    else:
        path_list = list(paths)

    data: dict[str, Any] = {}
    for path in path_list:
        data = _deep_merge(data, _read_yaml(path))
    data = _expand_env_vars(data)

    if overrides:
        data = _deep_merge(data, _nest(overrides))
    return TidyDrawsConfig(**data)
