"""Config schema definitions."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from tidydraws.draws.spec import DEFAULT_SEPARATOR


class ReshapeConfig(BaseModel):
    separator: str = DEFAULT_SEPARATOR
    collapse: Literal["error", "last"] = "error"

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, value: str) -> str:
        """Separator must be a valid, non-empty regular expression."""
        if not value:
            raise ValueError("separator must not be empty")
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"separator is not a valid regular expression: {exc}") from exc
        return value


class SummaryConfig(BaseModel):
    point: Literal["mean", "median", "mode"] = "median"
    interval: Literal["qi", "hdi"] = "qi"
    widths: list[float] = Field(default_factory=lambda: [0.66, 0.95])
    min_mode_draws: int = Field(default=2, ge=1)
    na_rm: bool = False

    @field_validator("widths")
    @classmethod
    def validate_widths(cls, value: list[float]) -> list[float]:
        """Widths must be non-empty and each strictly between 0 and 1."""
        if not value:
            raise ValueError("at least one width is required")
        bad = [w for w in value if not (0.0 < w < 1.0)]
        if bad:
            raise ValueError(f"widths must be in (0, 1), got {bad}")
        return sorted(set(value))


class PlotConfig(BaseModel):
    template: str = "tidydraws_light"
    dpi: int = 300
    n_dots: int = Field(default=100, ge=1)


class TidyDrawsConfig(BaseModel):
    reshape: ReshapeConfig = ReshapeConfig()
    summary: SummaryConfig = SummaryConfig()
    plot: PlotConfig = PlotConfig()
