"""Exception hierarchy for draw reshaping and summarization.

Every error carries enough context (variable name, group key, requested
width) to pinpoint the failing input. All classes also inherit from
ValueError, so callers that only care about "bad input" can catch that.

Taxonomy:
- ParseError: index-spec / flat-name mismatch, slot-count mismatch,
  ambiguous regex match, ambiguous blank-slot collapse
- JoinError: incompatible columns when combining variable requests
- GroupingError: ambiguous, empty or unknown target/grouping columns
- EstimationError: invalid width, empty group, missing values
"""

from __future__ import annotations

from typing import Any


class TidyDrawsError(ValueError):
    """Base exception for tidydraws failures.

    Attributes:
        message: Human-readable error description.
        variable: Offending variable or flat name (optional).
        group: Group key the failure belongs to (optional).
        width: Requested probability width (optional).

    Example:
        >>> raise TidyDrawsError("no draws", group=("a",), width=0.95)
        TidyDrawsError: [group=('a',), width=0.95] no draws
    """

    def __init__(
        self,
        message: str,
        *,
        variable: str | None = None,
        group: Any = None,
        width: float | None = None,
    ) -> None:
        self.message = message
        self.variable = variable
        self.group = group
        self.width = width
        super().__init__(str(self))

    @property
    def context(self) -> dict[str, Any]:
        """Non-empty context fields, in display order."""
        fields = {"variable": self.variable, "group": self.group, "width": self.width}
        return {k: v for k, v in fields.items() if v is not None}

    def __str__(self) -> str:
        """Format error with a context prefix if available."""
        if not self.context:
            return self.message
        parts = []
        for key, value in self.context.items():
            # group keys are tuples of labels; repr keeps them readable
            parts.append(f"{key}={value!r}" if key == "group" else f"{key}={value}")
        return f"[{', '.join(parts)}] {self.message}"


class ParseError(TidyDrawsError):
    """Index specification could not be matched against flat variable names.

    Raised when:
    - A spec string is malformed
    - No flat name matches a request
    - A matched flat name splits into the wrong number of index tokens
    - A regex request is ambiguous with another request
    - Blank-slot collapse maps two flat names onto the same row
    """


class JoinError(TidyDrawsError):
    """Variable requests cannot be combined into one table.

    Raised when a value column collides with an index column, a reserved
    draw column, or another request's value column.
    """


class GroupingError(TidyDrawsError):
    """Target or grouping columns are ambiguous, empty or unknown."""


class EstimationError(TidyDrawsError):
    """Point or interval estimate could not be computed.

    Raised for widths outside (0, 1), groups with zero draws, missing
    values without ``na_rm``, and unknown estimator names.
    """
