"""Index-specification mini-language.

A spec names a variable and the index slots encoded in its flat names:

    "sigma"            scalar variable, no index columns
    "b[term,group]"    flat names like "b[(Intercept) condition:A]"
    "b[,group]"        blank first slot: that level of resolution is dropped
    "r_.*[i]"          with regex=True, the base is a pattern

Flat names carry their indices as a bracketed string that is tokenized with
a separator regex. The default splits on spaces and commas only; pass e.g.
``r"[, :]+"`` to also split on colons.

Usage:
    >>> spec = parse_spec("b[term,group]")
    >>> match_indexed_name("b[(Intercept) condition:A]", spec.base)
    ['(Intercept)', 'condition:A']
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from tidydraws.errors import ParseError

__all__ = [
    "DEFAULT_SEPARATOR",
    "IndexSpec",
    "format_indexed_name",
    "match_indexed_name",
    "parse_spec",
    "split_indexed_name",
]

DEFAULT_SEPARATOR = r"[, ]+"

# Greedy base so regex bases containing brackets bind to the last group
_SPEC_RE = re.compile(r"^(?P<base>.*)\[(?P<slots>[^\[\]]*)\]$")
_SLOT_NAME_RE = re.compile(r"^[^\[\],]*$")


@dataclass(frozen=True)
class IndexSpec:
    """Parsed variable request.

    Attributes:
        base: Literal variable name, or a pattern when ``regex`` is True.
        slots: Index slot names in bracket order. ``""`` marks a blank slot.
        regex: Treat ``base`` as a regular expression.
        separator: Regex used to split the bracketed part of flat names.
    """

    base: str
    slots: tuple[str, ...] = ()
    regex: bool = False
    separator: str = DEFAULT_SEPARATOR

    @property
    def is_indexed(self) -> bool:
        return len(self.slots) > 0

    @property
    def index_columns(self) -> tuple[str, ...]:
        """Named (non-blank) slots, which become index columns."""
        return tuple(slot for slot in self.slots if slot)

    def __str__(self) -> str:
        if not self.slots:
            return self.base
        return f"{self.base}[{','.join(self.slots)}]"


def parse_spec(
    spec: str | IndexSpec,
    regex: bool = False,
    separator: str = DEFAULT_SEPARATOR,
) -> IndexSpec:
    """Parse a spec string such as ``"b[term,group]"`` into an IndexSpec.

    Already-parsed specs are returned unchanged.

    Raises:
        ParseError: If the string is empty, has an empty base, unbalanced
            brackets, or a duplicated slot name.
    """
    if isinstance(spec, IndexSpec):
        return spec

    text = spec.strip()
    if not text:
        raise ParseError("empty variable specification")

    match = _SPEC_RE.match(text)
    if match is None:
        if not regex and ("[" in text or "]" in text):
            raise ParseError(f"malformed index specification {text!r}", variable=text)
        return IndexSpec(base=text, regex=regex, separator=separator)

    base = match.group("base").strip()
    if not base:
        raise ParseError(f"missing variable name in {text!r}", variable=text)

    slots = tuple(slot.strip() for slot in match.group("slots").split(","))
    for slot in slots:
        if not _SLOT_NAME_RE.match(slot):
            raise ParseError(f"invalid slot name {slot!r}", variable=text)

    named = [slot for slot in slots if slot]
    duplicated = sorted({slot for slot in named if named.count(slot) > 1})
    if duplicated:
        raise ParseError(f"duplicated index slot(s) {duplicated}", variable=text)

    return IndexSpec(base=base, slots=slots, regex=regex, separator=separator)


def _indexed_name_re(base_name: str, regex: bool) -> re.Pattern[str]:
    base = f"(?:{base_name})" if regex else re.escape(base_name)
    return re.compile(rf"^(?P<base>{base})\[(?P<inner>.*)\]$")


def split_indexed_name(
    flat_name: str,
    base_name: str,
    separator: str = DEFAULT_SEPARATOR,
    regex: bool = False,
) -> tuple[str, list[str]] | None:
    """Like match_indexed_name, but also return the matched base name."""
    match = _indexed_name_re(base_name, regex).match(flat_name)
    if match is None:
        return None
    return match.group("base"), re.split(separator, match.group("inner"))


def match_indexed_name(
    flat_name: str,
    base_name: str,
    separator: str = DEFAULT_SEPARATOR,
    regex: bool = False,
) -> list[str] | None:
    """Match ``flat_name`` against ``base_name[idx1<sep>idx2...]``.

    Parameters
    ----------
    flat_name : str
        Flat variable name from a draw source, e.g. ``"b[1,2]"``.
    base_name : str
        Variable name to match. Regex metacharacters are literal unless
        ``regex`` is True.
    separator : str
        Regular expression splitting the bracketed contents.
    regex : bool, default False
        Treat ``base_name`` as a pattern that must match the whole base.

    Returns
    -------
    list[str] | None
        Ordered index tokens, or None if the name does not match.

    Examples
    --------
    >>> match_indexed_name("b[1,2]", "b")
    ['1', '2']
    >>> match_indexed_name("b.x[1]", "b.x")
    ['1']
    >>> match_indexed_name("bax[1]", "b.x") is None
    True
    """
    result = split_indexed_name(flat_name, base_name, separator, regex)
    return None if result is None else result[1]


def format_indexed_name(base: str, tokens: list[str] | tuple[str, ...], joiner: str = ",") -> str:
    """Build a flat name from a base and index tokens."""
    if not tokens:
        return base
    return f"{base}[{joiner.join(tokens)}]"
