"""FilterExpressionParser: ``operator:param,param`` filter tokens.

A token is split on its first colon into an operator and a parameter
string. The parameter string is split on commas; a literal comma inside a
parameter is written as ``\\,``. Parameters are trimmed after splitting.

The prefix is always taken as the operator, so ``"jumps"`` parses to
``("jumps", [])`` and is rejected later by validation rather than being
read as an implicit ``eq``.
"""

from __future__ import annotations

from typing import NamedTuple

from .operators import FilterOperator

_ESCAPED_COMMA = "\\,"
_SENTINEL = "\x00COMMA\x00"


class ParsedFilter(NamedTuple):
    """One filter token, split into operator and parameters."""

    operator: str
    params: list[str]


def parse_filter_item(token: str) -> ParsedFilter:
    """Parse a raw filter token into ``(operator, params)``.

    Examples::

        parse_filter_item("not-empty")            # ("not-empty", [])
        parse_filter_item("between:5,10")         # ("between", ["5", "10"])
        parse_filter_item("contains:got it\\, lol")  # ("contains", ["got it, lol"])
    """
    operator, sep, remainder = token.partition(":")
    if not sep or not remainder:
        return ParsedFilter(operator, [])
    protected = remainder.replace(_ESCAPED_COMMA, _SENTINEL)
    params = [part.replace(_SENTINEL, ",").strip() for part in protected.split(",")]
    return ParsedFilter(operator, params)


def format_filter_item(operator: str | FilterOperator, params: list[str]) -> str:
    """Build a filter token from an operator and parameters, escaping commas."""
    name = getattr(operator, "value", operator)
    if not params:
        return str(name)
    escaped = ",".join(p.replace(",", _ESCAPED_COMMA) for p in params)
    return f"{name}:{escaped}"


class FilterExpressionParser:
    """Injectable wrapper around :func:`parse_filter_item`.

    Subclass to change the token grammar for a collection.
    """

    def parse(self, token: str) -> ParsedFilter:
        return parse_filter_item(token)

    def format(self, operator: str | FilterOperator, params: list[str]) -> str:
        return format_filter_item(operator, params)
