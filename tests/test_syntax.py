"""Tests for the filter token grammar."""

from __future__ import annotations

import pytest

from mason_collection.operators import FilterOperator
from mason_collection.syntax import (
    FilterExpressionParser,
    ParsedFilter,
    format_filter_item,
    parse_filter_item,
)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("not-empty", ParsedFilter("not-empty", [])),
        ("empty:", ParsedFilter("empty", [])),
        ("eq:Hello world!", ParsedFilter("eq", ["Hello world!"])),
        ("between:5,10", ParsedFilter("between", ["5", "10"])),
        ("in:1, 2 ,3", ParsedFilter("in", ["1", "2", "3"])),
        ("contains:got it\\, lol", ParsedFilter("contains", ["got it, lol"])),
        ("eq:10:30", ParsedFilter("eq", ["10:30"])),
    ],
)
def test_parse_filter_item(token: str, expected: ParsedFilter) -> None:
    assert parse_filter_item(token) == expected


def test_unknown_prefix_is_kept_as_operator() -> None:
    assert parse_filter_item("jumps") == ParsedFilter("jumps", [])
    assert parse_filter_item("equals:fifteen,planet") == ParsedFilter(
        "equals", ["fifteen", "planet"]
    )


def test_single_parameter_operators_keep_plain_values() -> None:
    for op in ("eq", "ne", "lt", "gt", "lte", "gte", "starts-with", "contains"):
        assert parse_filter_item(f"{op}:value") == (op, ["value"])


def test_format_escapes_commas() -> None:
    assert format_filter_item(FilterOperator.CONTAINS, ["got it, lol"]) == "contains:got it\\, lol"
    assert format_filter_item("in", ["a", "b"]) == "in:a,b"
    assert format_filter_item("empty", []) == "empty"


def test_parser_format_is_read_back_by_parse() -> None:
    parser = FilterExpressionParser()
    token = parser.format("not-in", ["x,y", "z"])
    assert parser.parse(token) == ParsedFilter("not-in", ["x,y", "z"])
