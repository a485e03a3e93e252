"""Tests for the in-memory container."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from mason_collection import FilterSpec, InMemoryContainer, UnsupportedOperatorError
from mason_collection.containers.memory import (
    MemoryOperatorRegistry,
    build_memory_registry,
    is_empty_value,
    resolve_field,
)


def _count(items: list[dict[str, Any]], *filters: tuple[str, str, list[str]]) -> int:
    container = InMemoryContainer(items)
    for name, operator, params in filters:
        container.apply_filter(FilterSpec(name), operator, params)
    _, total = container.get_items(100, 0)
    return total


@pytest.mark.parametrize(
    ("filters", "expected"),
    [
        ([("content", "not-empty", [])], 10),
        ([("content", "not-empty", []), ("content", "contains", ["president"])], 1),
        ([("scheduled", "empty", [])], 6),
        ([("scheduled", "not-empty", [])], 4),
        ([("content", "eq", ["Hello world!"])], 2),
        ([("content", "ne", ["Hello world!"])], 8),
        ([("content", "contains", ["love"])], 2),
        ([("content", "not-contains", ["love"])], 8),
        ([("content", "starts-with", ["Whatever"])], 1),
        ([("content", "ends-with", ["rock"])], 1),
        ([("content", "not-starts-with", ["hello"])], 8),
        ([("content", "not-ends-with", ["ROCK"])], 9),
        ([("content", "contains", ["got it, lol"])], 1),
        ([("id", "between", ["3", "5"])], 3),
        ([("id", "not-between", ["3", "5"])], 7),
        ([("id", "in", ["1", "2", "99"])], 2),
        ([("id", "not-in", ["1", "2"])], 8),
        ([("id", "gt", ["7"])], 3),
        ([("id", "gte", ["7"])], 4),
        ([("id", "lt", ["3"])], 2),
        ([("id", "lte", ["3"])], 3),
        ([("created", "gt", ["2015-05-08"])], 3),
    ],
)
def test_sms_filters(
    sms_items: list[dict[str, Any]],
    filters: list[tuple[str, str, list[str]]],
    expected: int,
) -> None:
    assert _count(sms_items, *filters) == expected


def test_null_fields_match_negated_operators(sms_items: list[dict[str, Any]]) -> None:
    assert _count(sms_items, ("scheduled", "not-in", ["2015-05-03T12:00:00"])) == 9
    assert _count(sms_items, ("scheduled", "not-between", ["2000-01-01", "2000-01-02"])) == 10
    assert _count(sms_items, ("scheduled", "lt", ["2100-01-01"])) == 4


def test_source_list_is_not_mutated(sms_items: list[dict[str, Any]]) -> None:
    original = list(sms_items)
    container = InMemoryContainer(sms_items)
    container.apply_filter(FilterSpec("content"), "contains", ["love"])
    container.set_sorting("id", "desc")
    container.get_items(10, 0)
    assert sms_items == original
    assert len(container.items) == 2


def test_pagination_slices_and_reports_total(sms_items: list[dict[str, Any]]) -> None:
    container = InMemoryContainer(sms_items).set_sorting("id", "asc")
    page, total = container.get_items(3, 3)
    assert [item["id"] for item in page] == [4, 5, 6]
    assert total == 10
    empty_page, total = container.get_items(10, 1000)
    assert empty_page == []
    assert total == 10


def test_multi_key_sort_first_call_is_primary() -> None:
    items = [
        {"group": "b", "id": 1},
        {"group": "a", "id": 2},
        {"group": "b", "id": 3},
        {"group": "a", "id": 4},
    ]
    container = InMemoryContainer(items).set_sorting("group", "asc").set_sorting("id", "desc")
    page, _ = container.get_items(10, 0)
    assert [item["id"] for item in page] == [4, 2, 3, 1]


def test_none_sorts_first_ascending(sms_items: list[dict[str, Any]]) -> None:
    page, _ = InMemoryContainer(sms_items).set_sorting("scheduled", "asc").get_items(10, 0)
    assert page[0]["scheduled"] is None
    assert page[-1]["scheduled"] is not None


def test_objects_and_dotted_paths() -> None:
    @dataclass
    class Author:
        name: str

    @dataclass
    class Post:
        title: str
        author: Author

    posts = [Post("a", Author("Ann")), Post("b", Author("Bob"))]
    container = InMemoryContainer(posts)
    container.apply_filter(FilterSpec("author", field="author.name"), "eq", ["Bob"])
    page, total = container.get_items(10, 0)
    assert total == 1
    assert page[0].title == "b"
    assert resolve_field({"a": None}, "a.b") is None


def test_custom_predicate_and_sort_key(sms_items: list[dict[str, Any]]) -> None:
    container = InMemoryContainer(sms_items)
    container.filter_items(lambda item: item["id"] % 2 == 0)
    container.sort_items(lambda item: len(item["content"]), reverse=True)
    page, total = container.get_items(10, 0)
    assert total == 5
    assert page[0]["content"] == "Vote for the president"


def test_empty_values() -> None:
    assert is_empty_value(None)
    assert is_empty_value("")
    assert is_empty_value(0)
    assert is_empty_value([])
    assert not is_empty_value("x")


def test_registry_without_operator_raises_unsupported(sms_items: list[dict[str, Any]]) -> None:
    registry = build_memory_registry()
    registry.unregister("empty")  # type: ignore[arg-type]
    container = InMemoryContainer(sms_items, registry=registry)
    assert not container.supports("empty")
    with pytest.raises(UnsupportedOperatorError):
        container.apply_filter(FilterSpec("content"), "empty", [])
    with pytest.raises(UnsupportedOperatorError):
        MemoryOperatorRegistry().evaluate("eq", "x", ["x"])
