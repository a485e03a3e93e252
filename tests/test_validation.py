"""Tests for request validation."""

from __future__ import annotations

from typing import Any

import pytest

from mason_collection import (
    CollectionSettings,
    CollectionValidationError,
    CollectionValidator,
    FilterSpec,
    ValidationResult,
    param_type,
)
from mason_collection.specs import index_filters, index_sorts


@pytest.fixture
def validator() -> CollectionValidator:
    filters = index_filters(
        [
            "content",
            FilterSpec("created", operators=["between", "gt", "lt"]),
            FilterSpec("id", rules=[param_type(int)]),
        ]
    )
    sorts = index_sorts(["created", "content"])
    return CollectionValidator(filters, sorts, CollectionSettings())


def _errors(validator: CollectionValidator, params: dict[str, Any]) -> dict[str, list[str]]:
    return validator.validate(params).errors


def test_valid_request(validator: CollectionValidator) -> None:
    result = validator.validate(
        {
            "limit": "10",
            "offset": "0",
            "fields": "brief",
            "sort": {"created": "desc", "content": "ASC"},
            "filters": {"content": ["not-empty", "contains:president"], "id": "in:1,2"},
        }
    )
    assert result.is_valid
    assert bool(result)


@pytest.mark.parametrize(
    ("params", "key"),
    [
        ({"limit": "0"}, "limit"),
        ({"limit": "301"}, "limit"),
        ({"limit": "abc"}, "limit"),
        ({"offset": "-1"}, "offset"),
        ({"page": "-1"}, "page"),
        ({"page_size": "1000"}, "page_size"),
        ({"fields": "everything"}, "fields"),
    ],
)
def test_pagination_errors(validator: CollectionValidator, params: dict[str, Any], key: str) -> None:
    assert key in _errors(validator, params)


def test_max_per_page_follows_settings() -> None:
    validator = CollectionValidator({}, {}, CollectionSettings(default_per_page=5, max_per_page=20))
    assert "limit" in _errors(validator, {"limit": "21"})
    assert _errors(validator, {"limit": "20"}) == {}


def test_unknown_filter_and_sort(validator: CollectionValidator) -> None:
    errors = _errors(validator, {"filters": {"snake": "empty"}, "sort": {"pogo": "asc"}})
    assert "Unknown filter 'snake'" in errors["filters.snake"][0]
    assert "Unknown sort 'pogo'" in errors["sort.pogo"][0]


def test_invalid_sort_direction(validator: CollectionValidator) -> None:
    errors = _errors(validator, {"sort": {"created": "yak"}})
    assert list(errors) == ["sort.created"]


def test_unknown_operator_suggests_close_matches(validator: CollectionValidator) -> None:
    errors = _errors(validator, {"filters": {"content": "contain:x"}})
    assert "Did you mean: contains" in errors["filters.content"][0]
    assert "filters.content" in _errors(validator, {"filters": {"content": "jumps"}})
    assert "filters.content" in _errors(validator, {"filters": {"content": "equals:fifteen,planet"}})
    assert "Missing filter operator" in _errors(validator, {"filters": {"content": ""}})[
        "filters.content"
    ][0]


def test_param_count(validator: CollectionValidator) -> None:
    errors = _errors(validator, {"filters": {"created": ["between:1", "between:1,2"]}})
    assert list(errors) == ["filters.created.0"]
    assert "exactly 2 parameters" in errors["filters.created.0"][0]
    assert "filters.content" in _errors(validator, {"filters": {"content": "empty:x"}})
    assert "filters.content" in _errors(validator, {"filters": {"content": "in:"}})


def test_allowed_operators(validator: CollectionValidator) -> None:
    errors = _errors(validator, {"filters": {"created": "eq:2015-05-01"}})
    assert "not allowed" in errors["filters.created"][0]


def test_extra_rules_run_after_builtin_checks(validator: CollectionValidator) -> None:
    errors = _errors(validator, {"filters": {"id": "in:1,two"}})
    assert "'two'" in errors["filters.id"][0]
    assert _errors(validator, {"filters": {"id": "in:1,2"}}) == {}


def test_malformed_structures(validator: CollectionValidator) -> None:
    errors = _errors(
        validator,
        {"filters": "content", "sort": "created"},
    )
    assert set(errors) == {"filters", "sort"}
    errors = _errors(validator, {"filters": {"content": [1, 2]}})
    assert "filters.content" in errors
    errors = _errors(validator, {"filters": {"content": []}})
    assert "filters.content" in errors


def test_legacy_filter_key(validator: CollectionValidator) -> None:
    errors = _errors(validator, {"filter": {"snake": "empty"}})
    assert "filter.snake" in errors
    assert validator.filters_param({"filter": {"a": "b"}}) == ("filter", {"a": "b"})
    assert validator.filters_param({"filters": {}, "filter": {"a": "b"}}) == ("filters", {})


def test_all_errors_are_aggregated(validator: CollectionValidator) -> None:
    errors = _errors(
        validator,
        {
            "limit": "-5",
            "offset": "x",
            "sort": {"created": "yak"},
            "filters": {"snake": "empty", "content": "jumps"},
        },
    )
    assert set(errors) == {"limit", "offset", "sort.created", "filters.snake", "filters.content"}


def test_validation_result_merge_and_raise() -> None:
    first = ValidationResult.success()
    first.add_error("limit", "too big")
    second = ValidationResult.success()
    second.add_error("limit", "not a number")
    second.add_error("offset", "negative")
    merged = first.merge(second)
    assert merged.errors == {"limit": ["too big", "not a number"], "offset": ["negative"]}
    with pytest.raises(CollectionValidationError) as exc_info:
        merged.raise_for_errors()
    assert exc_info.value.to_dict()["errors"] == merged.errors
    ValidationResult.success().raise_for_errors()


def test_value_check_runs_after_grammar_checks(validator: CollectionValidator) -> None:
    seen: list[tuple[str, str, list[str]]] = []

    def value_check(spec: FilterSpec, operator: str, params: list[str]) -> list[str]:
        seen.append((spec.name, operator, params))
        return [f"bad {p}" for p in params if p == "nope"]

    result = validator.validate(
        {"limit": "0", "filters": {"created": ["gt:nope", "lt:2015-05-03", "bogus:1"]}},
        value_check,
    )
    assert set(result.errors) == {"limit", "filters.created.0", "filters.created.2"}
    assert result.errors["filters.created.0"] == ["bad nope"]
    assert seen == [("created", "gt", ["nope"]), ("created", "lt", ["2015-05-03"])]


def test_param_type_rule() -> None:
    rule = param_type(int)
    assert rule("in", ["1", "2"]) is None
    assert rule("eq", ["x"]) is not None
