"""Tests for filter parameter coercion."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from mason_collection.values import coerce_like, coerce_param


def test_strings_pass_through() -> None:
    assert coerce_param("abc", str) == "abc"
    assert coerce_param("abc", None) == "abc"


def test_numbers_and_booleans() -> None:
    assert coerce_param("42", int) == 42
    assert coerce_param("1.5", float) == 1.5
    assert coerce_param("10.10", Decimal) == Decimal("10.10")
    assert coerce_param("yes", bool) is True
    assert coerce_param("0", bool) is False


def test_datetimes() -> None:
    assert coerce_param("2015-05-01", datetime) == datetime(2015, 5, 1)
    assert coerce_param("2015-05-01T12:30:00Z", datetime) == datetime(
        2015, 5, 1, 12, 30, tzinfo=timezone.utc
    )
    assert coerce_param("1430404502", datetime) == datetime.fromtimestamp(
        1430404502, tz=timezone.utc
    )
    assert coerce_param("2015-05-01", date) == date(2015, 5, 1)


def test_uuid() -> None:
    value = uuid.uuid4()
    assert coerce_param(str(value), uuid.UUID) == value


@pytest.mark.parametrize(
    ("raw", "python_type"),
    [("abc", int), ("", float), ("maybe", bool), ("yesterday", datetime), ("x", uuid.UUID)],
)
def test_invalid_values_raise_value_error(raw: str, python_type: type) -> None:
    with pytest.raises(ValueError):
        coerce_param(raw, python_type)


def test_coerce_like_matches_sample_timezone() -> None:
    naive = datetime(2015, 5, 1)
    assert coerce_like("2015-05-01T00:00:00Z", naive) == naive
    aware = datetime(2015, 5, 1, tzinfo=timezone.utc)
    assert coerce_like("2015-05-01", aware) == aware
    assert coerce_like("7", 3) == 7
    assert coerce_like("true", False) is True
