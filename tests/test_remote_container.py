"""Tests for the remote API container and its httpx-backed query."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from mason_collection import (
    CollectionDefinition,
    FilterSpec,
    HttpApiQuery,
    RemoteApiContainer,
    RemoteQuery,
    UnsupportedOperatorError,
    make_container,
    parse_query_string,
)


class RecordingQuery:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def where(self, field: str, operator: str, value: str | list[str]) -> RecordingQuery:
        self.calls.append(("where", field, operator, value))
        return self

    def order_by(self, field: str, direction: str) -> RecordingQuery:
        self.calls.append(("order_by", field, direction))
        return self

    def skip(self, offset: int) -> RecordingQuery:
        self.calls.append(("skip", offset))
        return self

    def take(self, limit: int) -> RecordingQuery:
        self.calls.append(("take", limit))
        return self

    def get_with_total(self) -> tuple[list[Any], int]:
        return [{"id": 1}], 1


def test_recording_query_satisfies_protocol() -> None:
    assert isinstance(RecordingQuery(), RemoteQuery)


def test_forwards_filters_sorts_and_window() -> None:
    query = RecordingQuery()
    container = RemoteApiContainer(query)
    container.apply_filter(FilterSpec("text", field="content"), "contains", ["love"])
    container.apply_filter(FilterSpec("id"), "in", ["1", "2"])
    container.set_sorting("created", "desc")
    items, total = container.get_items(25, 50)
    assert (items, total) == ([{"id": 1}], 1)
    assert query.calls == [
        ("where", "content", "contains", "love"),
        ("where", "id", "in", ["1", "2"]),
        ("order_by", "created", "desc"),
        ("skip", 50),
        ("take", 25),
    ]


@pytest.mark.parametrize("operator", ["empty", "not-empty", "between", "not-between"])
def test_unsupported_operators_fail_fast(operator: str) -> None:
    query = RecordingQuery()
    container = RemoteApiContainer(query)
    params = ["1", "2"] if "between" in operator else []
    with pytest.raises(UnsupportedOperatorError) as exc_info:
        container.apply_filter(FilterSpec("created"), operator, params)
    assert exc_info.value.backend == "remote-api"
    assert exc_info.value.operator == operator
    assert query.calls == []


def _remote_app(items: list[dict[str, Any]], seen: list[httpx.Request]) -> httpx.MockTransport:
    """A remote Mason collection endpoint served from memory."""
    remote = CollectionDefinition(
        filters=["content", "id"],
        sorts=["id"],
        item_renderer=lambda item: {"id": item["id"], "content": item["content"]},
    )

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        params = parse_query_string(request.url.query.decode())
        page = remote.populate(params, items, url=request.url.path)
        return httpx.Response(200, json=page.to_properties())

    return httpx.MockTransport(handler)


def test_http_query_round_trip(sms_items: list[dict[str, Any]]) -> None:
    seen: list[httpx.Request] = []
    with httpx.Client(transport=_remote_app(sms_items, seen), base_url="https://api.test") as client:
        container = make_container(HttpApiQuery(client, "/sms"))
        assert isinstance(container, RemoteApiContainer)
        container.apply_filter(FilterSpec("content"), "contains", ["got it, lol"])
        container.set_sorting("id", "asc")
        items, total = container.get_items(5, 0)
    assert total == 1
    assert items[0]["content"] == "Sure, got it, lol"
    sent = parse_query_string(seen[0].url.query.decode())
    assert sent["filters"] == {"content": ["contains:got it\\, lol"]}
    assert sent["sort"] == {"id": "asc"}
    assert sent["limit"] == "5"
    assert sent["offset"] == "0"


def test_http_query_is_immutable() -> None:
    with httpx.Client(base_url="https://api.test") as client:
        base = HttpApiQuery(client, "/sms", extra_params={"voip_id": 7})
        narrowed = base.where("id", "in", ["1", "2"]).take(10)
    assert base.filters == ()
    assert narrowed.to_params() == {"voip_id": 7, "filters": {"id": ["in:1,2"]}, "limit": 10}


def test_http_errors_propagate() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503, json={}))
    with httpx.Client(transport=transport, base_url="https://api.test") as client:
        container = RemoteApiContainer(HttpApiQuery(client, "/sms"))
        with pytest.raises(httpx.HTTPStatusError):
            container.get_items(10, 0)
