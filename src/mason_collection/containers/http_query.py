"""HttpApiQuery: a ``RemoteQuery`` backed by an ``httpx.Client``.

The remote endpoint is expected to be another Mason collection: it takes
``filters[<field>][]=<operator>:<params>``, ``sort[<field>]=<direction>``,
``limit`` and ``offset``, and answers with a JSON document carrying
``items`` and ``total``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from ..query_string import build_query_string
from ..syntax import format_filter_item

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpApiQuery:
    """Immutable query against one remote collection URL.

    Usage::

        with httpx.Client(base_url="https://api.example.com") as client:
            query = HttpApiQuery(client, "/v4/accounts/1/sms")
            items, total = query.where("direction", "eq", "in").take(25).get_with_total()
    """

    client: httpx.Client
    path: str
    filters: tuple[tuple[str, str], ...] = ()
    sort: tuple[tuple[str, str], ...] = ()
    offset: int | None = None
    limit: int | None = None
    extra_params: dict[str, Any] = field(default_factory=dict)

    def where(self, field: str, operator: str, value: str | list[str]) -> HttpApiQuery:
        params = value if isinstance(value, list) else [value]
        token = format_filter_item(operator, params)
        return replace(self, filters=(*self.filters, (field, token)))

    def order_by(self, field: str, direction: str) -> HttpApiQuery:
        return replace(self, sort=(*self.sort, (field, direction)))

    def skip(self, offset: int) -> HttpApiQuery:
        return replace(self, offset=offset)

    def take(self, limit: int) -> HttpApiQuery:
        return replace(self, limit=limit)

    def to_params(self) -> dict[str, Any]:
        """Nested query parameters for the request."""
        params: dict[str, Any] = dict(self.extra_params)
        if self.filters:
            grouped: dict[str, list[str]] = {}
            for name, token in self.filters:
                grouped.setdefault(name, []).append(token)
            params["filters"] = grouped
        if self.sort:
            params["sort"] = dict(self.sort)
        if self.limit is not None:
            params["limit"] = self.limit
        if self.offset is not None:
            params["offset"] = self.offset
        return params

    def url(self) -> str:
        query = build_query_string(self.to_params())
        return f"{self.path}?{query}" if query else self.path

    def get_with_total(self) -> tuple[list[Any], int]:
        """Fetch the page.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
        """
        url = self.url()
        logger.debug("GET %s", url)
        response = self.client.get(url)
        response.raise_for_status()
        document = response.json()
        items = list(document.get("items", []))
        return items, int(document.get("total", len(items)))
