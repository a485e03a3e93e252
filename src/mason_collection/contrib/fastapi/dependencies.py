"""FastAPI dependencies for collection endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from ...query_string import nest_query_params


def collection_query_params(request: Request) -> dict[str, Any]:
    """Return the request's query string as a nested parameter map.

    Bracket keys are expanded, so ``?filters[content][]=contains:foo&sort[created]=desc``
    becomes ``{"filters": {"content": ["contains:foo"]}, "sort": {"created": "desc"}}``.

    Example:
        ```python
        from fastapi import APIRouter, Depends
        from mason_collection.contrib.fastapi import CollectionResponse, collection_query_params

        router = APIRouter()

        @router.get("/sms")
        def list_sms(request: Request, params = Depends(collection_query_params)):
            page = sms_collection.populate(params, SMS_ITEMS, url=str(request.url.path))
            return CollectionResponse.from_page(page)
        ```
    """
    return nest_query_params(request.query_params.multi_items())
