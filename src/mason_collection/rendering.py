"""Item rendering: turn one raw backend item into an output mapping."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect

ItemRenderer = Callable[[Any], Mapping[str, Any]]

FULL_METHOD = "to_full_mason"
BRIEF_METHOD = "to_brief_mason"


def _serializer_order(fields: str | None) -> tuple[str, str]:
    if fields == "brief":
        return BRIEF_METHOD, FULL_METHOD
    return FULL_METHOD, BRIEF_METHOD


def dump_item(item: Any) -> Any:
    """Generic field-by-field dump of an item's visible attributes.

    Values with no attributes to dump (scalars, ``__slots__`` objects) are
    returned unchanged.
    """
    if isinstance(item, Mapping):
        return dict(item)
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    mapping = getattr(item, "_mapping", None)
    if isinstance(mapping, Mapping):
        return dict(mapping)
    as_dict = getattr(item, "_asdict", None)
    if callable(as_dict):
        return dict(as_dict())
    state = sa_inspect(item, raiseerr=False)
    mapper = getattr(state, "mapper", None)
    if mapper is not None:
        return {attr.key: getattr(item, attr.key) for attr in mapper.column_attrs}
    try:
        attributes = vars(item)
    except TypeError:
        return item
    return {key: value for key, value in attributes.items() if not key.startswith("_")}


def render_item(item: Any, renderer: ItemRenderer | None = None, fields: str | None = None) -> Any:
    """
    Render *item* for the ``items`` array.

    Priority:
        1. the configured *renderer*;
        2. the item's ``to_full_mason()`` / ``to_brief_mason()`` (the one
           selected by *fields* first, the other as fallback);
        3. :func:`dump_item`.
    """
    if renderer is not None:
        return renderer(item)
    for method_name in _serializer_order(fields):
        method = getattr(item, method_name, None)
        if callable(method):
            return method()
    return dump_item(item)
