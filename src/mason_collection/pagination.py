"""Offset/limit arithmetic and navigation link offsets."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, NamedTuple

from pydantic import TypeAdapter

if TYPE_CHECKING:
    from .settings import CollectionSettings


class PaginationWindow(NamedTuple):
    offset: int
    limit: int


class PaginationResult(NamedTuple):
    """One fetched page: ``len(items) <= limit``."""

    items: list[Any]
    total: int
    offset: int
    limit: int


_INT: TypeAdapter[int] = TypeAdapter(int)


def _as_int(value: Any) -> int | None:
    """Parse with the same lax rules the request validator accepts (``"10.0"`` -> 10)."""
    if isinstance(value, str):
        value = value.strip()
    if value is None or value == "":
        return None
    return _INT.validate_python(value)


def resolve_window(params: Mapping[str, Any], settings: CollectionSettings) -> PaginationWindow:
    """
    Compute the effective ``(offset, limit)`` for validated *params*.

    ``page_size`` takes precedence over ``limit``, and ``page`` over
    ``offset`` (``offset = page * limit``).
    The limit is clamped to ``1..max_per_page`` and the offset to ``>= 0``.
    """
    limit = _as_int(params.get(settings.page_size_key))
    if limit is None:
        limit = _as_int(params.get(settings.limit_key))
    if limit is None:
        limit = settings.default_per_page
    limit = min(max(limit, 1), settings.max_per_page)

    page = _as_int(params.get(settings.page_key))
    if page is not None:
        offset = page * limit
    else:
        offset = _as_int(params.get(settings.offset_key)) or 0
    return PaginationWindow(offset=max(offset, 0), limit=limit)


def last_offset(total: int, limit: int) -> int:
    """Offset of the final page; 0 for an empty collection."""
    if total <= 0:
        return 0
    return ((total - 1) // limit) * limit


def compute_links(total: int, offset: int, limit: int) -> dict[str, int]:
    """
    Return navigation link offsets keyed by ``first``/``prev``/``next``/``last``.

    ``first`` and ``last`` appear whenever there is more than one page,
    ``prev`` whenever ``offset > 0`` and ``next`` while items remain past
    the current page.
    """
    if limit < 1:
        raise ValueError("limit must be positive")
    links: dict[str, int] = {}
    multi_page = total > limit
    if multi_page:
        links["first"] = 0
    if offset > 0:
        links["prev"] = max(0, offset - limit)
    if offset + limit < total:
        links["next"] = offset + limit
    if multi_page:
        links["last"] = last_offset(total, limit)
    return links
