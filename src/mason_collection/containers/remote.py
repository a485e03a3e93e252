"""
Remote API container.

Forwards filters and sorts to a remote query builder that speaks the same
operator vocabulary. Operators the remote protocol cannot express fail fast
with ``UnsupportedOperatorError`` instead of being approximated.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ..operators import FilterOperator
from .base import Container

if TYPE_CHECKING:
    from ..specs import FilterSpec

logger = logging.getLogger(__name__)

REMOTE_UNSUPPORTED: frozenset[FilterOperator] = frozenset(
    {
        FilterOperator.EMPTY,
        FilterOperator.NOT_EMPTY,
        FilterOperator.BETWEEN,
        FilterOperator.NOT_BETWEEN,
    }
)


@runtime_checkable
class RemoteQuery(Protocol):
    """Query builder for a remote collection API.

    Every method returns the query to continue with, which may be the same
    object or a new one.
    """

    def where(self, field: str, operator: str, value: str | list[str]) -> RemoteQuery: ...

    def order_by(self, field: str, direction: str) -> RemoteQuery: ...

    def skip(self, offset: int) -> RemoteQuery: ...

    def take(self, limit: int) -> RemoteQuery: ...

    def get_with_total(self) -> tuple[list[Any], int]: ...


class RemoteApiContainer(Container):
    """Container over a :class:`RemoteQuery`."""

    backend = "remote-api"

    def __init__(self, query: RemoteQuery) -> None:
        self._query = query

    @property
    def query(self) -> RemoteQuery:
        return self._query

    @property
    def supported_operators(self) -> frozenset[FilterOperator]:
        return frozenset(FilterOperator) - REMOTE_UNSUPPORTED

    def set_sorting(self, field: str, direction: str) -> RemoteApiContainer:
        self._query = self._query.order_by(field, direction)
        return self

    def apply_filter(
        self,
        spec: FilterSpec,
        operator: str,
        params: Sequence[str],
    ) -> RemoteApiContainer:
        if not self.supports(operator):
            logger.warning(
                "Filter %r uses operator %r, which the remote API cannot express",
                spec.name,
                operator,
            )
        self.ensure_supported(operator)
        value: str | list[str]
        if operator in (FilterOperator.IN.value, FilterOperator.NOT_IN.value):
            value = list(params)
        else:
            value = params[0]
        self._query = self._query.where(spec.field_name, operator, value)
        return self

    def get_items(self, limit: int, offset: int) -> tuple[list[Any], int]:
        return self._query.skip(offset).take(limit).get_with_total()
