"""Collection definition and per-request assembly.

A :class:`CollectionDefinition` is configured once per endpoint and holds
the filter/sort specs, the default sort, the item renderer and the
settings. Each request gets its own :class:`CollectionAssembler`, which
runs three phases exactly once each:

1. ``validate()``: every parameter is checked, all errors aggregated.
2. ``apply()``: filters and sorts are pushed into the container.
3. ``fetch()``: one page plus the total is read from the container.

``assemble()`` runs whatever is left and renders the page with its
navigation links. Repeated calls return the cached page.

Example::

    sms = CollectionDefinition(
        filters=["content", FilterSpec("created", operators=["between", "gt", "lt"])],
        sorts=["created", "content"],
        default_sort={"created": "desc"},
    )
    page = sms.populate(params, select(Sms), url="/sms", session=session)
    document = page.to_properties()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .containers import build_default_factory
from .exceptions import ConfigurationError, MasonCollectionError
from .pagination import PaginationResult, compute_links, resolve_window
from .query_string import build_url
from .rendering import ItemRenderer, render_item
from .settings import CollectionSettings
from .specs import SORT_DIRECTIONS, FilterSpec, SortSpec, index_filters, index_sorts
from .syntax import FilterExpressionParser
from .validation import CollectionValidator, filter_tokens

if TYPE_CHECKING:
    from .containers import Container, ContainerFactory

logger = logging.getLogger(__name__)


def strip_params(value: Any) -> Any:
    """Trim whitespace from every string in a (nested) parameter map."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        return {key: strip_params(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [strip_params(item) for item in value]
    return value


def _empty_links() -> dict[str, str]:
    return {}


def _empty_meta() -> dict[str, Any]:
    return {}


@dataclass(frozen=True)
class CollectionPage:
    """One assembled page, ready to be turned into a Mason document."""

    items: list[Any]
    total: int
    offset: int
    limit: int
    links: dict[str, str] = field(default_factory=_empty_links)
    meta: dict[str, Any] = field(default_factory=_empty_meta)

    def to_properties(self) -> dict[str, Any]:
        """Mason document properties: items, counts, ``@controls`` and ``@meta``."""
        properties: dict[str, Any] = {
            "items": self.items,
            "total": self.total,
            "offset": self.offset,
            "limit": self.limit,
        }
        if self.links:
            properties["@controls"] = {name: {"href": href} for name, href in self.links.items()}
        if self.meta:
            properties["@meta"] = self.meta
        return properties


class CollectionDefinition:
    """Long-lived, read-only configuration of one collection endpoint."""

    def __init__(
        self,
        filters: Iterable[FilterSpec | str] = (),
        sorts: Iterable[SortSpec | str] = (),
        default_sort: Mapping[str, str] | None = None,
        item_renderer: ItemRenderer | None = None,
        settings: CollectionSettings | None = None,
        parser: FilterExpressionParser | None = None,
        factory: ContainerFactory | None = None,
    ) -> None:
        self.filters: Mapping[str, FilterSpec] = MappingProxyType(index_filters(filters))
        self.sorts: Mapping[str, SortSpec] = MappingProxyType(index_sorts(sorts))
        self.default_sort: Mapping[str, str] = MappingProxyType(
            self._check_default_sort(default_sort or {})
        )
        self.item_renderer = item_renderer
        self.settings = settings or CollectionSettings()
        self.parser = parser or FilterExpressionParser()
        self.factory = factory or build_default_factory()

    def _check_default_sort(self, default_sort: Mapping[str, str]) -> dict[str, str]:
        checked: dict[str, str] = {}
        for name, direction in default_sort.items():
            if name not in self.sorts:
                raise ConfigurationError(f"Default sort {name!r} is not a configured sort type")
            if direction.lower() not in SORT_DIRECTIONS:
                raise ConfigurationError(
                    f"Default sort direction for {name!r} must be one of {SORT_DIRECTIONS}, "
                    f"got {direction!r}"
                )
            checked[name] = direction.lower()
        return checked

    def validator(self) -> CollectionValidator:
        return CollectionValidator(self.filters, self.sorts, self.settings, self.parser)

    def assembler(
        self,
        params: Mapping[str, Any],
        source: Any,
        url: str = "",
        **container_kwargs: Any,
    ) -> CollectionAssembler:
        """Wrap *source* in a container and return a fresh assembler for one request."""
        container = self.factory.create(source, **container_kwargs)
        return CollectionAssembler(self, container, params, url=url)

    def populate(
        self,
        params: Mapping[str, Any],
        source: Any,
        url: str = "",
        **container_kwargs: Any,
    ) -> CollectionPage:
        return self.assembler(params, source, url, **container_kwargs).assemble()


class CollectionAssembler:
    """Runs validate → apply → fetch → render for one request."""

    def __init__(
        self,
        definition: CollectionDefinition,
        container: Container,
        params: Mapping[str, Any],
        url: str = "",
    ) -> None:
        self._definition = definition
        self._container = container
        self._params: dict[str, Any] = strip_params(params)
        self._url = url
        self._validator = definition.validator()
        self._validated = False
        self._applied = False
        self._result: PaginationResult | None = None
        self._page: CollectionPage | None = None

    @property
    def container(self) -> Container:
        return self._container

    @property
    def params(self) -> Mapping[str, Any]:
        return self._params

    # -- phases ---------------------------------------------------------

    def validate(self) -> CollectionAssembler:
        """Check all parameters; raises ``CollectionValidationError`` listing every problem."""
        if not self._validated:
            self._validator.validate(self._params, self._container.check_filter).raise_for_errors()
            self._validated = True
        return self

    def apply(self) -> CollectionAssembler:
        """Push the requested filters and sorts (or the default sort) into the container."""
        if self._applied:
            return self
        self.validate()
        for name, tokens in self.requested_filters().items():
            spec = self._lookup(self._definition.filters, name, "filter")
            for token in tokens:
                parsed = self._definition.parser.parse(token)
                logger.debug("Applying filter %s %s %r", name, parsed.operator, parsed.params)
                spec.apply(self._container, parsed.operator, parsed.params)
        for name, direction in self.effective_sort().items():
            spec = self._lookup(self._definition.sorts, name, "sort")
            logger.debug("Applying sort %s %s", name, direction)
            spec.apply(self._container, direction)
        self._applied = True
        return self

    def fetch(self) -> PaginationResult:
        """Read one page from the container; later calls return the same result."""
        if self._result is None:
            self.apply()
            window = resolve_window(self._params, self._definition.settings)
            items, total = self._container.get_items(window.limit, window.offset)
            logger.debug(
                "Fetched %d of %d items from %s backend (offset=%d, limit=%d)",
                len(items),
                total,
                self._container.backend,
                window.offset,
                window.limit,
            )
            self._result = PaginationResult(items, total, window.offset, window.limit)
        return self._result

    def assemble(self) -> CollectionPage:
        """Render the fetched page with its links and metadata."""
        if self._page is not None:
            return self._page
        result = self.fetch()
        settings = self._definition.settings
        fields = self._params.get(settings.fields_key)
        items = [
            render_item(item, self._definition.item_renderer, fields) for item in result.items
        ]
        link_params = self._link_params(result.limit)
        links = {
            name: build_url(self._url, link_params, **{settings.offset_key: offset})
            for name, offset in compute_links(result.total, result.offset, result.limit).items()
        }
        meta: dict[str, Any] = {}
        sort = self.effective_sort()
        if sort:
            meta["sort"] = dict(sort)
        filters = self.requested_filters()
        if filters:
            meta["filters"] = filters
        self._page = CollectionPage(
            items=items,
            total=result.total,
            offset=result.offset,
            limit=result.limit,
            links=links,
            meta=meta,
        )
        return self._page

    # -- request views --------------------------------------------------

    def requested_filters(self) -> dict[str, list[str]]:
        """Validated filter tokens keyed by filter name."""
        _, raw = self._validator.filters_param(self._params)
        if not raw:
            return {}
        return {name: filter_tokens(value) or [] for name, value in raw.items()}

    def effective_sort(self) -> dict[str, str]:
        """Requested sort, or the configured default when none is given."""
        raw = self._params.get(self._definition.settings.sort_key)
        if raw:
            return {name: str(direction).lower() for name, direction in raw.items()}
        return dict(self._definition.default_sort)

    def _link_params(self, limit: int) -> dict[str, Any]:
        settings = self._definition.settings
        params = dict(self._params)
        params.pop(settings.page_key, None)
        if params.pop(settings.page_size_key, None) is not None:
            params[settings.limit_key] = limit
        return params

    @staticmethod
    def _lookup(specs: Mapping[str, Any], name: str, kind: str) -> Any:
        try:
            return specs[name]
        except KeyError:
            raise MasonCollectionError(f"No {kind} spec configured for {name!r}") from None
