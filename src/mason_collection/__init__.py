"""Mason collections: query-string driven filtering, sorting and pagination."""

from __future__ import annotations

from .collection import CollectionAssembler, CollectionDefinition, CollectionPage
from .containers import (
    Container,
    ContainerFactory,
    HttpApiQuery,
    InMemoryContainer,
    RemoteApiContainer,
    RemoteQuery,
    SQLAlchemyContainer,
    build_default_factory,
    make_container,
)
from .exceptions import (
    CollectionValidationError,
    ConfigurationError,
    MasonCollectionError,
    UnsupportedOperatorError,
)
from .operators import FilterOperator
from .pagination import PaginationResult, PaginationWindow, compute_links, resolve_window
from .query_string import build_query_string, build_url, parse_query_string
from .rendering import ItemRenderer, render_item
from .settings import CollectionSettings
from .specs import FilterSpec, SortSpec
from .syntax import FilterExpressionParser, ParsedFilter
from .validation import CollectionValidator, ValidationResult, param_type

__all__ = [
    "CollectionAssembler",
    "CollectionDefinition",
    "CollectionPage",
    "CollectionSettings",
    "CollectionValidationError",
    "CollectionValidator",
    "ConfigurationError",
    "Container",
    "ContainerFactory",
    "FilterExpressionParser",
    "FilterOperator",
    "FilterSpec",
    "HttpApiQuery",
    "InMemoryContainer",
    "ItemRenderer",
    "MasonCollectionError",
    "PaginationResult",
    "PaginationWindow",
    "ParsedFilter",
    "RemoteApiContainer",
    "RemoteQuery",
    "SQLAlchemyContainer",
    "SortSpec",
    "UnsupportedOperatorError",
    "ValidationResult",
    "build_default_factory",
    "build_query_string",
    "build_url",
    "compute_links",
    "make_container",
    "param_type",
    "parse_query_string",
    "render_item",
    "resolve_window",
]
