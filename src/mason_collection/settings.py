"""CollectionSettings: per-collection limits and query parameter names."""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ConfigurationError

DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 300

FIELDS_MODES = ("all", "full", "brief")


@dataclass(frozen=True)
class CollectionSettings:
    """
    Immutable settings shared by every request to one collection.

    Attributes:
        default_per_page: Page size when the request gives none.
        max_per_page: Largest accepted ``limit`` / ``page_size``.
        legacy_filters_key: Older name for the filters parameter, read
            only when ``filters_key`` is absent. ``None`` disables it.
    """

    default_per_page: int = DEFAULT_PER_PAGE
    max_per_page: int = MAX_PER_PAGE
    limit_key: str = "limit"
    offset_key: str = "offset"
    page_key: str = "page"
    page_size_key: str = "page_size"
    sort_key: str = "sort"
    filters_key: str = "filters"
    legacy_filters_key: str | None = "filter"
    fields_key: str = "fields"

    def __post_init__(self) -> None:
        if self.max_per_page < 1:
            raise ConfigurationError("max_per_page must be at least 1")
        if not 1 <= self.default_per_page <= self.max_per_page:
            raise ConfigurationError(
                f"default_per_page must be between 1 and {self.max_per_page}, "
                f"got {self.default_per_page}"
            )
