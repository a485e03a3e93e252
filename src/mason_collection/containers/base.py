"""Container: uniform filter/sort/page interface over a data source.

A container wraps one data source for the lifetime of one request. Filters
accumulate as a conjunction, sort keys accumulate in call order, and
``get_items`` materialises exactly one page plus the filtered total.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from ..exceptions import ConfigurationError, UnsupportedOperatorError
from ..operators import FilterOperator

if TYPE_CHECKING:
    from ..specs import FilterSpec


class Container(ABC):
    """Strategy interface implemented once per backend."""

    #: Short backend name used in log records and errors.
    backend: str = "generic"

    @property
    def supported_operators(self) -> frozenset[FilterOperator]:
        return frozenset(FilterOperator)

    def supports(self, operator: str) -> bool:
        return any(op.value == operator for op in self.supported_operators)

    def ensure_supported(self, operator: str) -> None:
        """Raise ``UnsupportedOperatorError`` if *operator* can't be expressed."""
        if not self.supports(operator):
            raise UnsupportedOperatorError(self.backend, operator)

    @abstractmethod
    def set_sorting(self, field: str, direction: str) -> Container:
        """Add a sort key. Earlier calls take precedence over later ones."""
        ...

    @abstractmethod
    def apply_filter(
        self,
        spec: FilterSpec,
        operator: str,
        params: Sequence[str],
    ) -> Container:
        """AND a predicate onto the filters applied so far."""
        ...

    def check_filter(self, spec: FilterSpec, operator: str, params: Sequence[str]) -> list[str]:
        """Messages for parameter values this backend cannot use (none by default)."""
        return []

    @abstractmethod
    def get_items(self, limit: int, offset: int) -> tuple[list[Any], int]:
        """Return ``(page_of_items, total)`` for the applied filters and sorts."""
        ...


ContainerBuilder = Callable[..., Container]


class ContainerFactory:
    """Chooses a container for a data source by the source's type.

    Lookup walks the source type's MRO, so registering a base class covers
    its subclasses.

    Usage::

        factory = ContainerFactory()
        factory.register(list, InMemoryContainer)
        container = factory.create([...])
    """

    def __init__(self) -> None:
        self._builders: dict[type, ContainerBuilder] = {}

    def register(self, source_type: type, builder: ContainerBuilder) -> None:
        self._builders[source_type] = builder

    def unregister(self, source_type: type) -> None:
        self._builders.pop(source_type, None)

    def builder_for(self, source: Any) -> ContainerBuilder | None:
        for klass in type(source).__mro__:
            builder = self._builders.get(klass)
            if builder is not None:
                return builder
        return None

    def create(self, source: Any, **kwargs: Any) -> Container:
        """Wrap *source* in a container.

        Raises:
            ConfigurationError: If no container is registered for the type.
        """
        if isinstance(source, Container):
            return source
        builder = self.builder_for(source)
        if builder is None:
            supported = ", ".join(sorted(t.__name__ for t in self._builders))
            raise ConfigurationError(
                f"Unsupported data source {type(source).__name__!r}; "
                f"expected a Container or one of: {supported}"
            )
        return builder(source, **kwargs)
