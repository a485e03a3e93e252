"""
In-memory container.

Filters are evaluated per item by strategy classes registered in a
``MemoryOperatorRegistry``, one class per operator. Each filter or sort
rebinds the container to a new tuple; the caller's sequence is never
mutated, so the same source list can back many requests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence, Sized
from typing import TYPE_CHECKING, Any

from ..exceptions import UnsupportedOperatorError
from ..operators import FilterOperator
from ..values import coerce_like
from .base import Container

if TYPE_CHECKING:
    from ..specs import FilterSpec

logger = logging.getLogger(__name__)


def resolve_field(obj: Any, path: str) -> Any:
    """Resolve a dot-separated path on mappings and objects."""
    for part in path.split("."):
        if obj is None:
            return None
        obj = obj.get(part) if isinstance(obj, Mapping) else getattr(obj, part, None)
    return obj


def is_empty_value(value: Any) -> bool:
    """True for ``None``, ``""``, zero, and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def _coerce_all(params: Sequence[str], sample: Any) -> list[Any] | None:
    try:
        return [coerce_like(p, sample) for p in params]
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Operator strategies
# ---------------------------------------------------------------------------


class MemoryOperator(ABC):
    """Evaluates one operator against a resolved field value."""

    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool: ...


class NegatedOperator(MemoryOperator):
    """Negation of ``positive``; a ``None`` field always matches."""

    positive: MemoryOperator

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        if field_value is None:
            return True
        return not self.positive.evaluate(field_value, params)


class EmptyOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EMPTY

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        return is_empty_value(field_value)


class NotEmptyOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_EMPTY

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        return not is_empty_value(field_value)


class _ComparisonOperator(MemoryOperator):
    """Coerces the parameter to the field's type, then compares."""

    @abstractmethod
    def compare(self, field_value: Any, condition: Any) -> bool: ...

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        if field_value is None:
            return False
        coerced = _coerce_all(params[:1], field_value)
        if coerced is None:
            return False
        try:
            return bool(self.compare(field_value, coerced[0]))
        except TypeError:
            return False


class EqualOperator(_ComparisonOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EQ

    def compare(self, field_value: Any, condition: Any) -> bool:
        return field_value == condition


class NotEqualOperator(NegatedOperator):
    positive = EqualOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NE


class LessThanOperator(_ComparisonOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LT

    def compare(self, field_value: Any, condition: Any) -> bool:
        return field_value < condition


class GreaterThanOperator(_ComparisonOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GT

    def compare(self, field_value: Any, condition: Any) -> bool:
        return field_value > condition


class LessEqualOperator(_ComparisonOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LTE

    def compare(self, field_value: Any, condition: Any) -> bool:
        return field_value <= condition


class GreaterEqualOperator(_ComparisonOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GTE

    def compare(self, field_value: Any, condition: Any) -> bool:
        return field_value >= condition


class StartsWithOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.STARTS_WITH

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        if field_value is None:
            return False
        return str(field_value).lower().startswith(params[0].lower())


class EndsWithOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.ENDS_WITH

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        if field_value is None:
            return False
        return str(field_value).lower().endswith(params[0].lower())


class ContainsOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.CONTAINS

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        if field_value is None:
            return False
        return params[0].lower() in str(field_value).lower()


class NotStartsWithOperator(NegatedOperator):
    positive = StartsWithOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_STARTS_WITH


class NotEndsWithOperator(NegatedOperator):
    positive = EndsWithOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_ENDS_WITH


class NotContainsOperator(NegatedOperator):
    positive = ContainsOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_CONTAINS


class BetweenOperator(MemoryOperator):
    """Inclusive on both ends."""

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.BETWEEN

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        if field_value is None:
            return False
        bounds = _coerce_all(params[:2], field_value)
        if bounds is None:
            return False
        low, high = bounds
        try:
            return bool(low <= field_value <= high)
        except TypeError:
            return False


class NotBetweenOperator(NegatedOperator):
    positive = BetweenOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_BETWEEN


class InOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IN

    def evaluate(self, field_value: Any, params: Sequence[str]) -> bool:
        if field_value is None:
            return False
        for raw in params:
            coerced = _coerce_all([raw], field_value)
            if coerced is not None and coerced[0] == field_value:
                return True
        return False


class NotInOperator(NegatedOperator):
    positive = InOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_IN


class MemoryOperatorRegistry:
    """
    Registry of ``MemoryOperator`` instances keyed by ``FilterOperator``.

    Usage::

        registry = build_memory_registry()
        registry.evaluate(FilterOperator.CONTAINS, "Hello world", ["WORLD"])
    """

    def __init__(self) -> None:
        self._operators: dict[FilterOperator, MemoryOperator] = {}

    def register(self, operator: MemoryOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: MemoryOperator) -> None:
        for op in operators:
            self.register(op)

    def unregister(self, name: FilterOperator) -> None:
        self._operators.pop(name, None)

    def get(self, name: str | FilterOperator) -> MemoryOperator | None:
        try:
            return self._operators.get(FilterOperator(name))
        except ValueError:
            return None

    @property
    def supported_operators(self) -> frozenset[FilterOperator]:
        return frozenset(self._operators)

    def evaluate(
        self,
        name: str | FilterOperator,
        field_value: Any,
        params: Sequence[str],
    ) -> bool:
        """
        Look up the operator and evaluate.

        Raises:
            UnsupportedOperatorError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise UnsupportedOperatorError("memory", str(getattr(name, "value", name)))
        return op.evaluate(field_value, params)


def build_memory_registry() -> MemoryOperatorRegistry:
    """Create a registry holding every built-in in-memory operator."""
    registry = MemoryOperatorRegistry()
    registry.register_all(
        EmptyOperator(),
        NotEmptyOperator(),
        EqualOperator(),
        NotEqualOperator(),
        LessThanOperator(),
        GreaterThanOperator(),
        LessEqualOperator(),
        GreaterEqualOperator(),
        StartsWithOperator(),
        EndsWithOperator(),
        ContainsOperator(),
        NotStartsWithOperator(),
        NotEndsWithOperator(),
        NotContainsOperator(),
        BetweenOperator(),
        NotBetweenOperator(),
        InOperator(),
        NotInOperator(),
    )
    return registry


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


SortKey = Callable[[Any], Any]


def _field_sort_key(field: str) -> SortKey:
    def key(item: Any) -> tuple[int, Any]:
        value = resolve_field(item, field)
        return (0, 0) if value is None else (1, value)

    return key


class InMemoryContainer(Container):
    """Container over an already-loaded sequence of items.

    Sort keys are kept in call order and applied when the page is fetched,
    as successive stable sorts from the last key to the first.
    """

    backend = "memory"

    def __init__(
        self,
        items: Iterable[Any],
        *,
        registry: MemoryOperatorRegistry | None = None,
    ) -> None:
        self._items: tuple[Any, ...] = tuple(items)
        self._sort_keys: tuple[tuple[SortKey, bool], ...] = ()
        self._registry = registry or build_memory_registry()

    @property
    def items(self) -> tuple[Any, ...]:
        """Items left after the filters applied so far, unsorted."""
        return self._items

    @property
    def supported_operators(self) -> frozenset[FilterOperator]:
        return self._registry.supported_operators

    def filter_items(self, predicate: Callable[[Any], bool]) -> InMemoryContainer:
        """Keep only the items matching *predicate*."""
        self._items = tuple(item for item in self._items if predicate(item))
        return self

    def sort_items(self, key: SortKey, *, reverse: bool = False) -> InMemoryContainer:
        """Add a sort key function after the keys already set."""
        self._sort_keys = (*self._sort_keys, (key, reverse))
        return self

    def set_sorting(self, field: str, direction: str) -> InMemoryContainer:
        logger.debug("Sorting in-memory items by %s %s", field, direction)
        return self.sort_items(_field_sort_key(field), reverse=direction.lower() == "desc")

    def apply_filter(
        self,
        spec: FilterSpec,
        operator: str,
        params: Sequence[str],
    ) -> InMemoryContainer:
        self.ensure_supported(operator)
        field = spec.field_name
        before = len(self._items)
        self.filter_items(
            lambda item: self._registry.evaluate(operator, resolve_field(item, field), params)
        )
        logger.debug(
            "Filter %s %s %r kept %d of %d items",
            field,
            operator,
            list(params),
            len(self._items),
            before,
        )
        return self

    def get_items(self, limit: int, offset: int) -> tuple[list[Any], int]:
        ordered = list(self._items)
        for key, reverse in reversed(self._sort_keys):
            ordered.sort(key=key, reverse=reverse)
        return ordered[offset : offset + limit], len(ordered)
