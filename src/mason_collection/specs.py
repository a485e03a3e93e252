"""FilterSpec / SortSpec: named, configurable filter and sort types.

Specs are configured once per collection endpoint and never mutated
afterwards, so a single instance can be shared by concurrent requests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import TYPE_CHECKING, Any

from .exceptions import ConfigurationError
from .operators import FilterOperator, is_known

if TYPE_CHECKING:
    from .containers.base import Container

FilterRule = Callable[[str, Sequence[str]], "str | None"]
"""Extra validation: receives ``(operator, params)``, returns an error message or ``None``."""

FilterApplyFn = Callable[["Container", str, list[str], "FilterSpec"], Any]
SortApplyFn = Callable[["Container", str, "SortSpec"], Any]

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True, init=False)
class FilterSpec:
    """A filter type accepted by a collection.

    Attributes:
        name: Key used in the query string (``filters[<name>]``).
        field: Backing column or attribute; defaults to ``name``.
        operators: Allowed operator names; ``None`` accepts every operator.
        rules: Extra validation rules run against each parsed token.
        apply_fn: Replaces the container's default filter translation. Called
            with ``(container, operator, params, spec)``.
    """

    name: str
    field: str | None = None
    operators: frozenset[str] | None = None
    rules: tuple[FilterRule, ...] = ()
    apply_fn: FilterApplyFn | None = dataclass_field(default=None, compare=False)

    def __init__(
        self,
        name: str,
        field: str | None = None,
        operators: Iterable[str | FilterOperator] | None = None,
        rules: Iterable[FilterRule] = (),
        apply: FilterApplyFn | None = None,
    ) -> None:
        if not name:
            raise ConfigurationError("Filter name must be a non-empty string")
        allowed: frozenset[str] | None = None
        if operators is not None:
            if isinstance(operators, str):
                operators = [operators]
            allowed = frozenset(str(getattr(op, "value", op)) for op in operators)
            unknown = sorted(op for op in allowed if not is_known(op))
            if unknown:
                raise ConfigurationError(
                    f"Filter {name!r} declares unknown operators: {', '.join(unknown)}"
                )
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "field", field)
        object.__setattr__(self, "operators", allowed)
        object.__setattr__(self, "rules", tuple(rules))
        object.__setattr__(self, "apply_fn", apply)

    @property
    def field_name(self) -> str:
        return self.field or self.name

    def allows(self, operator: str) -> bool:
        """True if this filter accepts *operator* (known operators only)."""
        if not is_known(operator):
            return False
        return self.operators is None or operator in self.operators

    def apply(self, container: Container, operator: str, params: list[str]) -> None:
        if self.apply_fn is not None:
            self.apply_fn(container, operator, params, self)
        else:
            container.apply_filter(self, operator, params)


@dataclass(frozen=True, init=False)
class SortSpec:
    """A sort type accepted by a collection.

    ``apply_fn`` replaces the default ``container.set_sorting(field, direction)``
    and is called with ``(container, direction, spec)``.
    """

    name: str
    field: str | None = None
    title: str | None = None
    apply_fn: SortApplyFn | None = dataclass_field(default=None, compare=False)

    def __init__(
        self,
        name: str,
        field: str | None = None,
        title: str | None = None,
        apply: SortApplyFn | None = None,
    ) -> None:
        if not name:
            raise ConfigurationError("Sort name must be a non-empty string")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "field", field)
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "apply_fn", apply)

    @property
    def field_name(self) -> str:
        return self.field or self.name

    def apply(self, container: Container, direction: str) -> None:
        if self.apply_fn is not None:
            self.apply_fn(container, direction, self)
        else:
            container.set_sorting(self.field_name, direction)


def _index_specs(specs: Iterable[Any], spec_cls: type[Any], kind: str) -> dict[str, Any]:
    indexed: dict[str, Any] = {}
    for spec in specs:
        if isinstance(spec, str):
            spec = spec_cls(spec)
        if not isinstance(spec, spec_cls):
            raise ConfigurationError(
                f"{kind} types must be strings or {spec_cls.__name__}, got {type(spec).__name__}"
            )
        if spec.name in indexed:
            raise ConfigurationError(f"Duplicate {kind.lower()} type {spec.name!r}")
        indexed[spec.name] = spec
    return indexed


def index_filters(specs: Iterable[FilterSpec | str]) -> dict[str, FilterSpec]:
    """Normalise configured filters to ``{name: FilterSpec}``."""
    return _index_specs(specs, FilterSpec, "Filter")


def index_sorts(specs: Iterable[SortSpec | str]) -> dict[str, SortSpec]:
    """Normalise configured sorts to ``{name: SortSpec}``."""
    return _index_specs(specs, SortSpec, "Sort")
