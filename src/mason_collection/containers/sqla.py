"""
SQLAlchemy container.

Each operator is compiled to a ``ColumnElement[bool]`` by a strategy class
registered in a ``SQLAlchemyOperatorRegistry``. Filtering, sorting, and
counting all run in the database; nothing is loaded and sliced in Python.

The count and the page are two separate round trips without a shared
transaction, so a concurrent write can make ``total`` disagree with the
page. Callers that need a consistent snapshot should run both inside one
transaction on the session they pass in.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from decimal import Decimal
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import ColumnElement, Select, String, and_, asc, desc, func, not_, or_, select
from sqlalchemy import cast as sql_cast

from ..exceptions import CollectionValidationError, ConfigurationError, UnsupportedOperatorError
from ..operators import FilterOperator
from ..values import coerce_param
from .base import Container

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from ..specs import FilterSpec

logger = logging.getLogger(__name__)


def column_python_type(column: Any) -> type[Any] | None:
    try:
        return cast("type[Any]", column.type.python_type)
    except AttributeError:
        pass
    except NotImplementedError:
        return None
    try:
        return cast("type[Any]", column.property.columns[0].type.python_type)
    except (AttributeError, IndexError, NotImplementedError):
        return None


def empty_values(column: Any) -> list[Any]:
    """Values other than NULL that count as empty for *column*'s type."""
    python_type = column_python_type(column)
    if python_type is str:
        return [""]
    if python_type in (int, float, Decimal):
        return [0]
    return []


# ---------------------------------------------------------------------------
# Operator strategies
# ---------------------------------------------------------------------------


class SQLAlchemyOperator(ABC):
    """
    Strategy interface for compiling a filter operator into a SQLAlchemy
    boolean expression.

    ``params`` have already been coerced to the column's Python type.
    """

    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]: ...


class EmptyOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EMPTY

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        values = empty_values(column)
        if not values:
            return cast("ColumnElement[bool]", column.is_(None))
        return or_(column.is_(None), column.in_(values))


class NotEmptyOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_EMPTY

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        values = empty_values(column)
        if not values:
            return cast("ColumnElement[bool]", column.is_not(None))
        return and_(column.is_not(None), column.not_in(values))


class EqualOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EQ

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column == params[0])


class NotEqualOperator(SQLAlchemyOperator):
    """NULL rows count as not equal."""

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NE

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return or_(column != params[0], column.is_(None))


class LessThanOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LT

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column < params[0])


class GreaterThanOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GT

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column > params[0])


class LessEqualOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LTE

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column <= params[0])


class GreaterEqualOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GTE

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column >= params[0])


# LIKE wildcards in user input are escaped by ``autoescape=True``.

PATTERN_OPERATORS: frozenset[FilterOperator] = frozenset(
    {
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.CONTAINS,
        FilterOperator.NOT_STARTS_WITH,
        FilterOperator.NOT_ENDS_WITH,
        FilterOperator.NOT_CONTAINS,
    }
)


def as_text(column: Any) -> Any:
    """Cast non-string columns to ``String`` so pattern matching applies to their text."""
    if column_python_type(column) is str:
        return column
    return sql_cast(column, String)


class StartsWithOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.STARTS_WITH

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", as_text(column).istartswith(str(params[0]), autoescape=True))


class EndsWithOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.ENDS_WITH

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", as_text(column).iendswith(str(params[0]), autoescape=True))


class ContainsOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.CONTAINS

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", as_text(column).icontains(str(params[0]), autoescape=True))


class _NullableNegation(SQLAlchemyOperator):
    """``NOT <positive> OR column IS NULL``."""

    positive: SQLAlchemyOperator

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return or_(not_(self.positive.apply(column, params)), column.is_(None))


class NotStartsWithOperator(_NullableNegation):
    positive = StartsWithOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_STARTS_WITH


class NotEndsWithOperator(_NullableNegation):
    positive = EndsWithOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_ENDS_WITH


class NotContainsOperator(_NullableNegation):
    positive = ContainsOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_CONTAINS


class BetweenOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.BETWEEN

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.between(params[0], params[1]))


class NotBetweenOperator(_NullableNegation):
    positive = BetweenOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_BETWEEN


class InOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IN

    def apply(self, column: Any, params: Sequence[Any]) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.in_(list(params)))


class NotInOperator(_NullableNegation):
    positive = InOperator()

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_IN


class SQLAlchemyOperatorRegistry:
    """
    Registry of ``SQLAlchemyOperator`` instances keyed by ``FilterOperator``.
    """

    def __init__(self) -> None:
        self._operators: dict[FilterOperator, SQLAlchemyOperator] = {}

    def register(self, operator: SQLAlchemyOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: SQLAlchemyOperator) -> None:
        for op in operators:
            self.register(op)

    def unregister(self, name: FilterOperator) -> None:
        self._operators.pop(name, None)

    def get(self, name: str | FilterOperator) -> SQLAlchemyOperator | None:
        try:
            return self._operators.get(FilterOperator(name))
        except ValueError:
            return None

    @property
    def supported_operators(self) -> frozenset[FilterOperator]:
        return frozenset(self._operators)

    def apply(
        self,
        name: str | FilterOperator,
        column: Any,
        params: Sequence[Any],
    ) -> ColumnElement[bool]:
        """
        Look up the operator and build the clause.

        Raises:
            UnsupportedOperatorError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise UnsupportedOperatorError("sqlalchemy", str(getattr(name, "value", name)))
        return op.apply(column, params)


def build_sqlalchemy_registry() -> SQLAlchemyOperatorRegistry:
    """Create a registry holding every built-in SQLAlchemy operator."""
    registry = SQLAlchemyOperatorRegistry()
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


class SQLAlchemyContainer(Container):
    """Container over a SQLAlchemy ``Select`` executed on a sync ``Session``.

    Args:
        statement: The base query, e.g. ``select(Sms).where(Sms.voip_id == 1)``.
        session: Session used for the count and page queries.
        model: Mapped class used to resolve field names. Defaults to the
            first entity selected by *statement*.
        registry: Operator registry; defaults to the built-in operators.
    """

    backend = "sqlalchemy"

    def __init__(
        self,
        statement: Select[Any],
        *,
        session: Session,
        model: type[Any] | None = None,
        registry: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        if session is None:
            raise ConfigurationError("SQLAlchemyContainer requires a session")
        self._statement = statement
        self._session = session
        self._model = model if model is not None else self._selected_entity(statement)
        self._registry = registry or build_sqlalchemy_registry()

    @staticmethod
    def _selected_entity(statement: Select[Any]) -> type[Any] | None:
        descriptions = statement.column_descriptions
        if descriptions:
            return cast("type[Any] | None", descriptions[0].get("entity"))
        return None

    @property
    def statement(self) -> Select[Any]:
        return self._statement

    @property
    def model(self) -> type[Any] | None:
        return self._model

    @property
    def supported_operators(self) -> frozenset[FilterOperator]:
        return self._registry.supported_operators

    def column(self, field: str) -> Any:
        """Resolve *field* to a mapped attribute or selected column.

        Raises:
            ConfigurationError: If nothing by that name is queryable.
        """
        if self._model is not None:
            attr = getattr(self._model, field, None)
            if attr is not None:
                return attr
        selected = self._statement.selected_columns
        if field in selected:
            return selected[field]
        raise ConfigurationError(f"Field {field!r} is not queryable on this statement")

    def where(self, *criteria: Any) -> SQLAlchemyContainer:
        """AND raw SQLAlchemy criteria onto the statement."""
        self._statement = self._statement.where(*criteria)
        return self

    def order_by(self, *clauses: Any) -> SQLAlchemyContainer:
        """Append raw ORDER BY clauses."""
        self._statement = self._statement.order_by(*clauses)
        return self

    def set_sorting(self, field: str, direction: str) -> SQLAlchemyContainer:
        column = self.column(field)
        clause = desc(column) if direction.lower() == "desc" else asc(column)
        logger.debug("Ordering by %s %s", field, direction)
        return self.order_by(clause)

    def coerce_params(self, column: Any, operator: str, params: Sequence[str]) -> tuple[list[Any], list[str]]:
        """Convert raw params to the column's Python type, collecting failures."""
        if operator in PATTERN_OPERATORS:
            return [str(p) for p in params], []
        python_type = column_python_type(column)
        values: list[Any] = []
        errors: list[str] = []
        for param in params:
            try:
                values.append(coerce_param(param, python_type))
            except ValueError as exc:
                errors.append(f"Invalid value {param!r} for {operator!r}: {exc}")
        return values, errors

    def check_filter(self, spec: FilterSpec, operator: str, params: Sequence[str]) -> list[str]:
        if spec.apply_fn is not None:
            return []
        try:
            column = self.column(spec.field_name)
        except ConfigurationError:
            # Surfaces as a configuration error when the filter is applied.
            return []
        return self.coerce_params(column, operator, params)[1]

    def apply_filter(
        self,
        spec: FilterSpec,
        operator: str,
        params: Sequence[str],
    ) -> SQLAlchemyContainer:
        self.ensure_supported(operator)
        column = self.column(spec.field_name)
        values, errors = self.coerce_params(column, operator, params)
        if errors:
            raise CollectionValidationError({f"filters.{spec.name}": errors})
        logger.debug("Filter %s %s %r", spec.field_name, operator, values)
        return self.where(self._registry.apply(operator, column, values))

    def count(self) -> int:
        """Total rows matching the applied filters, ignoring ORDER BY."""
        subquery = self._statement.order_by(None).subquery()
        total = self._session.scalar(select(func.count()).select_from(subquery))
        return int(total or 0)

    def get_items(self, limit: int, offset: int) -> tuple[list[Any], int]:
        total = self.count()
        page = self._statement.offset(offset).limit(limit)
        result = self._session.execute(page)
        if self._single_entity():
            items: list[Any] = list(result.scalars().all())
        else:
            items = [dict(row) for row in result.mappings().all()]
        logger.debug("Fetched %d of %d rows (offset=%d, limit=%d)", len(items), total, offset, limit)
        return items, total

    def _single_entity(self) -> bool:
        descriptions = self._statement.column_descriptions
        if len(descriptions) != 1:
            return False
        entity = descriptions[0].get("entity")
        return entity is not None and descriptions[0].get("type") is entity
