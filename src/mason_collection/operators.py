"""Filter operators and their parameter arity."""

from __future__ import annotations

from enum import Enum


class FilterOperator(str, Enum):
    """Operators accepted in filter tokens."""

    # Zero-argument
    EMPTY = "empty"
    NOT_EMPTY = "not-empty"

    # One-argument
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    GT = "gt"
    LTE = "lte"
    GTE = "gte"
    STARTS_WITH = "starts-with"
    ENDS_WITH = "ends-with"
    CONTAINS = "contains"
    NOT_STARTS_WITH = "not-starts-with"
    NOT_ENDS_WITH = "not-ends-with"
    NOT_CONTAINS = "not-contains"

    # Two-argument
    BETWEEN = "between"
    NOT_BETWEEN = "not-between"

    # One or more arguments
    IN = "in"
    NOT_IN = "not-in"


UNLIMITED = None

# Number of parameters each operator takes; ``UNLIMITED`` means one or more.
ARITY: dict[FilterOperator, int | None] = {
    FilterOperator.EMPTY: 0,
    FilterOperator.NOT_EMPTY: 0,
    FilterOperator.EQ: 1,
    FilterOperator.NE: 1,
    FilterOperator.LT: 1,
    FilterOperator.GT: 1,
    FilterOperator.LTE: 1,
    FilterOperator.GTE: 1,
    FilterOperator.STARTS_WITH: 1,
    FilterOperator.ENDS_WITH: 1,
    FilterOperator.CONTAINS: 1,
    FilterOperator.NOT_STARTS_WITH: 1,
    FilterOperator.NOT_ENDS_WITH: 1,
    FilterOperator.NOT_CONTAINS: 1,
    FilterOperator.BETWEEN: 2,
    FilterOperator.NOT_BETWEEN: 2,
    FilterOperator.IN: UNLIMITED,
    FilterOperator.NOT_IN: UNLIMITED,
}

OPERATOR_NAMES: frozenset[str] = frozenset(op.value for op in FilterOperator)


def is_known(name: str) -> bool:
    return name in OPERATOR_NAMES


def arity_of(operator: str | FilterOperator) -> int | None:
    """Return the parameter count for *operator* (``None`` = one or more).

    Raises:
        ValueError: If the operator is unknown.
    """
    return ARITY[FilterOperator(operator)]


def accepts_param_count(operator: str | FilterOperator, count: int) -> bool:
    """True if *operator* is known and takes exactly *count* parameters."""
    if not is_known(str(getattr(operator, "value", operator))):
        return False
    expected = arity_of(operator)
    if expected is UNLIMITED:
        return count >= 1
    return count == expected


def describe_arity(operator: str | FilterOperator) -> str:
    expected = arity_of(operator)
    if expected is UNLIMITED:
        return "one or more parameters"
    if expected == 1:
        return "exactly 1 parameter"
    return f"exactly {expected} parameters"
