"""Exception hierarchy for mason-collection.

All exceptions inherit from ``MasonCollectionError`` and provide
``to_dict()`` for API-friendly error responses.
"""

from __future__ import annotations

from typing import Any


class MasonCollectionError(Exception):
    """Root exception for the mason-collection package."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ConfigurationError(MasonCollectionError, ValueError):
    """A collection, filter, sort, or container is misconfigured.

    Raised at setup time; never caused by client input.
    """


class CollectionValidationError(MasonCollectionError):
    """Request parameters failed validation.

    Carries structured errors: ``{field: [messages]}``, covering every
    violation found in the request rather than the first one.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "VALIDATION_ERROR",
            "errors": self.errors,
        }


class UnsupportedOperatorError(MasonCollectionError):
    """A container was asked for an operator its backend cannot express.

    This signals a mismatch between the declared filter operators and the
    backend's capabilities, not a client error.
    """

    def __init__(self, backend: str, operator: str) -> None:
        self.backend = backend
        self.operator = operator
        super().__init__(f"Operator {operator!r} is not supported by the {backend} backend")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_OPERATOR",
            "message": str(self),
            "backend": self.backend,
            "operator": self.operator,
        }
