"""Request validation for collection query parameters.

Pagination parameters go through a pydantic model built for the
collection's settings. Filter and sort parameters are checked by rules
held on the validator instance, built from the collection's configured
specs; nothing is registered globally.

Every violation is collected before failing, so one response can report
all of them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import TYPE_CHECKING, Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, create_model
from pydantic import ValidationError as PydanticValidationError

from .exceptions import CollectionValidationError
from .operators import OPERATOR_NAMES, accepts_param_count, describe_arity, is_known
from .settings import FIELDS_MODES
from .specs import SORT_DIRECTIONS
from .syntax import FilterExpressionParser, ParsedFilter

if TYPE_CHECKING:
    from .settings import CollectionSettings
    from .specs import FilterRule, FilterSpec, SortSpec

TokenRule = Callable[["FilterSpec", ParsedFilter], Optional[str]]
ValueCheck = Callable[["FilterSpec", str, list[str]], list[str]]


def default_errors_factory() -> dict[str, list[str]]:
    return {}


@dataclass
class ValidationResult:
    """Collects field-level validation errors.

    Usage::

        result = ValidationResult.success()
        result.add_error("limit", "must be positive")
        result.raise_for_errors()
    """

    errors: dict[str, list[str]] = field(default_factory=default_errors_factory)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Merge another result into this one, combining all errors."""
        merged = dict(self.errors)
        for field_name, messages in other.errors.items():
            existing = merged.get(field_name, [])
            merged[field_name] = existing + messages
        return ValidationResult(errors=merged)

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)

    def raise_for_errors(self) -> None:
        if not self.is_valid:
            raise CollectionValidationError(self.errors)

    def __bool__(self) -> bool:
        return self.is_valid


def param_type(python_type: Any) -> FilterRule:
    """Build a filter rule requiring every parameter to validate as *python_type*.

    Example::

        FilterSpec("created", rules=[param_type(int)])
    """
    adapter: TypeAdapter[Any] = TypeAdapter(python_type)

    def rule(operator: str, params: Sequence[str]) -> str | None:
        for value in params:
            try:
                adapter.validate_python(value)
            except PydanticValidationError as exc:
                first = exc.errors()[0]
                return f"Invalid parameter {value!r}: {first.get('msg', 'validation error')}"
        return None

    return rule


def filter_tokens(value: Any) -> list[str] | None:
    """Normalise one filter parameter to a list of tokens (``None`` if malformed)."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, Mapping):
        value = list(value.values())
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    return None


def _pagination_model(settings: CollectionSettings) -> type[BaseModel]:
    per_page = Annotated[int, Field(ge=1, le=settings.max_per_page)]
    non_negative = Annotated[int, Field(ge=0)]
    return create_model(
        "PaginationParams",
        __config__=ConfigDict(extra="ignore", populate_by_name=False),
        limit=(Optional[per_page], Field(default=None, alias=settings.limit_key)),
        offset=(Optional[non_negative], Field(default=None, alias=settings.offset_key)),
        page=(Optional[non_negative], Field(default=None, alias=settings.page_key)),
        page_size=(Optional[per_page], Field(default=None, alias=settings.page_size_key)),
        fields_mode=(
            Optional[Literal[FIELDS_MODES]],  # type: ignore[valid-type]
            Field(default=None, alias=settings.fields_key),
        ),
    )


class CollectionValidator:
    """Validates one request's query parameters against a collection's specs."""

    def __init__(
        self,
        filters: Mapping[str, FilterSpec],
        sorts: Mapping[str, SortSpec],
        settings: CollectionSettings,
        parser: FilterExpressionParser | None = None,
    ) -> None:
        self._filters = filters
        self._sorts = sorts
        self._settings = settings
        self._parser = parser or FilterExpressionParser()
        self._pagination = _pagination_model(settings)

        def operator_rule(spec: FilterSpec, parsed: ParsedFilter) -> str | None:
            if not parsed.operator:
                return "Missing filter operator"
            if not is_known(parsed.operator):
                message = f"Unknown operator {parsed.operator!r}."
                suggestions = get_close_matches(parsed.operator, sorted(OPERATOR_NAMES), n=3)
                if suggestions:
                    message += f" Did you mean: {', '.join(suggestions)}?"
                return message
            if not spec.allows(parsed.operator):
                allowed = ", ".join(sorted(spec.operators or ()))
                return (
                    f"Operator {parsed.operator!r} is not allowed for filter "
                    f"{spec.name!r}; allowed: {allowed}"
                )
            return None

        def param_count_rule(spec: FilterSpec, parsed: ParsedFilter) -> str | None:
            if not is_known(parsed.operator):
                return None
            if not accepts_param_count(parsed.operator, len(parsed.params)):
                return (
                    f"Operator {parsed.operator!r} takes {describe_arity(parsed.operator)}, "
                    f"got {len(parsed.params)}"
                )
            return None

        self._token_rules: tuple[TokenRule, ...] = (operator_rule, param_count_rule)

    def validate(
        self,
        params: Mapping[str, Any],
        value_check: ValueCheck | None = None,
    ) -> ValidationResult:
        """Check every parameter and return all errors found.

        *value_check* receives ``(spec, operator, params)`` for each filter
        token that passed the grammar checks and returns error messages for
        parameter values the backend cannot use.
        """
        filters_key, raw_filters = self.filters_param(params)
        return (
            self._check_pagination(params)
            .merge(self._check_sort(params.get(self._settings.sort_key)))
            .merge(self._check_filters(filters_key, raw_filters, value_check))
        )

    def filters_param(self, params: Mapping[str, Any]) -> tuple[str, Any]:
        """Return ``(key, value)`` of the filters parameter, honouring the legacy key."""
        key = self._settings.filters_key
        legacy = self._settings.legacy_filters_key
        if key not in params and legacy and legacy in params:
            return legacy, params[legacy]
        return key, params.get(key)

    def check_token(
        self,
        spec: FilterSpec,
        token: str,
        value_check: ValueCheck | None = None,
    ) -> list[str]:
        """Run the operator and arity checks, then the filter's own rules, on one token."""
        parsed = self._parser.parse(token)
        messages = [m for rule in self._token_rules if (m := rule(spec, parsed))]
        if messages:
            return messages
        for extra in spec.rules:
            message = extra(parsed.operator, parsed.params)
            if message:
                messages.append(message)
        if not messages and value_check is not None:
            messages.extend(value_check(spec, parsed.operator, parsed.params))
        return messages

    def _check_pagination(self, params: Mapping[str, Any]) -> ValidationResult:
        result = ValidationResult.success()
        try:
            self._pagination.model_validate(dict(params))
        except PydanticValidationError as exc:
            for error in exc.errors():
                loc = ".".join(str(p) for p in error.get("loc", ("__root__",)))
                result.add_error(loc, error.get("msg", "validation error"))
        return result

    def _check_sort(self, raw: Any) -> ValidationResult:
        result = ValidationResult.success()
        key = self._settings.sort_key
        if raw is None:
            return result
        if not isinstance(raw, Mapping):
            result.add_error(key, "Must be a map of sort names to directions")
            return result
        for name, direction in raw.items():
            path = f"{key}.{name}"
            if name not in self._sorts:
                allowed = ", ".join(sorted(self._sorts)) or "none"
                result.add_error(path, f"Unknown sort {name!r}; allowed: {allowed}")
            if not isinstance(direction, str) or direction.lower() not in SORT_DIRECTIONS:
                result.add_error(path, f"Sort direction must be one of: {', '.join(SORT_DIRECTIONS)}")
        return result

    def _check_filters(
        self,
        key: str,
        raw: Any,
        value_check: ValueCheck | None,
    ) -> ValidationResult:
        result = ValidationResult.success()
        if raw is None:
            return result
        if not isinstance(raw, Mapping):
            result.add_error(key, "Must be a map of filter names to filter expressions")
            return result
        for name, value in raw.items():
            path = f"{key}.{name}"
            spec = self._filters.get(name)
            if spec is None:
                allowed = ", ".join(sorted(self._filters)) or "none"
                result.add_error(path, f"Unknown filter {name!r}; allowed: {allowed}")
                continue
            tokens = filter_tokens(value)
            if tokens is None:
                result.add_error(path, "Must be a filter expression or a list of them")
                continue
            if not tokens:
                result.add_error(path, "At least one filter expression is required")
                continue
            indexed = not isinstance(value, str)
            for index, token in enumerate(tokens):
                token_path = f"{path}.{index}" if indexed else path
                for message in self.check_token(spec, token, value_check):
                    result.add_error(token_path, message)
        return result
