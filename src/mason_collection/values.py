"""Coercion of string filter parameters to backend value types."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def _to_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {text!r}")


def _to_number(text: str, python_type: type[Any]) -> Any:
    normalized = text.strip()
    if not normalized:
        raise ValueError("Empty number")
    try:
        if python_type is Decimal:
            return Decimal(normalized)
        return python_type(normalized)
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {text!r}") from exc


def _to_datetime(text: str) -> datetime:
    stripped = text.strip()
    if not stripped:
        raise ValueError("Empty datetime")
    try:
        # Unix timestamps are accepted alongside ISO 8601.
        return datetime.fromtimestamp(float(stripped), tz=timezone.utc)
    except ValueError:
        pass
    if "T" not in stripped and " " not in stripped and len(stripped) == 10:
        return datetime.combine(date.fromisoformat(stripped), datetime.min.time())
    return datetime.fromisoformat(stripped.replace("Z", "+00:00"))


def _to_date(text: str) -> date:
    stripped = text.strip()
    if "T" in stripped or " " in stripped:
        return datetime.fromisoformat(stripped.replace("Z", "+00:00")).date()
    return date.fromisoformat(stripped)


def coerce_param(raw: str, python_type: type[Any] | None) -> Any:
    """Convert a string parameter to *python_type*.

    ``None`` and ``str`` return *raw* unchanged. Timezone handling follows
    the target: naive datetimes stay naive.

    Raises:
        ValueError: If *raw* cannot be represented as *python_type*.
    """
    if python_type is None or python_type is str or not isinstance(raw, str):
        return raw
    if python_type is bool:
        return _to_bool(raw)
    if python_type in (int, float, Decimal):
        return _to_number(raw, python_type)
    if python_type is datetime:
        return _to_datetime(raw)
    if python_type is date:
        return _to_date(raw)
    if python_type is uuid.UUID:
        return uuid.UUID(raw.strip())
    return raw


def coerce_like(raw: str, sample: Any) -> Any:
    """Convert *raw* to the type of *sample* (an actual field value)."""
    if sample is None:
        return raw
    python_type = type(sample)
    if isinstance(sample, bool):
        python_type = bool
    elif isinstance(sample, datetime):
        parsed = _to_datetime(raw)
        if sample.tzinfo is None and parsed.tzinfo is not None:
            return parsed.astimezone(timezone.utc).replace(tzinfo=None)
        if sample.tzinfo is not None and parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
    elif isinstance(sample, date):
        python_type = date
    elif isinstance(sample, int):
        python_type = int
    return coerce_param(raw, python_type)
