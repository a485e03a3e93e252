"""Bracket-notation query strings (``filters[content][]=contains:foo``).

``parse_query_string`` turns a raw query string into the nested map the
collection reads; ``build_query_string`` is its inverse and is used to
build pagination links.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

_BRACKET_RE = re.compile(r"\[([^\[\]]*)\]")


def _split_key(key: str) -> list[str]:
    """``"a[b][]"`` -> ``["a", "b", ""]``; malformed keys stay literal."""
    head, bracket, rest = key.partition("[")
    if not bracket or not head:
        return [key]
    remainder = bracket + rest
    parts = [head]
    pos = 0
    for match in _BRACKET_RE.finditer(remainder):
        if match.start() != pos:
            return [key]
        parts.append(match.group(1))
        pos = match.end()
    if pos != len(remainder):
        return [key]
    return parts


def _assign(node: dict[str, Any], parts: list[str], value: str) -> None:
    key = parts[0]
    if len(parts) == 1:
        node[key] = value
        return
    if parts[1] == "":
        existing = node.get(key)
        if not isinstance(existing, list):
            existing = []
            node[key] = existing
        if len(parts) == 2:
            existing.append(value)
        else:
            child: dict[str, Any] = {}
            existing.append(child)
            _assign(child, parts[2:], value)
        return
    nested = node.get(key)
    if not isinstance(nested, dict):
        nested = {}
        node[key] = nested
    _assign(nested, parts[1:], value)


def nest_query_params(pairs: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Fold ``(key, value)`` pairs into nested dicts and lists.

    Repeated plain keys keep the last value; ``[]`` suffixes collect lists.
    """
    result: dict[str, Any] = {}
    for key, value in pairs:
        _assign(result, _split_key(key), value)
    return result


def parse_query_string(query: str) -> dict[str, Any]:
    return nest_query_params(parse_qsl(query.lstrip("?"), keep_blank_values=True))


def _flatten_value(name: str, value: Any) -> list[tuple[str, str]]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return flatten_query_params(value, prefix=name)
    if isinstance(value, (list, tuple)):
        pairs: list[tuple[str, str]] = []
        for item in value:
            pairs.extend(_flatten_value(f"{name}[]", item))
        return pairs
    if isinstance(value, bool):
        return [(name, "1" if value else "0")]
    return [(name, str(value))]


def flatten_query_params(
    params: Mapping[str, Any],
    prefix: str | None = None,
) -> list[tuple[str, str]]:
    """Inverse of :func:`nest_query_params`."""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        pairs.extend(_flatten_value(name, value))
    return pairs


def build_query_string(params: Mapping[str, Any]) -> str:
    return urlencode(flatten_query_params(params))


def build_url(base_url: str, params: Mapping[str, Any], **overrides: Any) -> str:
    """Append *params* (with *overrides* replacing top-level keys) to *base_url*."""
    query = build_query_string({**params, **overrides})
    if not query:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"
