"""Containers: one filter/sort/page strategy per backend."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select

from .base import Container, ContainerFactory
from .http_query import HttpApiQuery
from .memory import InMemoryContainer, MemoryOperator, MemoryOperatorRegistry, build_memory_registry
from .remote import RemoteApiContainer, RemoteQuery
from .sqla import (
    SQLAlchemyContainer,
    SQLAlchemyOperator,
    SQLAlchemyOperatorRegistry,
    build_sqlalchemy_registry,
)


def build_default_factory() -> ContainerFactory:
    """
    Create a factory covering the built-in data sources.

    - ``sqlalchemy.Select`` -> :class:`SQLAlchemyContainer` (needs ``session=``)
    - ``list`` / ``tuple`` -> :class:`InMemoryContainer`
    - :class:`HttpApiQuery` -> :class:`RemoteApiContainer`

    Register further types (e.g. another ``RemoteQuery`` implementation)
    on the returned factory.
    """
    factory = ContainerFactory()
    factory.register(Select, SQLAlchemyContainer)
    factory.register(list, InMemoryContainer)
    factory.register(tuple, InMemoryContainer)
    factory.register(HttpApiQuery, RemoteApiContainer)
    return factory


def make_container(source: Any, **kwargs: Any) -> Container:
    """Wrap *source* using the default factory."""
    return build_default_factory().create(source, **kwargs)


__all__ = [
    "Container",
    "ContainerFactory",
    "HttpApiQuery",
    "InMemoryContainer",
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "RemoteApiContainer",
    "RemoteQuery",
    "SQLAlchemyContainer",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "build_default_factory",
    "build_memory_registry",
    "build_sqlalchemy_registry",
    "make_container",
]
