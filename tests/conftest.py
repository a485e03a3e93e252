"""Shared fixtures: a ten-message SMS data set, in memory and in SQLite."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from mason_collection import CollectionDefinition, FilterSpec

from .models import Base, Sms

BASE_TIME = datetime(2015, 4, 30, 10, 0)

# (content, scheduled?) for ids 1..10
SMS_ROWS: list[tuple[str, bool]] = [
    ("Hello world!", False),
    ("Hello world!", False),
    ("I love you", True),
    ("Love is all you need", False),
    ("Whatever, man", True),
    ("Let's rock", False),
    ("Sure, got it, lol", False),
    ("Vote for the president", True),
    ("See you tomorrow", False),
    ("Call me back", True),
]


def _sms_values() -> list[dict[str, Any]]:
    values = []
    for index, (content, scheduled) in enumerate(SMS_ROWS, start=1):
        created = BASE_TIME + timedelta(days=index)
        values.append(
            {
                "id": index,
                "content": content,
                "created": created,
                "scheduled": created + timedelta(hours=2) if scheduled else None,
            }
        )
    return values


@pytest.fixture
def sms_items() -> list[dict[str, Any]]:
    return _sms_values()


@pytest.fixture
def session() -> Iterator[Session]:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as db:
        db.add_all(Sms(**values) for values in _sms_values())
        db.commit()
        yield db
    engine.dispose()


@pytest.fixture
def sms_collection() -> CollectionDefinition:
    return CollectionDefinition(
        filters=["content", "created", "scheduled", FilterSpec("id", operators=["eq", "in"])],
        sorts=["created", "content", "id"],
        default_sort={"created": "desc"},
    )
