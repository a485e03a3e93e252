"""ORM model for the SQLite-backed tests."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Sms(Base):
    __tablename__ = "sms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(String(160))
    created: Mapped[datetime] = mapped_column(DateTime)
    scheduled: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
