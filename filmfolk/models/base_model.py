"""
Shared SQLAlchemy base and mixins for the FilmFolk API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps (UTC)
- SoftDeleteMixin for rows that must stay in place once removed
  (comment threads keep their replies attached)

Persistence is not done from the model itself: callers go through the
DBStorage instance the app factory constructs and hands down.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func


# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.

    Timestamps get a Python-side default so they are populated right after
    flush, and a server default for rows inserted outside the ORM.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id}) {self.__dict__}"


class SoftDeleteMixin:
    """
    Adds a deleted_at timestamp. Soft-deleted rows stay queryable so that
    relations hanging off them (e.g. replies to a comment) survive.
    The caller commits through DBStorage.
    """

    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self):
        self.deleted_at = utcnow()
