#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the auth models.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps (UTC)

Persistence goes through CredentialStore; models never reach for a session
themselves.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.types import TypeDecorator
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def new_id() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite has no timezone storage and hands values back naive; those are
    stored as UTC, so the zone is re-attached on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models: id and created_at.

    Timestamps get a Python-side default so they are populated on the
    instance right after flush, plus a server default for rows written
    outside the ORM.
    """

    id = Column(String(36), primary_key=True, default=new_id, nullable=False)
    created_at = Column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = new_id()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"


class TimestampMixin:
    """Adds updated_at, bumped on every ORM update."""

    updated_at = Column(
        UTCDateTime(),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
