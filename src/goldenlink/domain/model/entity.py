"""
Base building blocks:
identity and timestamps shared by every persisted domain object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


def new_id() -> UUID:
    return uuid4()


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)


def parse_record_id(value: UUID | str) -> UUID | None:
    """Accept a UUID, its string form, or a ``Kind/<uuid>`` reference."""

    if isinstance(value, UUID):
        return value
    try:
        return UUID(value.strip().rsplit("/", 1)[-1])
    except ValueError:
        return None
