"""Audit records for merge decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .entity import Entity, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class GoldenRecordMerge(Entity):
    """Audit record for folding one golden record into its surviving counterpart."""

    from_id: UUID
    to_id: UUID
    repointed_links: int = 0
    copied_identifiers: int = 0
    created_at: datetime = field(default_factory=utcnow)
    created_by: str | None = None
