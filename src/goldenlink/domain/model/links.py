"""Links between source records (or former golden records) and golden records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .entity import Entity, utcnow
from .enums import LinkSource, MatchResult

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .enums import AssuranceLevel


@dataclass(eq=False, kw_only=True)
class Link(Entity):
    golden_id: UUID
    source_id: UUID
    match_result: MatchResult
    link_source: LinkSource
    assurance_level: AssuranceLevel | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_manual(self) -> bool:
        return self.link_source is LinkSource.MANUAL

    @property
    def is_redirect(self) -> bool:
        return self.match_result is MatchResult.REDIRECT

    def update(
        self,
        *,
        match_result: MatchResult,
        link_source: LinkSource,
        assurance_level: AssuranceLevel | None,
    ) -> bool:
        """Apply a new decision; return whether anything changed."""

        if (
            self.match_result is match_result
            and self.link_source is link_source
            and self.assurance_level is assurance_level
        ):
            return False
        self.match_result = match_result
        self.link_source = link_source
        self.assurance_level = assurance_level
        self.touch()
        return True

    def repoint(self, golden_id: UUID) -> None:
        self.golden_id = golden_id
        self.touch()

    def touch(self) -> None:
        self.updated_at = utcnow()
