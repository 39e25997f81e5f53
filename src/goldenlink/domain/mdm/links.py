"""Link graph ownership and the link state machine.

Per (source, golden) pair: NO_LINK -> {MATCH | POSSIBLE_MATCH | NO_MATCH}.
REDIRECT links are only written while merging golden records.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from goldenlink.domain.errors import (
    InvalidRequest,
    ManualOverrideProtected,
    ResourceNotFound,
    ValidationError,
)
from goldenlink.domain.model import AssuranceLevel, Link, LinkSource, MatchResult

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from goldenlink.domain.mdm.person_adapters import PersonAdapter
    from goldenlink.domain.model import GoldenRecord, PersonRecord
    from goldenlink.domain.ports import AuditSink, LinkRepository

log = logging.getLogger(__name__)

_AUTO_LEVELS: dict[MatchResult, AssuranceLevel] = {
    MatchResult.MATCH: AssuranceLevel.LEVEL2,
    MatchResult.POSSIBLE_MATCH: AssuranceLevel.LEVEL1,
}
_MANUAL_LEVELS: dict[MatchResult, AssuranceLevel] = {
    MatchResult.MATCH: AssuranceLevel.LEVEL3,
    MatchResult.POSSIBLE_MATCH: AssuranceLevel.LEVEL2,
}


def default_assurance_level(
    match_result: MatchResult,
    link_source: LinkSource,
) -> AssuranceLevel | None:
    """Assurance implied by a decision; NO_MATCH and REDIRECT carry none."""

    levels = _MANUAL_LEVELS if link_source is LinkSource.MANUAL else _AUTO_LEVELS
    return levels.get(match_result)


def _level_name(level: AssuranceLevel | None) -> str:
    return level.name if level is not None else "NONE"


class LinkManager:
    def __init__(
        self,
        links: LinkRepository,
        adapter: PersonAdapter,
        audit: AuditSink,
    ) -> None:
        self._links = links
        self._adapter = adapter
        self._audit = audit

    def upsert(
        self,
        golden: GoldenRecord,
        source: PersonRecord,
        match_result: MatchResult,
        link_source: LinkSource,
        assurance_level: AssuranceLevel | None = None,
    ) -> Link:
        """Create or update the link between ``source`` and ``golden``.

        A MANUAL link is only overwritten by another MANUAL write. Without an
        explicit ``assurance_level`` a positive link keeps the higher of its
        stored and implied level; lowering it goes through
        :meth:`set_assurance_level`.
        """

        if match_result is MatchResult.REDIRECT:
            raise ValidationError("REDIRECT links can only be created by merging golden records")
        self._require_link_target(golden)
        if source.id == golden.id:
            raise ValidationError(f"{golden.reference} cannot be linked to itself")

        level = assurance_level
        if level is None:
            level = default_assurance_level(match_result, link_source)

        existing = self._links.get_active(golden.id, source.id)
        if existing is None:
            link = Link(
                golden_id=golden.id,
                source_id=source.id,
                match_result=match_result,
                link_source=link_source,
                assurance_level=level,
            )
            self._links.add(link)
            self._audit.append(
                f"Creating new link from {golden.reference} -> {source.reference} "
                f"with MatchResult: {match_result} and IdentityAssuranceLevel: {_level_name(level)}"
            )
            self._sync_person_link(golden, source, link)
            return link

        if existing.is_manual and link_source is LinkSource.AUTO:
            raise ManualOverrideProtected(golden.reference, source.reference)

        if (
            assurance_level is None
            and match_result.is_positive
            and existing.assurance_level is not None
            and existing.assurance_level.outranks(level)
        ):
            log.debug(
                "Keeping %s on %s -> %s; assurance is never lowered implicitly",
                existing.assurance_level.name,
                golden.reference,
                source.reference,
            )
            level = existing.assurance_level

        before_result, before_level = existing.match_result, existing.assurance_level
        if not existing.update(
            match_result=match_result,
            link_source=link_source,
            assurance_level=level,
        ):
            return existing
        self._audit.append(
            f"Updating link from {golden.reference} -> {source.reference}. "
            f"Changing MatchResult: {before_result} -> {match_result}. "
            f"Changing IdentityAssuranceLevel: {_level_name(before_level)} -> {_level_name(level)}"
        )
        self._sync_person_link(golden, source, existing)
        return existing

    def set_assurance_level(
        self,
        golden: GoldenRecord,
        source: PersonRecord,
        level: AssuranceLevel,
    ) -> Link:
        """Explicitly change a link's assurance level; the only way to lower it."""

        link = self._links.get_active(golden.id, source.id)
        if link is None:
            raise ResourceNotFound(f"Link {golden.reference} -> {source.reference}")
        if not link.match_result.is_positive:
            raise ValidationError(
                f"{link.match_result} link {golden.reference} -> {source.reference} "
                "carries no assurance level"
            )
        before = link.assurance_level
        if before is level:
            return link
        link.update(
            match_result=link.match_result,
            link_source=link.link_source,
            assurance_level=level,
        )
        verb = "Downgrading" if before is not None and before.outranks(level) else "Changing"
        self._audit.append(
            f"{verb} IdentityAssuranceLevel of link {golden.reference} -> {source.reference}: "
            f"{_level_name(before)} -> {_level_name(level)}"
        )
        self._adapter.add_or_update_link(golden, source.reference, level)
        return link

    def remove(self, golden: GoldenRecord, source: PersonRecord) -> bool:
        """Delete the link if present; return whether one was removed."""

        link = self._links.get_active(golden.id, source.id)
        if link is None:
            return False
        self._delete(link, golden.reference, source.reference)
        self._adapter.remove_link(golden, source.reference)
        return True

    def links_for_golden(self, golden: GoldenRecord) -> Sequence[Link]:
        return self._links.for_golden(golden.id)

    def links_for_source(self, source: PersonRecord) -> Sequence[Link]:
        return self._links.for_source(source.id)

    def matched_golden_for(self, source: PersonRecord) -> UUID | None:
        """Golden id of the source's MATCH link, if it has one."""

        for link in self._links.for_source(source.id):
            if link.match_result is MatchResult.MATCH:
                return link.golden_id
        return None

    # Merge-only transitions ------------------------------------------------------

    def repoint(
        self,
        link: Link,
        from_golden: GoldenRecord,
        to_golden: GoldenRecord,
        *,
        source_reference: str,
    ) -> None:
        """Move a positive link onto ``to_golden``, keeping its source and assurance."""

        link.repoint(to_golden.id)
        self._adapter.remove_link(from_golden, source_reference)
        self._adapter.add_or_update_link(to_golden, source_reference, link.assurance_level)
        self._audit.append(
            f"Repointing link {from_golden.reference} -> {source_reference} "
            f"to {to_golden.reference} ({link.match_result}, {link.link_source}, "
            f"IdentityAssuranceLevel: {_level_name(link.assurance_level)})"
        )

    def discard(self, link: Link, golden: GoldenRecord, *, source_reference: str) -> None:
        """Delete a link superseded during a merge."""

        self._delete(link, golden.reference, source_reference)
        self._adapter.remove_link(golden, source_reference)

    def record_redirect(self, from_golden: GoldenRecord, to_golden: GoldenRecord) -> Link:
        link = Link(
            golden_id=to_golden.id,
            source_id=from_golden.id,
            match_result=MatchResult.REDIRECT,
            link_source=LinkSource.MANUAL,
        )
        self._links.add(link)
        self._audit.append(
            f"Creating REDIRECT link from {from_golden.reference} -> {to_golden.reference}"
        )
        return link

    # helpers ---------------------------------------------------------------------

    def _delete(self, link: Link, golden_reference: str, source_reference: str) -> None:
        self._links.delete(link)
        self._audit.append(
            f"Removing link from {golden_reference} -> {source_reference}"
        )

    def _sync_person_link(self, golden: GoldenRecord, source: PersonRecord, link: Link) -> None:
        if link.match_result.is_positive:
            self._adapter.add_or_update_link(golden, source.reference, link.assurance_level)
        else:
            self._adapter.remove_link(golden, source.reference)

    @staticmethod
    def _require_link_target(golden: GoldenRecord) -> None:
        if golden.is_redirected or not golden.active:
            target = f" (merged into {golden.redirect_id})" if golden.redirect_id else ""
            raise InvalidRequest(
                f"{golden.reference} is inactive{target} and is not a valid link target"
            )

