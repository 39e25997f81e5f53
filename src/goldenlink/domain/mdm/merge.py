"""Fold one golden record into another.

A merge is planned against detached snapshots of the two records and their
links, checked, and only then applied. Nothing is mutated until the plan has
been verified, so a failed check leaves both records untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from goldenlink.domain.errors import (
    InvalidRequest,
    InvariantViolation,
    ResourceNotFound,
    ValidationError,
)
from goldenlink.domain.model import (
    GoldenRecordMerge,
    IdentifierUse,
    LinkSource,
    parse_record_id,
)

if TYPE_CHECKING:
    from goldenlink.domain.mdm.identifiers import IdentifierManager
    from goldenlink.domain.mdm.links import LinkManager
    from goldenlink.domain.mdm.person_adapters import PersonAdapter
    from goldenlink.domain.model import GoldenRecord, Link
    from goldenlink.domain.ports import AuditSink, MdmRepositories

log = logging.getLogger(__name__)

type GoldenId = UUID | str


def _same_id(a: GoldenId, b: GoldenId) -> bool:
    parsed_a, parsed_b = parse_record_id(a), parse_record_id(b)
    if parsed_a is not None and parsed_b is not None:
        return parsed_a == parsed_b
    return str(a).strip() == str(b).strip()


@dataclass(frozen=True, slots=True)
class PlannedLink:
    link: Link
    source_reference: str


@dataclass(frozen=True, slots=True)
class PlannedIdentifier:
    system: str
    value: str
    use: IdentifierUse


@dataclass(slots=True)
class MergePlan:
    """Everything a merge will change, computed before anything is written."""

    from_golden: GoldenRecord
    to_golden: GoldenRecord
    repoint: list[PlannedLink] = field(default_factory=list["PlannedLink"])
    superseded: list[PlannedLink] = field(default_factory=list["PlannedLink"])
    identifiers: list[PlannedIdentifier] = field(default_factory=list["PlannedIdentifier"])


def _authority(link: Link) -> tuple[int, int]:
    manual = 1 if link.link_source is LinkSource.MANUAL else 0
    rank = link.assurance_level.rank if link.assurance_level is not None else 0
    return (manual, rank)


class MergeEngine:
    def __init__(
        self,
        repositories: MdmRepositories,
        *,
        identifiers: IdentifierManager,
        adapter: PersonAdapter,
        links: LinkManager,
        audit: AuditSink,
    ) -> None:
        self._repositories = repositories
        self._identifiers = identifiers
        self._adapter = adapter
        self._links = links
        self._audit = audit

    def merge(
        self,
        from_id: GoldenId | None,
        to_id: GoldenId | None,
        *,
        created_by: str | None = None,
    ) -> GoldenRecord:
        """Merge ``from_id`` into ``to_id`` and return the surviving golden record."""

        if from_id is None:
            raise ValidationError("fromGoldenResourceId cannot be null")
        if to_id is None:
            raise ValidationError("toGoldenResourceId cannot be null")
        if _same_id(from_id, to_id):
            raise ValidationError("fromPersonId must be different from toPersonId")

        from_golden = self._load(from_id)
        to_golden = self._load(to_id)
        self._require_mergeable(from_golden)
        self._require_mergeable(to_golden)

        plan = self.plan(from_golden, to_golden)
        self._verify(plan)
        return self._apply(plan, created_by=created_by)

    def plan(self, from_golden: GoldenRecord, to_golden: GoldenRecord) -> MergePlan:
        plan = MergePlan(from_golden=from_golden, to_golden=to_golden)
        repo = self._repositories.links

        for link in repo.for_golden(from_golden.id):
            if not link.match_result.is_positive:
                continue
            if link.source_id == to_golden.id:
                # the survivor cannot be linked to itself
                plan.superseded.append(PlannedLink(link, to_golden.reference))
                continue
            reference = self._source_reference(link)
            competing = repo.get_active(to_golden.id, link.source_id)
            if competing is None:
                plan.repoint.append(PlannedLink(link, reference))
            elif _authority(link) > _authority(competing):
                plan.superseded.append(PlannedLink(competing, reference))
                plan.repoint.append(PlannedLink(link, reference))
            else:
                plan.superseded.append(PlannedLink(link, reference))

        external = self._identifiers.resolve_external_eid(to_golden)
        for identifier in from_golden.identifiers:
            if to_golden.has_identifier(identifier.system, identifier.value):
                continue
            use = identifier.use
            is_eid = identifier.system == self._identifiers.enterprise_system
            if is_eid and use is not IdentifierUse.OLD:
                if external is None:
                    external = self._identifiers.resolve_external_eid(from_golden)
                else:
                    use = IdentifierUse.OLD
            plan.identifiers.append(PlannedIdentifier(identifier.system, identifier.value, use))
        return plan

    def _verify(self, plan: MergePlan) -> None:
        superseded = {planned.link.id for planned in plan.superseded}
        repointed = {planned.link.id for planned in plan.repoint}
        if superseded & repointed:
            raise InvariantViolation("a link cannot be both repointed and removed by one merge")

        remaining = [
            link
            for link in self._repositories.links.for_golden(plan.from_golden.id)
            if link.match_result.is_positive and link.id not in superseded | repointed
        ]
        if remaining:
            raise InvariantViolation(
                f"{len(remaining)} links would still point at {plan.from_golden.reference}"
            )
        if self._repositories.links.redirects_from(plan.from_golden.id):
            raise InvariantViolation(f"{plan.from_golden.reference} already has a REDIRECT link")

        sources = [planned.link.source_id for planned in plan.repoint]
        if len(sources) != len(set(sources)):
            raise InvariantViolation(
                f"merge would leave two links per source on {plan.to_golden.reference}"
            )

        officials = [
            planned
            for planned in plan.identifiers
            if planned.system == self._identifiers.enterprise_system
            and planned.use is not IdentifierUse.OLD
        ]
        survivor_has_external = self._identifiers.resolve_external_eid(plan.to_golden) is not None
        if len(officials) + int(survivor_has_external) > 1:
            raise InvariantViolation(
                f"{plan.to_golden.reference} would carry more than one external EID"
            )

    def _apply(self, plan: MergePlan, *, created_by: str | None) -> GoldenRecord:
        from_golden, to_golden = plan.from_golden, plan.to_golden

        # drop the losers first so repointed links never share a pair with them
        for planned in plan.superseded:
            owner = to_golden if planned.link.golden_id == to_golden.id else from_golden
            self._links.discard(planned.link, owner, source_reference=planned.source_reference)
        for planned in plan.repoint:
            self._links.repoint(
                planned.link,
                from_golden,
                to_golden,
                source_reference=planned.source_reference,
            )

        self._links.record_redirect(from_golden, to_golden)

        for planned in plan.identifiers:
            to_golden.add_identifier(planned.system, planned.value, use=planned.use)

        for person_link in from_golden.person_links:
            self._adapter.add_or_update_link(to_golden, person_link.target, person_link.assurance)
        from_golden.replace_person_links(())
        from_golden.redirect_to(to_golden)
        to_golden.touch()

        self._repositories.merges.add(
            GoldenRecordMerge(
                from_id=from_golden.id,
                to_id=to_golden.id,
                repointed_links=len(plan.repoint),
                copied_identifiers=len(plan.identifiers),
                created_by=created_by,
            )
        )
        self._audit.append(
            f"Merged {from_golden.reference} into {to_golden.reference}: "
            f"{len(plan.repoint)} links repointed, {len(plan.superseded)} superseded, "
            f"{len(plan.identifiers)} identifiers copied"
        )
        log.info("Merged %s into %s", from_golden.reference, to_golden.reference)
        return to_golden

    def _load(self, golden_id: GoldenId) -> GoldenRecord:
        parsed = parse_record_id(golden_id)
        golden = self._repositories.golden_records.get(parsed) if parsed is not None else None
        if golden is None:
            raise ResourceNotFound(golden_id)
        return golden

    def _require_mergeable(self, golden: GoldenRecord) -> None:
        if not self._adapter.is_managed(golden):
            raise InvalidRequest(
                "Only MDM managed resources can be merged. "
                "MDM managed resources must have the HAPI-MDM tag."
            )
        if golden.is_redirected:
            raise InvalidRequest(
                f"{golden.reference} has already been merged into {golden.redirect_id}"
            )
        if not golden.active:
            raise InvalidRequest(f"{golden.reference} is inactive and cannot be merged")

    def _source_reference(self, link: Link) -> str:
        source = self._repositories.source_records.get(link.source_id)
        if source is None:
            raise InvariantViolation(
                f"Link {link.id} points at unknown source record {link.source_id}"
            )
        return source.reference

