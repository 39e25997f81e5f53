"""Attach one incoming source record to a golden record."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from goldenlink.domain.errors import StaleGoldenRecord
from goldenlink.domain.model import AssuranceLevel, LinkSource, MatchResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from goldenlink.domain.mdm.golden_records import GoldenRecordBuilder
    from goldenlink.domain.mdm.identifiers import IdentifierManager
    from goldenlink.domain.mdm.links import LinkManager
    from goldenlink.domain.mdm.person_adapters import PersonAdapter
    from goldenlink.domain.model import EnterpriseIdentifier, GoldenRecord, Link, SourceRecord
    from goldenlink.domain.ports import MdmRepositories

log = logging.getLogger(__name__)


@dataclass(slots=True)
class MatchOutcome:
    source: SourceRecord
    golden: GoldenRecord | None = None
    link: Link | None = None
    created_golden: bool = False
    possible_duplicates: list[GoldenRecord] = field(default_factory=list["GoldenRecord"])

    @property
    def matched(self) -> bool:
        return self.link is not None


class SourceRecordMatcher:
    """Resolve a source record by enterprise identifier.

    A source that already has a MATCH link keeps it and refreshes its golden
    record. Otherwise the first managed golden record with the same external
    EID is linked; with no such record a new golden record is created.
    """

    def __init__(
        self,
        repositories: MdmRepositories,
        *,
        identifiers: IdentifierManager,
        builder: GoldenRecordBuilder,
        links: LinkManager,
        adapter: PersonAdapter,
    ) -> None:
        self._repositories = repositories
        self._identifiers = identifiers
        self._builder = builder
        self._links = links
        self._adapter = adapter

    def handle(
        self,
        incoming: SourceRecord,
        *,
        lock_golden: Callable[[UUID], None] | None = None,
    ) -> MatchOutcome:
        """Match ``incoming``; ``lock_golden`` is called before an existing golden is touched."""

        if not incoming.active:
            source = self._store(incoming)
            log.info("Skipping inactive %s", source.reference)
            return MatchOutcome(source=source)

        golden = self._current_golden(incoming)
        if golden is not None:
            self._claim(golden, lock_golden)
            source = self._store(incoming)
            self._builder.refresh_from_source(golden, source)
            return MatchOutcome(
                source=source,
                golden=golden,
                link=self._repositories.links.get_active(golden.id, source.id),
            )

        eid = self._identifiers.resolve_external_eid(incoming)
        candidates = self._eid_candidates(eid, incoming) if eid is not None else []
        if candidates:
            golden, *others = candidates
            self._claim(golden, lock_golden)
            source = self._store(incoming)
            self._builder.refresh_from_source(golden, source)
            outcome = MatchOutcome(source=source, golden=golden, possible_duplicates=others)
            outcome.link = self._links.upsert(
                golden,
                source,
                MatchResult.MATCH,
                LinkSource.AUTO,
                AssuranceLevel.LEVEL4,
            )
            if others:
                log.warning(
                    "%s shares EID %s with %d further golden records",
                    source.reference,
                    eid,
                    len(others),
                )
            return outcome

        source = self._store(incoming)
        golden = self._builder.build_from_source(source)
        self._repositories.golden_records.add(golden)
        outcome = MatchOutcome(source=source, golden=golden, created_golden=True)
        outcome.link = self._links.upsert(golden, source, MatchResult.MATCH, LinkSource.AUTO)
        return outcome

    def _claim(self, golden: GoldenRecord, lock_golden: Callable[[UUID], None] | None) -> None:
        if lock_golden is None:
            return
        lock_golden(golden.id)
        self._repositories.golden_records.refresh(golden)
        if golden.is_redirected or not golden.active:
            raise StaleGoldenRecord(golden.reference)

    def _store(self, incoming: SourceRecord) -> SourceRecord:
        stored = self._repositories.source_records.get(incoming.id)
        if stored is None:
            self._repositories.source_records.add(incoming)
            return incoming
        if stored is not incoming:
            stored.refresh_from(incoming)
        return stored

    def _current_golden(self, source: SourceRecord) -> GoldenRecord | None:
        golden_id = self._links.matched_golden_for(source)
        if golden_id is None:
            return None
        golden = self._repositories.golden_records.get(golden_id)
        if golden is None or not golden.active:
            return None
        return golden

    def _eid_candidates(
        self,
        eid: EnterpriseIdentifier,
        source: SourceRecord,
    ) -> list[GoldenRecord]:
        candidates: list[GoldenRecord] = []
        for golden in self._matching_eid(eid):
            if not golden.active or not self._adapter.is_managed(golden):
                continue
            existing = self._repositories.links.get_active(golden.id, source.id)
            if existing is not None and (
                existing.is_manual or existing.match_result is MatchResult.NO_MATCH
            ):
                continue
            candidates.append(golden)
        return candidates

    def _matching_eid(self, eid: EnterpriseIdentifier) -> Sequence[GoldenRecord]:
        return self._repositories.golden_records.find_by_identifier(eid.system, eid.value)
