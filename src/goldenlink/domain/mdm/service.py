"""Caller-facing MDM operations.

Each operation runs in its own unit of work under the keyed locks it needs.
A source key is always taken before any golden record id, and golden record
ids in ascending order, so operations touching the same records serialise.
Audit messages are collected while the operation runs and only reach the
audit sink once the unit of work has committed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from goldenlink.domain.errors import ResourceNotFound, StaleGoldenRecord
from goldenlink.domain.mdm.audit import LoggingAuditSink, TransactionLog
from goldenlink.domain.mdm.duplicates import DuplicateDetector
from goldenlink.domain.mdm.golden_records import GoldenRecordBuilder
from goldenlink.domain.mdm.identifiers import IdentifierManager
from goldenlink.domain.mdm.links import LinkManager
from goldenlink.domain.mdm.locking import KeyedLocks
from goldenlink.domain.mdm.matching import SourceRecordMatcher
from goldenlink.domain.mdm.merge import MergeEngine
from goldenlink.domain.mdm.person_adapters import person_adapter_for
from goldenlink.domain.model import parse_record_id
from goldenlink.domain.ports import MdmUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterator
    from uuid import UUID

    from goldenlink.config import MdmConfig
    from goldenlink.domain.mdm.duplicates import DuplicateCandidate, SimilarityScorer
    from goldenlink.domain.mdm.matching import MatchOutcome
    from goldenlink.domain.mdm.person_adapters import PersonAdapter
    from goldenlink.domain.model import (
        AssuranceLevel,
        GoldenRecord,
        GoldenRecordMerge,
        Link,
        LinkSource,
        MatchResult,
        SourceRecord,
    )
    from goldenlink.domain.ports import AuditSink, MdmRepositories

type RecordId = UUID | str

UnitOfWorkFactory = Callable[[], MdmUnitOfWork]

log = logging.getLogger(__name__)

_INGEST_ATTEMPTS = 3


@dataclass(slots=True)
class _Operation:
    """Components wired to one unit of work's repositories."""

    repositories: MdmRepositories
    journal: TransactionLog
    links: LinkManager
    merge: MergeEngine
    matcher: SourceRecordMatcher


class MdmService:
    def __init__(
        self,
        config: MdmConfig,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        audit_sink: AuditSink | None = None,
        locks: KeyedLocks | None = None,
        scorer: SimilarityScorer | None = None,
    ) -> None:
        self._config = config
        self._unit_of_work_factory = unit_of_work_factory
        self._audit_sink = audit_sink or LoggingAuditSink()
        self._locks = locks or KeyedLocks()
        self._adapter: PersonAdapter = person_adapter_for(config)
        self._identifiers = IdentifierManager(config)
        self._builder = GoldenRecordBuilder(self._identifiers, self._adapter)
        self._detector = DuplicateDetector(
            self._identifiers,
            scorer=scorer,
            threshold=config.duplicate_score_threshold,
        )

    @property
    def identifiers(self) -> IdentifierManager:
        return self._identifiers

    @property
    def builder(self) -> GoldenRecordBuilder:
        return self._builder

    @property
    def detector(self) -> DuplicateDetector:
        return self._detector

    # writes ----------------------------------------------------------------------

    def merge(
        self,
        from_id: RecordId | None,
        to_id: RecordId | None,
        *,
        created_by: str | None = None,
    ) -> GoldenRecord:
        keys = [_lock_key(value) for value in (from_id, to_id) if value is not None]
        with self._locks.hold(*keys), self._operation() as operation:
            return operation.merge.merge(from_id, to_id, created_by=created_by)

    def upsert_link(
        self,
        golden_id: RecordId,
        source_id: RecordId,
        match_result: MatchResult,
        link_source: LinkSource,
        assurance_level: AssuranceLevel | None = None,
    ) -> Link:
        golden_uuid, source_uuid = _require_id(golden_id), _require_id(source_id)
        with self._link_scope(source_uuid, golden_uuid) as operation:
            golden = _load_golden(operation.repositories, golden_uuid)
            source = _load_source(operation.repositories, source_uuid)
            return operation.links.upsert(
                golden, source, match_result, link_source, assurance_level
            )

    def remove_link(self, golden_id: RecordId, source_id: RecordId) -> bool:
        golden_uuid, source_uuid = _require_id(golden_id), _require_id(source_id)
        with self._link_scope(source_uuid, golden_uuid) as operation:
            golden = _load_golden(operation.repositories, golden_uuid)
            source = _load_source(operation.repositories, source_uuid)
            return operation.links.remove(golden, source)

    def set_assurance_level(
        self,
        golden_id: RecordId,
        source_id: RecordId,
        level: AssuranceLevel,
    ) -> Link:
        golden_uuid, source_uuid = _require_id(golden_id), _require_id(source_id)
        with self._link_scope(source_uuid, golden_uuid) as operation:
            golden = _load_golden(operation.repositories, golden_uuid)
            source = _load_source(operation.repositories, source_uuid)
            return operation.links.set_assurance_level(golden, source, level)

    def ingest_source_record(self, source: SourceRecord) -> MatchOutcome:
        with self._locks.hold(_source_key(source.id)):
            outcome = self._ingest_locked(source)
        log.info(
            "Ingested %s: golden=%s created=%s",
            outcome.source.reference,
            outcome.golden.reference if outcome.golden is not None else None,
            outcome.created_golden,
        )
        return outcome

    # reads -----------------------------------------------------------------------

    def flags_as_conflicting(self, a_id: RecordId, b_id: RecordId) -> bool:
        with self._unit_of_work_factory() as uow:
            a = _load_golden(uow.repositories, _require_id(a_id))
            b = _load_golden(uow.repositories, _require_id(b_id))
            return self._detector.flags_as_conflicting(a, b)

    def review_duplicates(self, golden_id: RecordId) -> list[DuplicateCandidate]:
        with self._unit_of_work_factory() as uow:
            golden = _load_golden(uow.repositories, _require_id(golden_id))
            others = uow.repositories.golden_records.list_tagged(
                self._config.managed_tag_system, self._config.managed_tag_code
            )
            return self._detector.review_candidates(golden, others)

    def get_golden_record(self, golden_id: RecordId) -> GoldenRecord:
        with self._unit_of_work_factory() as uow:
            return _load_golden(uow.repositories, _require_id(golden_id))

    def links_for_golden(self, golden_id: RecordId) -> list[Link]:
        with self._unit_of_work_factory() as uow:
            golden = _load_golden(uow.repositories, _require_id(golden_id))
            return list(uow.repositories.links.for_golden(golden.id))

    def links_for_source(self, source_id: RecordId) -> list[Link]:
        with self._unit_of_work_factory() as uow:
            source = _load_source(uow.repositories, _require_id(source_id))
            return list(uow.repositories.links.for_source(source.id))

    def merge_history(self, golden_id: RecordId) -> list[GoldenRecordMerge]:
        with self._unit_of_work_factory() as uow:
            return list(uow.repositories.merges.for_record(_require_id(golden_id)))

    # internals -------------------------------------------------------------------

    def _ingest_locked(self, source: SourceRecord) -> MatchOutcome:
        attempt = 1
        while True:
            try:
                with ExitStack() as held, self._operation() as operation:
                    lock_golden = partial(self._hold_until_exit, held)
                    return operation.matcher.handle(source, lock_golden=lock_golden)
            except StaleGoldenRecord as exc:
                if attempt >= _INGEST_ATTEMPTS:
                    raise
                attempt += 1
                log.info("Retrying ingest of %s: %s", source.reference, exc)

    def _hold_until_exit(self, stack: ExitStack, key: Hashable) -> None:
        stack.enter_context(self._locks.hold(key))

    @contextmanager
    def _link_scope(self, source_id: UUID, golden_id: UUID) -> Iterator[_Operation]:
        # source key first, then the golden id: the order ingest takes them in
        with self._locks.hold(_source_key(source_id)), self._locks.hold(golden_id):
            with self._operation() as operation:
                yield operation

    @contextmanager
    def _operation(self) -> Iterator[_Operation]:
        journal = TransactionLog()
        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            links = LinkManager(repositories.links, self._adapter, journal)
            yield _Operation(
                repositories=repositories,
                journal=journal,
                links=links,
                merge=MergeEngine(
                    repositories,
                    identifiers=self._identifiers,
                    adapter=self._adapter,
                    links=links,
                    audit=journal,
                ),
                matcher=SourceRecordMatcher(
                    repositories,
                    identifiers=self._identifiers,
                    builder=self._builder,
                    links=links,
                    adapter=self._adapter,
                ),
            )
            uow.commit()
        journal.flush_into(self._audit_sink)


def _source_key(source_id: UUID) -> Hashable:
    return ("source", source_id)


def _lock_key(value: RecordId) -> Hashable:
    return parse_record_id(value) or str(value)


def _require_id(value: RecordId) -> UUID:
    parsed = parse_record_id(value)
    if parsed is None:
        raise ResourceNotFound(value)
    return parsed


def _load_golden(repositories: MdmRepositories, golden_id: UUID) -> GoldenRecord:
    golden = repositories.golden_records.get(golden_id)
    if golden is None:
        raise ResourceNotFound(golden_id)
    return golden


def _load_source(repositories: MdmRepositories, source_id: UUID) -> SourceRecord:
    source = repositories.source_records.get(source_id)
    if source is None:
        raise ResourceNotFound(source_id)
    return source
