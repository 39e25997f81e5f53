"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, cast

from sqlalchemy import or_, select

from goldenlink.adapters.sqlalchemy.mappings import (
    golden_record_merge_table,
    golden_record_table,
    identifier_table,
    mdm_link_table,
)
from goldenlink.domain.model import (
    GoldenRecord,
    GoldenRecordMerge,
    Link,
    MatchResult,
    OwnerType,
    SourceRecord,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.orm import Session
    from sqlalchemy.sql import Select


class SqlAlchemyRecordRepository[TRecord: (SourceRecord, GoldenRecord)]:
    """Shared helpers for the two record tables."""

    def __init__(self, session: Session, record_cls: type[TRecord]) -> None:
        self.session = session
        self._record_cls = record_cls

    def add(self, entity: TRecord) -> None:
        self.session.add(entity)

    def get(self, record_id: uuid.UUID) -> TRecord | None:
        return self.session.get(self._record_cls, record_id)


class SqlAlchemySourceRecordRepository(SqlAlchemyRecordRepository[SourceRecord]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, SourceRecord)


class SqlAlchemyGoldenRecordRepository(SqlAlchemyRecordRepository[GoldenRecord]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, GoldenRecord)

    def find_by_identifier(self, system: str, value: str) -> Sequence[GoldenRecord]:
        owner_ids = (
            select(identifier_table.c.owner_id)
            .where(identifier_table.c.system == system)
            .where(identifier_table.c.value == value)
            .where(identifier_table.c.owner_type == OwnerType.GOLDEN_RECORD)
        )
        stmt = (
            select(GoldenRecord)
            .where(golden_record_table.c.id.in_(owner_ids))
            .order_by(golden_record_table.c.created_at, golden_record_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_tagged(self, system: str, code: str) -> Sequence[GoldenRecord]:
        # tags live in a JSON column; filter after loading
        stmt = select(GoldenRecord).order_by(
            golden_record_table.c.created_at, golden_record_table.c.id
        )
        goldens = self.session.execute(stmt).scalars()
        return [golden for golden in goldens if golden.has_tag(system, code)]

    def refresh(self, entity: GoldenRecord) -> None:
        self.session.refresh(entity)


class SqlAlchemyLinkRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Link) -> None:
        self.session.add(entity)

    def get_active(self, golden_id: uuid.UUID, source_id: uuid.UUID) -> Link | None:
        stmt = (
            select(Link)
            .where(mdm_link_table.c.golden_id == golden_id)
            .where(mdm_link_table.c.source_id == source_id)
            .where(mdm_link_table.c.match_result != MatchResult.REDIRECT)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def delete(self, link: Link) -> None:
        self.session.delete(link)
        # the pair index must be clear before a repointed link takes the slot
        self.session.flush()

    def for_golden(self, golden_id: uuid.UUID) -> Sequence[Link]:
        return self._ordered(select(Link).where(mdm_link_table.c.golden_id == golden_id))

    def for_source(self, source_id: uuid.UUID) -> Sequence[Link]:
        return self._ordered(select(Link).where(mdm_link_table.c.source_id == source_id))

    def redirects_from(self, golden_id: uuid.UUID) -> Sequence[Link]:
        return self._ordered(
            select(Link)
            .where(mdm_link_table.c.source_id == golden_id)
            .where(mdm_link_table.c.match_result == MatchResult.REDIRECT)
        )

    def _ordered(self, stmt: Select[tuple[Link]]) -> list[Link]:
        stmt = stmt.order_by(mdm_link_table.c.created_at, mdm_link_table.c.id)
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyMergeAuditRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: GoldenRecordMerge) -> None:
        self.session.add(entity)

    def for_record(self, record_id: uuid.UUID) -> Sequence[GoldenRecordMerge]:
        stmt = (
            select(GoldenRecordMerge)
            .where(
                or_(
                    golden_record_merge_table.c.from_id == record_id,
                    golden_record_merge_table.c.to_id == record_id,
                )
            )
            .order_by(golden_record_merge_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from goldenlink.domain.ports.persistence import (
        GoldenRecordRepository,
        LinkRepository,
        MergeAuditRepository,
        SourceRecordRepository,
    )

    _session_stub = cast("Session", object())
    _source_repo: SourceRecordRepository = SqlAlchemySourceRecordRepository(_session_stub)
    _golden_repo: GoldenRecordRepository = SqlAlchemyGoldenRecordRepository(_session_stub)
    _link_repo: LinkRepository = SqlAlchemyLinkRepository(_session_stub)
    _merge_repo: MergeAuditRepository = SqlAlchemyMergeAuditRepository(_session_stub)
