"""Ports for persisting MDM aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from goldenlink.domain.model import GoldenRecord, GoldenRecordMerge, Link, SourceRecord


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class RecordRepository[TRecord](Repository[TRecord], Protocol):
    def get(self, record_id: UUID) -> TRecord | None: ...


@runtime_checkable
class SourceRecordRepository(RecordRepository["SourceRecord"], Protocol):
    """Read access to upstream records; the engine only flips their active flag."""


@runtime_checkable
class GoldenRecordRepository(RecordRepository["GoldenRecord"], Protocol):
    """Persistence contract for golden records."""

    def find_by_identifier(self, system: str, value: str) -> Sequence[GoldenRecord]: ...

    def list_tagged(self, system: str, code: str) -> Sequence[GoldenRecord]: ...

    def refresh(self, entity: GoldenRecord) -> None:
        """Reload ``entity`` from the store, dropping state read before a lock was taken."""
        ...


@runtime_checkable
class LinkRepository(Repository["Link"], Protocol):
    """Persistence contract for the link graph; queries return links oldest first."""

    def get_active(self, golden_id: UUID, source_id: UUID) -> Link | None: ...

    def delete(self, link: Link) -> None: ...

    def for_golden(self, golden_id: UUID) -> Sequence[Link]: ...

    def for_source(self, source_id: UUID) -> Sequence[Link]: ...

    def redirects_from(self, golden_id: UUID) -> Sequence[Link]: ...


@runtime_checkable
class MergeAuditRepository(Repository["GoldenRecordMerge"], Protocol):
    def for_record(self, record_id: UUID) -> Sequence[GoldenRecordMerge]: ...
