"""Domain port definitions for adapters."""

from __future__ import annotations

from .audit import AuditSink
from .persistence import (
    GoldenRecordRepository,
    LinkRepository,
    MergeAuditRepository,
    RecordRepository,
    Repository,
    SourceRecordRepository,
)
from .unit_of_work import MdmRepositories, MdmUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "AuditSink",
    "GoldenRecordRepository",
    "LinkRepository",
    "MdmRepositories",
    "MdmUnitOfWork",
    "MergeAuditRepository",
    "RecordRepository",
    "Repository",
    "RepositoryCollection",
    "SourceRecordRepository",
    "UnitOfWork",
]
