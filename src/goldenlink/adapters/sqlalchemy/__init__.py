"""SQLAlchemy adapter package for goldenlink."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyGoldenRecordRepository,
    SqlAlchemyLinkRepository,
    SqlAlchemyMergeAuditRepository,
    SqlAlchemySourceRecordRepository,
)
from .unit_of_work import SqlAlchemyMdmUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyGoldenRecordRepository",
    "SqlAlchemyLinkRepository",
    "SqlAlchemyMdmUnitOfWork",
    "SqlAlchemyMergeAuditRepository",
    "SqlAlchemySourceRecordRepository",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
