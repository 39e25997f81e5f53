"""Entity-resolution services: identifiers, golden records, links and merges."""

from __future__ import annotations

from goldenlink.domain.mdm.audit import LoggingAuditSink, TransactionLog
from goldenlink.domain.mdm.duplicates import DuplicateCandidate, DuplicateDetector, SimilarityScorer
from goldenlink.domain.mdm.golden_records import GoldenRecordBuilder
from goldenlink.domain.mdm.identifiers import IdentifierManager
from goldenlink.domain.mdm.links import LinkManager, default_assurance_level
from goldenlink.domain.mdm.locking import KeyedLocks
from goldenlink.domain.mdm.matching import MatchOutcome, SourceRecordMatcher
from goldenlink.domain.mdm.merge import MergeEngine, MergePlan
from goldenlink.domain.mdm.person_adapters import (
    BasePersonAdapter,
    Dstu3PersonAdapter,
    PersonAdapter,
    R4PersonAdapter,
    person_adapter_for,
)
from goldenlink.domain.mdm.service import MdmService, UnitOfWorkFactory

__all__ = [
    "BasePersonAdapter",
    "DuplicateCandidate",
    "DuplicateDetector",
    "Dstu3PersonAdapter",
    "GoldenRecordBuilder",
    "IdentifierManager",
    "KeyedLocks",
    "LinkManager",
    "LoggingAuditSink",
    "MatchOutcome",
    "MdmService",
    "MergeEngine",
    "MergePlan",
    "PersonAdapter",
    "R4PersonAdapter",
    "SimilarityScorer",
    "SourceRecordMatcher",
    "TransactionLog",
    "UnitOfWorkFactory",
    "default_assurance_level",
    "person_adapter_for",
]
