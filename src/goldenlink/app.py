"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from goldenlink.adapters.fhir import load_source_records
from goldenlink.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMdmUnitOfWork,
    is_started,
    startup,
)
from goldenlink.config import get_mdm_config
from goldenlink.domain.mdm import LoggingAuditSink, MdmService
from goldenlink.domain.ports import MdmUnitOfWork

if TYPE_CHECKING:
    from pathlib import Path

    from goldenlink.config import MdmConfig
    from goldenlink.domain.mdm import KeyedLocks, MatchOutcome, SimilarityScorer
    from goldenlink.domain.ports import AuditSink

UnitOfWorkFactory = Callable[[], MdmUnitOfWork]

log = getLogger(__name__)


def build_mdm_service(
    *,
    config: MdmConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    audit_sink: AuditSink | None = None,
    locks: KeyedLocks | None = None,
    scorer: SimilarityScorer | None = None,
) -> MdmService:
    """Wire the MDM service to the configured adapters."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyMdmUnitOfWork
    effective_config = config or get_mdm_config()
    log.info(
        "Starting MDM service: eid_system=%s, schema_version=%s",
        effective_config.enterprise_eid_system,
        effective_config.schema_version,
    )
    return MdmService(
        effective_config,
        unit_of_work_factory,
        audit_sink=audit_sink or LoggingAuditSink(),
        locks=locks,
        scorer=scorer,
    )


def ingest_file(path: Path, *, service: MdmService | None = None) -> list[MatchOutcome]:
    """Match every person resource in ``path``, one unit of work per record."""

    effective_service = service or build_mdm_service()
    outcomes = [
        effective_service.ingest_source_record(record) for record in load_source_records(path)
    ]
    created = sum(1 for outcome in outcomes if outcome.created_golden)
    log.info(
        "Finished ingest of %s: records=%d, new_golden_records=%d", path, len(outcomes), created
    )
    return outcomes
