from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from goldenlink.app import ingest_file
from goldenlink.domain.errors import IdentityConflict
from goldenlink.domain.mdm import IdentifierManager, MdmService
from goldenlink.domain.model import (
    AssuranceLevel,
    IdentifierUse,
    LinkSource,
    MatchResult,
    ResourceKind,
)
from tests.helpers.mdm import EID_SYSTEM, RecordingAuditSink, make_golden, make_source

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from goldenlink.adapters.sqlalchemy.unit_of_work import SqlAlchemyMdmUnitOfWork
    from goldenlink.config import MdmConfig
    from goldenlink.domain.model import GoldenRecord

type UowFactory = Callable[[], SqlAlchemyMdmUnitOfWork]


@pytest.fixture
def sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def service(
    mdm_config: MdmConfig, sqlite_unit_of_work: UowFactory, sink: RecordingAuditSink
) -> MdmService:
    return MdmService(mdm_config, sqlite_unit_of_work, audit_sink=sink)


def _store_golden(factory: UowFactory, config: MdmConfig, **kwargs: str) -> GoldenRecord:
    golden = make_golden(config, **kwargs)
    with factory() as uow:
        uow.repositories.golden_records.add(golden)
        uow.commit()
    return golden


@pytest.mark.integration
def test_ingest_bundle_persists_golden_records_and_links(
    service: MdmService,
    sqlite_unit_of_work: UowFactory,
    mdm_config: MdmConfig,
    data_dir: Path,
) -> None:
    outcomes = ingest_file(data_dir / "patients_bundle.json", service=service)

    assert len(outcomes) == 3
    lab, gp, practitioner = outcomes
    assert lab.created_golden
    assert not gp.created_golden
    assert lab.golden is not None
    assert gp.golden is not None
    assert gp.golden.id == lab.golden.id
    assert practitioner.golden is not None
    assert practitioner.golden.kind is ResourceKind.PRACTITIONER

    with sqlite_unit_of_work() as uow:
        golden = uow.repositories.golden_records.get(lab.golden.id)
        assert golden is not None
        links = list(uow.repositories.links.for_golden(golden.id))
        assert [link.source_id for link in links] == [lab.source.id, gp.source.id]
        assert [link.assurance_level for link in links] == [
            AssuranceLevel.LEVEL2,
            AssuranceLevel.LEVEL4,
        ]
        assert {link.target for link in golden.person_links} == {
            lab.source.reference,
            gp.source.reference,
        }
        eid = IdentifierManager(mdm_config).resolve_external_eid(golden)
        assert eid is not None
        assert eid.value == "EID-100"
        assert golden.names[0].family == "Okafor"


@pytest.mark.integration
def test_reingesting_a_bundle_reuses_the_same_records(
    service: MdmService, sqlite_unit_of_work: UowFactory, data_dir: Path
) -> None:
    first = ingest_file(data_dir / "patients_bundle.json", service=service)
    second = ingest_file(data_dir / "patients_bundle.json", service=service)

    assert not any(outcome.created_golden for outcome in second)
    assert [o.golden.id for o in second if o.golden] == [o.golden.id for o in first if o.golden]

    with sqlite_unit_of_work() as uow:
        source = uow.repositories.source_records.get(first[0].source.id)
        assert source is not None
        assert len(uow.repositories.links.for_source(source.id)) == 1


@pytest.mark.integration
def test_merge_is_persisted(
    service: MdmService,
    sqlite_unit_of_work: UowFactory,
    mdm_config: MdmConfig,
    sink: RecordingAuditSink,
) -> None:
    loser_outcome = service.ingest_source_record(make_source("Loser", eid="EID-1"))
    survivor_outcome = service.ingest_source_record(make_source("Survivor", eid="EID-2"))
    assert loser_outcome.golden is not None
    assert survivor_outcome.golden is not None
    loser_id, survivor_id = loser_outcome.golden.id, survivor_outcome.golden.id

    service.merge(loser_id, survivor_id, created_by="steward")

    with sqlite_unit_of_work() as uow:
        loser = uow.repositories.golden_records.get(loser_id)
        survivor = uow.repositories.golden_records.get(survivor_id)
        assert loser is not None
        assert survivor is not None
        assert not loser.active
        assert loser.redirect_id == survivor_id
        assert [link.golden_id for link in uow.repositories.links.redirects_from(loser_id)] == [
            survivor_id
        ]
        assert {
            link.source_id
            for link in uow.repositories.links.for_golden(survivor_id)
            if not link.is_redirect
        } == {loser_outcome.source.id, survivor_outcome.source.id}
        old = survivor.identifiers_for_system(EID_SYSTEM)
        assert {(identifier.value, identifier.use) for identifier in old} == {
            ("EID-2", IdentifierUse.OFFICIAL),
            ("EID-1", IdentifierUse.OLD),
        }

    (history,) = service.merge_history(survivor_id)
    assert history.created_by == "steward"
    assert sink.messages[-1].startswith(f"Merged Patient/{loser_id} into Patient/{survivor_id}")


@pytest.mark.integration
def test_merge_resolves_links_to_the_same_source(
    service: MdmService, sqlite_unit_of_work: UowFactory, mdm_config: MdmConfig
) -> None:
    loser = _store_golden(sqlite_unit_of_work, mdm_config)
    survivor = _store_golden(sqlite_unit_of_work, mdm_config)
    shared = make_source()
    with sqlite_unit_of_work() as uow:
        uow.repositories.source_records.add(shared)
        uow.commit()
    service.upsert_link(loser.id, shared.id, MatchResult.MATCH, LinkSource.MANUAL)
    service.upsert_link(survivor.id, shared.id, MatchResult.MATCH, LinkSource.AUTO)

    service.merge(loser.id, survivor.id)

    links = [link for link in service.links_for_source(shared.id) if not link.is_redirect]
    assert len(links) == 1
    assert links[0].golden_id == survivor.id
    assert links[0].link_source is LinkSource.MANUAL
    assert service.get_golden_record(survivor.id).person_links[0].assurance is (
        AssuranceLevel.LEVEL3
    )


@pytest.mark.integration
def test_identity_conflict_rolls_back(
    service: MdmService, sqlite_unit_of_work: UowFactory, mdm_config: MdmConfig
) -> None:
    golden = _store_golden(sqlite_unit_of_work, mdm_config, eid="EID-1")
    source = make_source()
    with sqlite_unit_of_work() as uow:
        uow.repositories.source_records.add(source)
        uow.commit()
    service.upsert_link(golden.id, source.id, MatchResult.MATCH, LinkSource.MANUAL)
    updated = make_source("Renamed", eid="EID-2")
    updated.id = source.id

    with pytest.raises(IdentityConflict):
        service.ingest_source_record(updated)

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.source_records.get(source.id)
        assert stored is not None
        assert not stored.has_identifier(EID_SYSTEM, "EID-2")
        assert stored.names[0].family == "Smith"
