from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from goldenlink.config import MissingConfigurationError
from goldenlink.domain.mdm import MdmService
from goldenlink.domain.model import AssuranceLevel, LinkSource, MatchResult
from goldenlink.ui import cli
from tests.helpers.mdm import (
    FakeUnitOfWorkFactory,
    RecordingAuditSink,
    make_golden,
    make_source,
)

if TYPE_CHECKING:
    from pathlib import Path

    from goldenlink.config import MdmConfig
    from goldenlink.domain.model import GoldenRecord


@pytest.fixture
def factory() -> FakeUnitOfWorkFactory:
    return FakeUnitOfWorkFactory()


@pytest.fixture
def service(mdm_config: MdmConfig, factory: FakeUnitOfWorkFactory) -> MdmService:
    return MdmService(mdm_config, factory, audit_sink=RecordingAuditSink())


def _run(service: MdmService, *argv: str) -> int:
    return cli.main(list(argv), service_factory=lambda: service)


def _golden(factory: FakeUnitOfWorkFactory, config: MdmConfig, **kwargs: str) -> GoldenRecord:
    golden = make_golden(config, **kwargs)
    factory.repositories.golden_records.add(golden)
    return golden


def test_conflicts_exit_code(
    service: MdmService, factory: FakeUnitOfWorkFactory, mdm_config: MdmConfig
) -> None:
    a = _golden(factory, mdm_config, eid="EID-1")
    b = _golden(factory, mdm_config, eid="EID-2")
    c = _golden(factory, mdm_config, eid="EID-1")

    assert _run(service, "conflicts", str(a.id), str(b.id)) == 3
    assert _run(service, "conflicts", str(a.id), c.reference) == 0


def test_link_assurance_and_unlink(
    service: MdmService, factory: FakeUnitOfWorkFactory, mdm_config: MdmConfig
) -> None:
    golden = _golden(factory, mdm_config)
    source = make_source()
    factory.repositories.source_records.add(source)

    assert _run(service, "link", str(golden.id), str(source.id), "--result", "POSSIBLE_MATCH") == 0
    (link,) = service.links_for_golden(golden.id)
    assert link.match_result is MatchResult.POSSIBLE_MATCH
    assert link.link_source is LinkSource.MANUAL
    assert link.assurance_level is AssuranceLevel.LEVEL2

    assert _run(service, "assurance", str(golden.id), str(source.id), "level1") == 0
    assert link.assurance_level is AssuranceLevel.LEVEL1

    assert _run(service, "links", str(golden.id)) == 0
    assert _run(service, "unlink", str(golden.id), str(source.id)) == 0
    assert service.links_for_golden(golden.id) == []


def test_redirect_is_not_a_cli_choice(service: MdmService) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run(service, "link", "a", "b", "--result", "REDIRECT")

    assert excinfo.value.code == 2


def test_merge_and_duplicates(
    service: MdmService, factory: FakeUnitOfWorkFactory, mdm_config: MdmConfig
) -> None:
    loser = _golden(factory, mdm_config, eid="EID-1")
    survivor = _golden(factory, mdm_config, eid="EID-2")

    assert _run(service, "duplicates", str(loser.id)) == 0
    assert _run(service, "merge", str(loser.id), str(survivor.id), "--by", "steward") == 0

    assert loser.redirect_id == survivor.id
    assert service.merge_history(survivor.id)[0].created_by == "steward"


def test_domain_errors_exit_with_one(
    service: MdmService,
    factory: FakeUnitOfWorkFactory,
    mdm_config: MdmConfig,
    caplog: pytest.LogCaptureFixture,
) -> None:
    golden = _golden(factory, mdm_config)

    with caplog.at_level(logging.ERROR):
        code = _run(service, "merge", str(golden.id), str(golden.id))

    assert code == 1
    assert "ValidationError: fromPersonId must be different from toPersonId" in caplog.text


def test_ingest_file(
    service: MdmService,
    factory: FakeUnitOfWorkFactory,
    data_dir: Path,
    mdm_config: MdmConfig,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.INFO, logger="goldenlink.app"):
        assert _run(service, "ingest", str(data_dir / "patients_bundle.json")) == 0

    (summary,) = [
        record
        for record in caplog.records
        if record.name == "goldenlink.app" and record.msg.startswith("Finished ingest")
    ]
    assert summary.msg == "Finished ingest of %s: records=%d, new_golden_records=%d"
    assert summary.getMessage().endswith("new_golden_records=2")

    managed = factory.repositories.golden_records.list_tagged(
        mdm_config.managed_tag_system, mdm_config.managed_tag_code
    )
    assert len(managed) == 2


def test_unreadable_file_exits_with_one(service: MdmService, tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{"resourceType": "Observation"}', encoding="utf-8")

    assert _run(service, "ingest", str(path)) == 1


def test_configuration_error_exits_with_two() -> None:
    def broken_factory() -> MdmService:
        raise MissingConfigurationError("Missing configuration for: GOLDENLINK_EID_SYSTEM")

    assert cli.main(["links", "Patient/1"], service_factory=broken_factory) == 2
