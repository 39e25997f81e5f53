from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from goldenlink.config import MdmConfig
from goldenlink.domain.errors import InvalidRequest, ResourceNotFound, ValidationError
from goldenlink.domain.mdm import IdentifierManager, MdmService
from goldenlink.domain.model import (
    AssuranceLevel,
    GoldenRecord,
    IdentifierUse,
    LinkSource,
    MatchResult,
    ResourceKind,
    SourceRecord,
)
from tests.helpers.mdm import (
    EID_SYSTEM,
    FakeLinkRepository,
    FakeUnitOfWorkFactory,
    RecordingAuditSink,
    make_golden,
    make_source,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID


@dataclass
class MergeWorld:
    config: MdmConfig
    service: MdmService
    factory: FakeUnitOfWorkFactory
    sink: RecordingAuditSink

    @property
    def links(self) -> FakeLinkRepository:
        links = self.factory.repositories.links
        assert isinstance(links, FakeLinkRepository)
        return links

    def golden(self, *, eid: str | None = None, family: str = "Smith") -> GoldenRecord:
        golden = make_golden(self.config, eid=eid, family=family)
        self.factory.repositories.golden_records.add(golden)
        return golden

    def source(self, family: str = "Smith") -> SourceRecord:
        source = make_source(family)
        self.factory.repositories.source_records.add(source)
        return source

    def link(
        self,
        golden: GoldenRecord,
        source: SourceRecord,
        match_result: MatchResult = MatchResult.MATCH,
        link_source: LinkSource = LinkSource.AUTO,
        assurance_level: AssuranceLevel | None = None,
    ) -> None:
        self.service.upsert_link(golden.id, source.id, match_result, link_source, assurance_level)


@pytest.fixture
def world(mdm_config: MdmConfig) -> MergeWorld:
    factory = FakeUnitOfWorkFactory()
    sink = RecordingAuditSink()
    service = MdmService(mdm_config, factory, audit_sink=sink)
    return MergeWorld(config=mdm_config, service=service, factory=factory, sink=sink)


def test_merge_requires_both_ids(world: MergeWorld) -> None:
    golden = world.golden()

    with pytest.raises(ValidationError, match="fromGoldenResourceId cannot be null"):
        world.service.merge(None, golden.id)
    with pytest.raises(ValidationError, match="toGoldenResourceId cannot be null"):
        world.service.merge(golden.id, None)


@pytest.mark.parametrize("render", [str, lambda golden_id: f"Patient/{golden_id}"])
def test_merge_into_itself_is_rejected(
    world: MergeWorld, render: Callable[[UUID], str]
) -> None:
    golden = world.golden()

    with pytest.raises(ValidationError, match="fromPersonId must be different from toPersonId"):
        world.service.merge(golden.id, render(golden.id))


@pytest.mark.parametrize("render", [str, lambda golden_id: f"Patient/{golden_id}"])
def test_merge_of_unknown_id_into_itself_fails_on_equality(
    world: MergeWorld, render: Callable[[UUID], str]
) -> None:
    unknown = uuid4()

    with pytest.raises(ValidationError, match="fromPersonId must be different from toPersonId"):
        world.service.merge(unknown, unknown)
    with pytest.raises(ValidationError, match="fromPersonId must be different from toPersonId"):
        world.service.merge(unknown, render(unknown))
    assert world.sink.messages == []


def test_unknown_record_leaves_survivor_untouched(world: MergeWorld) -> None:
    survivor = world.golden()
    source = world.source()
    world.link(survivor, source)
    before = survivor.updated_at
    world.sink.messages.clear()

    with pytest.raises(ResourceNotFound):
        world.service.merge(uuid4(), survivor.id)
    with pytest.raises(ResourceNotFound):
        world.service.merge("not-a-record-id", survivor.id)

    assert survivor.active
    assert survivor.updated_at == before
    assert [link.source_id for link in world.links.for_golden(survivor.id)] == [source.id]
    assert world.sink.messages == []
    assert world.factory.last.rollback_called
    assert not world.factory.last.committed


def test_only_managed_records_can_be_merged(world: MergeWorld) -> None:
    unmanaged = GoldenRecord(kind=ResourceKind.PATIENT)
    world.factory.repositories.golden_records.add(unmanaged)
    managed = world.golden()

    with pytest.raises(InvalidRequest, match="Only MDM managed resources can be merged"):
        world.service.merge(unmanaged.id, managed.id)
    with pytest.raises(InvalidRequest, match="must have the HAPI-MDM tag"):
        world.service.merge(managed.id, unmanaged.id)


def test_merge_moves_links_identifiers_and_retires_the_loser(world: MergeWorld) -> None:
    loser = world.golden(eid="EID-1")
    survivor = world.golden()
    first, second, third = world.source("First"), world.source("Second"), world.source("Third")
    world.link(loser, first)
    world.link(loser, second, MatchResult.POSSIBLE_MATCH, LinkSource.MANUAL)
    world.link(survivor, third)
    world.sink.messages.clear()

    result = world.service.merge(f"Patient/{loser.id}", str(survivor.id), created_by="ops")

    assert result is survivor
    assert not loser.active
    assert loser.redirect_id == survivor.id
    assert loser.person_links == ()

    positive = [link for link in world.links.for_golden(survivor.id) if not link.is_redirect]
    assert {link.source_id for link in positive} == {first.id, second.id, third.id}
    repointed = world.links.get_active(survivor.id, second.id)
    assert repointed is not None
    assert repointed.match_result is MatchResult.POSSIBLE_MATCH
    assert repointed.link_source is LinkSource.MANUAL
    assert repointed.assurance_level is AssuranceLevel.LEVEL2
    assert list(world.links.for_golden(loser.id)) == []

    (redirect,) = world.links.redirects_from(loser.id)
    assert redirect.golden_id == survivor.id
    assert redirect.link_source is LinkSource.MANUAL
    assert redirect.assurance_level is None

    assert {link.target for link in survivor.person_links} == {
        first.reference,
        second.reference,
        third.reference,
    }
    identifiers = IdentifierManager(world.config)
    eid = identifiers.resolve_external_eid(survivor)
    assert eid is not None
    assert eid.value == "EID-1"

    (merge_row,) = world.service.merge_history(survivor.id)
    assert merge_row.from_id == loser.id
    assert merge_row.repointed_links == 2
    assert merge_row.copied_identifiers == 1
    assert merge_row.created_by == "ops"

    assert world.factory.created[-2].committed
    assert world.sink.messages[-1] == (
        f"Merged {loser.reference} into {survivor.reference}: "
        "2 links repointed, 0 superseded, 1 identifiers copied"
    )


def test_merging_twice_is_rejected(world: MergeWorld) -> None:
    loser = world.golden()
    survivor = world.golden()
    world.service.merge(loser.id, survivor.id)
    links_after_first = list(world.links.items)

    with pytest.raises(InvalidRequest, match="has already been merged"):
        world.service.merge(loser.id, survivor.id)

    assert world.links.items == links_after_first
    assert len(world.service.merge_history(survivor.id)) == 1


def test_merged_record_is_not_a_merge_target(world: MergeWorld) -> None:
    loser = world.golden()
    survivor = world.golden()
    other = world.golden()
    world.service.merge(loser.id, survivor.id)

    with pytest.raises(InvalidRequest):
        world.service.merge(other.id, loser.id)


def test_manual_link_on_loser_beats_auto_link_on_survivor(world: MergeWorld) -> None:
    loser = world.golden()
    survivor = world.golden()
    shared = world.source()
    world.link(loser, shared, link_source=LinkSource.MANUAL)
    world.link(survivor, shared)
    auto_link = world.links.get_active(survivor.id, shared.id)

    world.service.merge(loser.id, survivor.id)

    kept = world.links.get_active(survivor.id, shared.id)
    assert kept is not None
    assert kept is not auto_link
    assert kept.link_source is LinkSource.MANUAL
    assert kept.assurance_level is AssuranceLevel.LEVEL3
    assert auto_link in world.links.deleted
    assert [link.target for link in survivor.person_links] == [shared.reference]
    assert survivor.person_links[0].assurance is AssuranceLevel.LEVEL3


def test_survivor_link_wins_when_it_has_more_authority(world: MergeWorld) -> None:
    loser = world.golden()
    survivor = world.golden()
    shared = world.source()
    world.link(loser, shared)
    world.link(survivor, shared, link_source=LinkSource.MANUAL)
    manual_link = world.links.get_active(survivor.id, shared.id)

    world.service.merge(loser.id, survivor.id)

    assert world.links.get_active(survivor.id, shared.id) is manual_link
    assert [link.golden_id for link in world.links.deleted] == [loser.id]
    assert [
        link for link in world.links.for_source(shared.id) if link.golden_id == survivor.id
    ] == [manual_link]


def test_higher_assurance_wins_between_auto_links(world: MergeWorld) -> None:
    loser = world.golden()
    survivor = world.golden()
    shared = world.source()
    world.link(loser, shared, assurance_level=AssuranceLevel.LEVEL4)
    world.link(survivor, shared)

    world.service.merge(loser.id, survivor.id)

    kept = world.links.get_active(survivor.id, shared.id)
    assert kept is not None
    assert kept.assurance_level is AssuranceLevel.LEVEL4


def test_second_external_eid_is_kept_as_old(world: MergeWorld) -> None:
    loser = world.golden(eid="EID-1")
    survivor = world.golden(eid="EID-2")

    world.service.merge(loser.id, survivor.id)

    (copied,) = [i for i in survivor.identifiers_for_system(EID_SYSTEM) if i.value == "EID-1"]
    assert copied.use is IdentifierUse.OLD
    eid = IdentifierManager(world.config).resolve_external_eid(survivor)
    assert eid is not None
    assert eid.value == "EID-2"


def test_no_match_links_stay_on_the_retired_record(world: MergeWorld) -> None:
    loser = world.golden()
    survivor = world.golden()
    rejected = world.source()
    world.link(loser, rejected, MatchResult.NO_MATCH, LinkSource.MANUAL)

    world.service.merge(loser.id, survivor.id)

    link = world.links.get_active(loser.id, rejected.id)
    assert link is not None
    assert link.match_result is MatchResult.NO_MATCH
    assert world.links.get_active(survivor.id, rejected.id) is None


def test_failed_merge_emits_no_audit_messages(world: MergeWorld) -> None:
    loser = world.golden()
    survivor = world.golden()
    world.service.merge(loser.id, survivor.id)
    world.sink.messages.clear()

    with pytest.raises(InvalidRequest):
        world.service.merge(loser.id, survivor.id)

    assert world.sink.messages == []
    assert world.factory.last.rollback_called
