from __future__ import annotations

import pytest

from goldenlink.config import MdmConfig
from goldenlink.domain.errors import IdentityConflict, UnsupportedEntityKind
from goldenlink.domain.mdm import GoldenRecordBuilder, IdentifierManager, person_adapter_for
from goldenlink.domain.model import (
    Attachment,
    EnterpriseIdentifier,
    HumanName,
    IdentifierUse,
    ResourceKind,
)
from tests.helpers.mdm import EID_SYSTEM, make_source


@pytest.fixture
def identifiers(mdm_config: MdmConfig) -> IdentifierManager:
    return IdentifierManager(mdm_config)


@pytest.fixture
def builder(mdm_config: MdmConfig, identifiers: IdentifierManager) -> GoldenRecordBuilder:
    return GoldenRecordBuilder(identifiers, person_adapter_for(mdm_config))


def test_build_from_source_keeps_external_eid(
    builder: GoldenRecordBuilder, identifiers: IdentifierManager
) -> None:
    golden = builder.build_from_source(make_source(eid="123"))

    assert identifiers.resolve_external_eid(golden) == EnterpriseIdentifier(EID_SYSTEM, "123")
    (identifier,) = golden.identifiers
    assert identifier.use is IdentifierUse.OFFICIAL


def test_build_from_source_generates_distinct_internal_eids(
    builder: GoldenRecordBuilder, identifiers: IdentifierManager
) -> None:
    first = builder.build_from_source(make_source())
    second = builder.build_from_source(make_source())

    assert identifiers.resolve_external_eid(first) is None
    (first_eid,) = identifiers.internal_eids(first)
    (second_eid,) = identifiers.internal_eids(second)
    assert first_eid.value != second_eid.value


def test_build_from_source_copies_demographics_and_tags(
    builder: GoldenRecordBuilder, mdm_config: MdmConfig
) -> None:
    source = make_source("Nakamura", kind=ResourceKind.PRACTITIONER)
    source.photos = [Attachment(url="https://example.org/a.png"), Attachment(url="b.png")]

    golden = builder.build_from_source(source)

    assert golden.kind is ResourceKind.PRACTITIONER
    assert golden.names == source.names
    assert golden.telecom == source.telecom
    assert golden.birth_date == source.birth_date
    assert golden.gender is source.gender
    assert golden.photo == Attachment(url="https://example.org/a.png")
    assert golden.has_tag(mdm_config.managed_tag_system, mdm_config.managed_tag_code)
    assert golden.id != source.id
    assert golden.active


def test_build_from_source_does_not_copy_source_identifiers(builder: GoldenRecordBuilder) -> None:
    golden = builder.build_from_source(make_source(eid="123"))

    assert not golden.has_identifier("http://example.org/mrn", "MRN-Smith")


def test_build_from_unsupported_kind_fails(builder: GoldenRecordBuilder) -> None:
    with pytest.raises(UnsupportedEntityKind):
        builder.build_from_source(make_source(kind=ResourceKind.RELATED_PERSON))


def test_refresh_from_source_reapplies_demographics_and_adopts_eid(
    builder: GoldenRecordBuilder, identifiers: IdentifierManager
) -> None:
    golden = builder.build_from_source(make_source())
    updated = make_source(eid="900")
    updated.names = [HumanName(family="Rivera", given=("Jane",))]

    builder.refresh_from_source(golden, updated)

    assert golden.names == [HumanName(family="Rivera", given=("Jane",))]
    assert identifiers.resolve_external_eid(golden) == EnterpriseIdentifier(EID_SYSTEM, "900")


def test_refresh_from_source_with_conflicting_eid_fails(builder: GoldenRecordBuilder) -> None:
    golden = builder.build_from_source(make_source(eid="123"))

    with pytest.raises(IdentityConflict):
        builder.refresh_from_source(golden, make_source(eid="456"))
