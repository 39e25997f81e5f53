from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from goldenlink.domain.model import (
    Attachment,
    Coding,
    GoldenRecord,
    HumanName,
    IdentifierUse,
    OwnerType,
    ResourceKind,
    SourceRecord,
    parse_record_id,
)
from tests.helpers.mdm import make_source

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID


def test_reference_combines_kind_and_id() -> None:
    record = SourceRecord(kind=ResourceKind.PRACTITIONER)

    assert record.reference == f"Practitioner/{record.id}"


def test_identifiers_are_owned_by_typed_reference() -> None:
    golden = GoldenRecord(kind=ResourceKind.PATIENT)

    first = golden.add_identifier("sys", "1", use=IdentifierUse.OFFICIAL)
    again = golden.add_identifier("sys", "1", use=IdentifierUse.OLD)

    assert again is first
    assert first.use is IdentifierUse.OFFICIAL
    assert first.owner_type is OwnerType.GOLDEN_RECORD
    assert first.owner_id == golden.id
    assert golden.identifiers_for_system("other") == ()


def test_tags_are_deduplicated() -> None:
    golden = GoldenRecord(kind=ResourceKind.PATIENT)

    golden.add_tag(Coding(system="s", code="c"))
    golden.add_tag(Coding(system="s", code="c", display="again"))

    assert golden.tags == (Coding(system="s", code="c"),)
    assert golden.has_tag("s", "c")
    assert not golden.has_tag("s", "other")


def test_redirect_retires_the_record() -> None:
    loser = GoldenRecord(kind=ResourceKind.PATIENT)
    survivor = GoldenRecord(kind=ResourceKind.PATIENT)
    before = loser.updated_at

    loser.redirect_to(survivor)

    assert not loser.active
    assert loser.is_redirected
    assert loser.redirect_id == survivor.id
    assert loser.updated_at >= before


def test_record_cannot_redirect_to_itself() -> None:
    golden = GoldenRecord(kind=ResourceKind.PATIENT)

    with pytest.raises(ValueError, match="itself"):
        golden.redirect_to(golden)


def test_refresh_replaces_demographics_and_keeps_identifiers() -> None:
    stored = make_source("Smith", eid="EID-1")
    incoming = make_source("Jones", active=False)
    incoming.photos = [Attachment(url="http://example.org/photo.png")]

    stored.refresh_from(incoming)

    assert stored.names == [HumanName(family="Jones", given=("Jane",))]
    assert not stored.active
    assert stored.photos == incoming.photos
    assert {identifier.value for identifier in stored.identifiers} == {
        "MRN-Smith",
        "EID-1",
        "MRN-Jones",
    }
    assert all(identifier.owner_id == stored.id for identifier in stored.identifiers)


@pytest.mark.parametrize(
    "render",
    [
        lambda value: value,
        str,
        lambda value: f"Patient/{value}",
        lambda value: f"  {value}  ",
    ],
)
def test_parse_record_id_accepts_common_forms(render: Callable[[UUID], UUID | str]) -> None:
    value = uuid4()

    assert parse_record_id(render(value)) == value


@pytest.mark.parametrize("raw", ["", "Patient/", "Patient/123", "not a uuid"])
def test_parse_record_id_rejects_garbage(raw: str) -> None:
    assert parse_record_id(raw) is None
