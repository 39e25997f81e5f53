from __future__ import annotations

import pytest
from pydantic import ValidationError

from goldenlink.adapters.fhir import BundlePayload, PersonResourcePayload


def test_person_payload_reads_aliases_and_ignores_unknown_fields() -> None:
    payload = PersonResourcePayload.model_validate(
        {
            "resourceType": "Patient",
            "id": " p-1 ",
            "birthDate": "1990-01-02",
            "meta": {"versionId": "3"},
            "address": [{"postalCode": "12345"}],
            "photo": [{"contentType": "image/jpeg"}],
            "identifier": [{"system": "  ", "value": "x"}],
        }
    )

    assert payload.resource_type == "Patient"
    assert payload.id == "p-1"
    assert payload.birth_date is not None
    assert payload.birth_date.isoformat() == "1990-01-02"
    assert payload.address[0].postal_code == "12345"
    assert payload.photo[0].content_type == "image/jpeg"
    assert payload.identifier[0].system is None
    assert payload.active


def test_person_payload_rejects_other_resource_types() -> None:
    with pytest.raises(ValidationError):
        PersonResourcePayload.model_validate({"resourceType": "Observation", "id": "o-1"})


def test_person_payload_rejects_unknown_gender() -> None:
    with pytest.raises(ValidationError):
        PersonResourcePayload.model_validate({"resourceType": "Patient", "gender": "robot"})


def test_bundle_keeps_only_person_entries() -> None:
    bundle = BundlePayload.model_validate(
        {
            "resourceType": "Bundle",
            "entry": [
                {"resource": {"resourceType": "Patient", "id": "p-1"}},
                {"resource": {"resourceType": "Observation", "id": "o-1"}},
                {"fullUrl": "urn:uuid:empty"},
                {"resource": {"resourceType": "Practitioner", "id": "pr-1"}},
            ],
        }
    )

    assert [entry.resource.id for entry in bundle.entry] == ["p-1", "pr-1"]
