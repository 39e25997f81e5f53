"""Pydantic models for the subset of FHIR person resources the importer reads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Final, Literal, cast, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PersonResourceType = Literal["Patient", "Practitioner", "RelatedPerson", "Person"]
PERSON_RESOURCE_TYPES: Final[frozenset[str]] = frozenset(get_args(PersonResourceType))


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class FhirBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IdentifierPayload(FhirBaseModel):
    system: str | None = None
    value: str | None = None
    use: str | None = None

    _normalize = field_validator("system", "value", "use", mode="before")(_blank_to_none)


class HumanNamePayload(FhirBaseModel):
    family: str | None = None
    given: list[str] = Field(default_factory=list)
    prefix: list[str] = Field(default_factory=list)
    suffix: list[str] = Field(default_factory=list)
    text: str | None = None
    use: str | None = None


class AddressPayload(FhirBaseModel):
    line: list[str] = Field(default_factory=list)
    city: str | None = None
    district: str | None = None
    state: str | None = None
    postal_code: str | None = Field(default=None, alias="postalCode")
    country: str | None = None
    use: str | None = None


class ContactPointPayload(FhirBaseModel):
    system: str | None = None
    value: str | None = None
    use: str | None = None
    rank: int | None = None


class AttachmentPayload(FhirBaseModel):
    content_type: str | None = Field(default=None, alias="contentType")
    url: str | None = None
    title: str | None = None
    data: str | None = None


class PersonResourcePayload(FhirBaseModel):
    resource_type: PersonResourceType = Field(alias="resourceType")
    id: str | None = None
    active: bool = True
    identifier: list[IdentifierPayload] = Field(default_factory=list)
    name: list[HumanNamePayload] = Field(default_factory=list)
    address: list[AddressPayload] = Field(default_factory=list)
    telecom: list[ContactPointPayload] = Field(default_factory=list)
    birth_date: date | None = Field(default=None, alias="birthDate")
    gender: Literal["male", "female", "other", "unknown"] | None = None
    photo: list[AttachmentPayload] = Field(default_factory=list)

    _normalize_id = field_validator("id", mode="before")(_blank_to_none)


class BundleEntryPayload(FhirBaseModel):
    resource: PersonResourcePayload


class BundlePayload(FhirBaseModel):
    resource_type: Literal["Bundle"] = Field(alias="resourceType")
    entry: list[BundleEntryPayload] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_foreign_entries(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        data = dict(cast(Mapping[str, object], value))
        entries = data.get("entry")
        if isinstance(entries, list):
            items = cast(list[object], entries)
            data["entry"] = [entry for entry in items if _is_person_entry(entry)]
        return data


def _is_person_entry(entry: object) -> bool:
    if not isinstance(entry, Mapping):
        return False
    resource = cast(Mapping[str, object], entry).get("resource")
    if not isinstance(resource, Mapping):
        return False
    return cast(Mapping[str, object], resource).get("resourceType") in PERSON_RESOURCE_TYPES


PersonResourceInput = PersonResourcePayload | Mapping[str, object]
