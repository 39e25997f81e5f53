"""Translate FHIR person resources into source records."""

from __future__ import annotations

import json
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, cast
from uuid import NAMESPACE_URL, UUID, uuid5

from pydantic import ValidationError as PydanticValidationError

from goldenlink.domain.errors import InvalidRequest
from goldenlink.domain.model import (
    Address,
    AdministrativeSex,
    Attachment,
    ContactPoint,
    HumanName,
    IdentifierUse,
    ResourceKind,
    SourceRecord,
)

from .schema import BundlePayload, PersonResourceInput, PersonResourcePayload

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)

_IDENTIFIER_USES: Final[dict[str, IdentifierUse]] = {use.value: use for use in IdentifierUse}


def _ensure_payload(resource: PersonResourceInput) -> PersonResourcePayload:
    if isinstance(resource, PersonResourcePayload):
        return resource
    return PersonResourcePayload.model_validate(resource)


def record_id_for(kind: ResourceKind, resource_id: str | None) -> UUID:
    """Use the resource id when it is a UUID, otherwise derive a stable one from it."""

    if resource_id is None:
        raise InvalidRequest(f"{kind} resource without an id cannot be ingested")
    try:
        return UUID(resource_id)
    except ValueError:
        return uuid5(NAMESPACE_URL, f"{kind}/{resource_id}")


def parse_source_record(resource: PersonResourceInput) -> SourceRecord:
    payload = _ensure_payload(resource)
    kind = ResourceKind(payload.resource_type)
    record = SourceRecord(
        id=record_id_for(kind, payload.id),
        kind=kind,
        active=payload.active,
        names=[
            HumanName(
                family=name.family,
                given=tuple(name.given),
                prefix=tuple(name.prefix),
                suffix=tuple(name.suffix),
                text=name.text,
                use=name.use,
            )
            for name in payload.name
        ],
        addresses=[
            Address(
                line=tuple(address.line),
                city=address.city,
                district=address.district,
                state=address.state,
                postal_code=address.postal_code,
                country=address.country,
                use=address.use,
            )
            for address in payload.address
        ],
        telecom=[
            ContactPoint(system=point.system, value=point.value, use=point.use, rank=point.rank)
            for point in payload.telecom
        ],
        birth_date=payload.birth_date,
        gender=AdministrativeSex(payload.gender) if payload.gender is not None else None,
        photos=[
            Attachment(
                content_type=photo.content_type,
                url=photo.url,
                title=photo.title,
                data=photo.data,
            )
            for photo in payload.photo
        ],
    )
    for identifier in payload.identifier:
        if identifier.system is None or identifier.value is None:
            log.debug("Skipping incomplete identifier on %s", record.reference)
            continue
        use = _IDENTIFIER_USES.get(identifier.use or "", IdentifierUse.USUAL)
        record.add_identifier(identifier.system, identifier.value, use=use)
    return record


def parse_source_records(document: object) -> list[SourceRecord]:
    """Accept a single resource, a Bundle, or a JSON array of resources."""

    try:
        if isinstance(document, list):
            items = cast(list[object], document)
            return [parse_source_record(cast(Mapping[str, Any], item)) for item in items]
        if isinstance(document, Mapping):
            mapping = cast(Mapping[str, Any], document)
            if mapping.get("resourceType") == "Bundle":
                bundle = BundlePayload.model_validate(mapping)
                return [parse_source_record(entry.resource) for entry in bundle.entry]
            return [parse_source_record(mapping)]
    except PydanticValidationError as exc:
        raise InvalidRequest(f"Unreadable person resource: {exc}") from exc
    raise InvalidRequest(f"Expected a FHIR resource, Bundle or list, got {type(document).__name__}")


def load_source_records(path: Path) -> list[SourceRecord]:
    with path.open("r", encoding="utf-8") as handle:
        document = json.load(handle)
    records = parse_source_records(document)
    log.info("Read %d source records from %s", len(records), path)
    return records
