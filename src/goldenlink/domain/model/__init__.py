"""Public domain model surface."""

from __future__ import annotations

from goldenlink.domain.model.audit import GoldenRecordMerge
from goldenlink.domain.model.demographics import (
    Address,
    Attachment,
    Coding,
    ContactPoint,
    HumanName,
    PersonLink,
)
from goldenlink.domain.model.entity import Entity, new_id, parse_record_id, utcnow
from goldenlink.domain.model.enums import (
    AdministrativeSex,
    AssuranceLevel,
    EidKind,
    IdentifierUse,
    LinkSource,
    MatchResult,
    OwnerType,
    ResourceKind,
    SchemaVersion,
)
from goldenlink.domain.model.identifiers import (
    EnterpriseIdentifier,
    IdentifiableMixin,
    Identifier,
)
from goldenlink.domain.model.links import Link
from goldenlink.domain.model.records import GoldenRecord, PersonRecord, SourceRecord

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    "parse_record_id",
    "utcnow",
    # identifiers
    "Identifier",
    "IdentifiableMixin",
    "EnterpriseIdentifier",
    # demographics
    "Address",
    "Attachment",
    "Coding",
    "ContactPoint",
    "HumanName",
    "PersonLink",
    # records
    "PersonRecord",
    "SourceRecord",
    "GoldenRecord",
    # links
    "Link",
    # audit
    "GoldenRecordMerge",
    # enums
    "AdministrativeSex",
    "AssuranceLevel",
    "EidKind",
    "IdentifierUse",
    "LinkSource",
    "MatchResult",
    "OwnerType",
    "ResourceKind",
    "SchemaVersion",
]
