"""SQLAlchemy mapping metadata for the goldenlink domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import Any, Protocol, Self, cast

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    and_,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers, relationship

from goldenlink.domain.model import (
    Address,
    AdministrativeSex,
    AssuranceLevel,
    Attachment,
    Coding,
    ContactPoint,
    GoldenRecord,
    GoldenRecordMerge,
    HumanName,
    Identifier,
    IdentifierUse,
    Link,
    LinkSource,
    MatchResult,
    OwnerType,
    PersonLink,
    ResourceKind,
    SourceRecord,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class _JsonValue(Protocol):
    def to_json(self) -> dict[str, Any]: ...

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self: ...


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class JsonValueListType(TypeDecorator[list[Any]]):
    """A list of demographic value objects stored as one JSON array."""

    impl = Text
    cache_ok = True

    def __init__(self, item_type: type[_JsonValue]) -> None:
        super().__init__()
        self.item_type = item_type

    def process_bind_param(self, value: list[Any] | None, dialect: Dialect) -> str:
        _ = dialect
        items = cast(list[_JsonValue], value or [])
        return json.dumps([item.to_json() for item in items])

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[Any]:
        _ = dialect
        if not value:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        return [
            self.item_type.from_json(item)
            for item in cast(list[Any], loaded)
            if isinstance(item, dict)
        ]


class AttachmentType(TypeDecorator[Attachment]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Attachment | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value.to_json())

    def process_result_value(self, value: str | None, dialect: Dialect) -> Attachment | None:
        _ = dialect
        if not value:
            return None
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return None
        return Attachment.from_json(cast(dict[str, Any], loaded))


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Records ---------------------------------------------------------------------

source_record_table = Table(
    "source_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("kind", Enum(ResourceKind, native_enum=False), nullable=False),
    Column("active", Boolean, nullable=False, default=True),
    Column("names", JsonValueListType(HumanName), nullable=False),
    Column("addresses", JsonValueListType(Address), nullable=False),
    Column("telecom", JsonValueListType(ContactPoint), nullable=False),
    Column("birth_date", Date, nullable=True),
    Column("gender", Enum(AdministrativeSex, native_enum=False), nullable=True),
    Column("photos", JsonValueListType(Attachment), nullable=False),
)

golden_record_table = Table(
    "golden_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("kind", Enum(ResourceKind, native_enum=False), nullable=False),
    Column("active", Boolean, nullable=False, default=True),
    Column("names", JsonValueListType(HumanName), nullable=False),
    Column("addresses", JsonValueListType(Address), nullable=False),
    Column("telecom", JsonValueListType(ContactPoint), nullable=False),
    Column("birth_date", Date, nullable=True),
    Column("gender", Enum(AdministrativeSex, native_enum=False), nullable=True),
    Column("photo", AttachmentType(), nullable=True),
    Column("tags", JsonValueListType(Coding), key="_tags", nullable=False),
    Column("person_links", JsonValueListType(PersonLink), key="_person_links", nullable=False),
    Column("redirect_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

# Identifiers shared by both record tables --------------------------------------

identifier_table = Table(
    "identifier",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("system", String, nullable=False),
    Column("value", String, nullable=False),
    Column("use", Enum(IdentifierUse, native_enum=False), nullable=False),
    Column("owner_type", Enum(OwnerType, native_enum=False), nullable=False),
    Column("owner_id", UUIDColumnType, nullable=False),
    UniqueConstraint("system", "value", "owner_type", "owner_id"),
    Index("ix_identifier_owner", "owner_type", "owner_id"),
    Index("ix_identifier_system_value", "system", "value"),
)

# Link graph ------------------------------------------------------------------

mdm_link_table = Table(
    "mdm_link",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("golden_id", UUIDColumnType, nullable=False),
    Column("source_id", UUIDColumnType, nullable=False),
    Column("match_result", Enum(MatchResult, native_enum=False), nullable=False),
    Column("link_source", Enum(LinkSource, native_enum=False), nullable=False),
    Column("assurance_level", Enum(AssuranceLevel, native_enum=False), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_mdm_link_golden", "golden_id"),
    Index("ix_mdm_link_source", "source_id"),
    Index(
        "uq_mdm_link_pair",
        "golden_id",
        "source_id",
        unique=True,
        sqlite_where=text("match_result != 'REDIRECT'"),
        postgresql_where=text("match_result != 'REDIRECT'"),
    ),
)

golden_record_merge_table = Table(
    "golden_record_merge",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("from_id", UUIDColumnType, nullable=False),
    Column("to_id", UUIDColumnType, nullable=False),
    Column("repointed_links", Integer, nullable=False, default=0),
    Column("copied_identifiers", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("created_by", String, nullable=True),
    Index("ix_golden_record_merge_from", "from_id"),
    Index("ix_golden_record_merge_to", "to_id"),
)

OWNER_TYPE_BY_TABLE: dict[str, OwnerType] = {
    source_record_table.name: OwnerType.SOURCE_RECORD,
    golden_record_table.name: OwnerType.GOLDEN_RECORD,
}


def _identifiers_relationship(owner_table: Table) -> orm.RelationshipProperty[Identifier]:
    return relationship(
        Identifier,
        cascade="all, delete-orphan",
        primaryjoin=and_(
            identifier_table.c.owner_id == owner_table.c.id,
            identifier_table.c.owner_type == OWNER_TYPE_BY_TABLE[owner_table.name],
        ),
        foreign_keys=[identifier_table.c.owner_id],
        lazy="selectin",
        overlaps="_identifiers",
    )


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        SourceRecord,
        source_record_table,
        properties={"_identifiers": _identifiers_relationship(source_record_table)},
    )

    mapper_registry.map_imperatively(
        GoldenRecord,
        golden_record_table,
        properties={"_identifiers": _identifiers_relationship(golden_record_table)},
    )

    mapper_registry.map_imperatively(Identifier, identifier_table)
    mapper_registry.map_imperatively(Link, mdm_link_table)
    mapper_registry.map_imperatively(GoldenRecordMerge, golden_record_merge_table)

    configure_mappers()
    return mapper_registry

