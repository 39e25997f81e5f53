"""Source records (owned by upstream systems) and engine-managed golden records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .demographics import Address, Attachment, Coding, ContactPoint, HumanName, PersonLink
from .entity import utcnow
from .enums import AdministrativeSex, OwnerType, ResourceKind
from .identifiers import IdentifiableMixin

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class PersonRecord(IdentifiableMixin):
    """Shared shape of person-like records: identity, status and demographics."""

    kind: ResourceKind
    active: bool = True

    names: list[HumanName] = field(default_factory=list["HumanName"])
    addresses: list[Address] = field(default_factory=list["Address"])
    telecom: list[ContactPoint] = field(default_factory=list["ContactPoint"])
    birth_date: date | None = None
    gender: AdministrativeSex | None = None

    @property
    def reference(self) -> str:
        return f"{self.kind}/{self.id}"


@dataclass(eq=False, kw_only=True)
class SourceRecord(PersonRecord):
    """An upstream system's view of one entity, e.g. a Patient or Practitioner."""

    OWNER_TYPE = OwnerType.SOURCE_RECORD

    photos: list[Attachment] = field(default_factory=list["Attachment"])

    def refresh_from(self, other: SourceRecord) -> None:
        """Take over a newer version of this record; identifiers are only ever added."""

        self.kind = other.kind
        self.active = other.active
        self.names = list(other.names)
        self.addresses = list(other.addresses)
        self.telecom = list(other.telecom)
        self.birth_date = other.birth_date
        self.gender = other.gender
        self.photos = list(other.photos)
        for identifier in other.identifiers:
            self.add_identifier(identifier.system, identifier.value, use=identifier.use)


@dataclass(eq=False, kw_only=True)
class GoldenRecord(PersonRecord):
    """Canonical identity record for one resolved real-world entity.

    Golden records are tombstoned, never erased: a merge marks the losing record
    inactive and points ``redirect_id`` at the survivor.
    """

    OWNER_TYPE = OwnerType.GOLDEN_RECORD

    photo: Attachment | None = None
    redirect_id: UUID | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    _tags: list[Coding] = field(default_factory=list["Coding"], repr=False, init=False)
    _person_links: list[PersonLink] = field(
        default_factory=list["PersonLink"], repr=False, init=False
    )

    @property
    def tags(self) -> tuple[Coding, ...]:
        return tuple(self._tags)

    def has_tag(self, system: str, code: str) -> bool:
        return any(tag.system == system and tag.code == code for tag in self._tags)

    def add_tag(self, tag: Coding) -> None:
        if self.has_tag(tag.system, tag.code):
            return
        # reassign so the JSON column registers the change
        self._tags = [*self._tags, tag]

    @property
    def person_links(self) -> tuple[PersonLink, ...]:
        return tuple(self._person_links)

    def replace_person_links(self, links: Iterable[PersonLink]) -> None:
        self._person_links = list(links)

    @property
    def is_redirected(self) -> bool:
        return self.redirect_id is not None

    def redirect_to(self, survivor: GoldenRecord) -> None:
        if survivor.id == self.id:
            raise ValueError("a golden record cannot redirect to itself")
        self.active = False
        self.redirect_id = survivor.id
        self.touch()

    def touch(self) -> None:
        self.updated_at = utcnow()
