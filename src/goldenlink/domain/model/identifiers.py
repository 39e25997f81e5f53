"""Identifiers owned by typed references, and the enterprise identifier value object.

Important: Identifier points to (owner_type, owner_id), not to a concrete FK.
Source records and golden records share the same identifier table.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from .entity import Entity, new_id
from .enums import EidKind, IdentifierUse, OwnerType

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Identifier:
    system: str
    value: str
    use: IdentifierUse = IdentifierUse.USUAL

    owner_type: OwnerType
    owner_id: UUID

    id: UUID = field(default_factory=new_id)

    def matches(self, system: str, value: str) -> bool:
        return self.system == system and self.value == value


@dataclass(frozen=True, slots=True)
class EnterpriseIdentifier:
    """A (system, value) pair identifying one entity across source systems."""

    system: str
    value: str
    kind: EidKind = EidKind.EXTERNAL

    @property
    def is_external(self) -> bool:
        return self.kind is EidKind.EXTERNAL

    @property
    def use(self) -> IdentifierUse:
        return IdentifierUse.OFFICIAL if self.is_external else IdentifierUse.SECONDARY

    def __str__(self) -> str:
        return f"{self.system}|{self.value}"


@dataclass(eq=False, kw_only=True)
class IdentifiableMixin(Entity, ABC):
    """Capability: owns Identifiers keyed by (system, value)."""

    OWNER_TYPE: ClassVar[OwnerType]

    _identifiers: list[Identifier] = field(
        default_factory=list["Identifier"], repr=False, init=False
    )

    @property
    def identifiers(self) -> tuple[Identifier, ...]:
        return tuple(self._identifiers)

    def has_identifier(self, system: str, value: str) -> bool:
        return any(identifier.matches(system, value) for identifier in self._identifiers)

    def identifiers_for_system(self, system: str) -> tuple[Identifier, ...]:
        return tuple(identifier for identifier in self._identifiers if identifier.system == system)

    def add_identifier(
        self,
        system: str,
        value: str,
        *,
        use: IdentifierUse = IdentifierUse.USUAL,
    ) -> Identifier:
        """Attach an identifier; an existing (system, value) pair is returned unchanged."""

        for identifier in self._identifiers:
            if identifier.matches(system, value):
                return identifier
        identifier = Identifier(
            system=system,
            value=value,
            use=use,
            owner_type=self.OWNER_TYPE,
            owner_id=self.id,
        )
        self._identifiers.append(identifier)
        return identifier

    def add_eid(self, eid: EnterpriseIdentifier) -> Identifier:
        return self.add_identifier(eid.system, eid.value, use=eid.use)
