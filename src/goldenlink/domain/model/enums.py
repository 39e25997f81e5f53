"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SchemaVersion(StrEnum):
    """Record schema generations the person adapters understand."""

    R4 = "R4"
    DSTU3 = "DSTU3"


class ResourceKind(StrEnum):
    PATIENT = "Patient"
    PRACTITIONER = "Practitioner"
    RELATED_PERSON = "RelatedPerson"
    PERSON = "Person"


class OwnerType(StrEnum):
    """Typed-reference discriminator for polymorphic identifier ownership."""

    SOURCE_RECORD = "source_record"
    GOLDEN_RECORD = "golden_record"


class IdentifierUse(StrEnum):
    USUAL = "usual"
    OFFICIAL = "official"
    SECONDARY = "secondary"
    OLD = "old"


class EidKind(StrEnum):
    EXTERNAL = "external"
    INTERNAL = "internal"


class AdministrativeSex(StrEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class MatchResult(StrEnum):
    MATCH = "MATCH"
    POSSIBLE_MATCH = "POSSIBLE_MATCH"
    NO_MATCH = "NO_MATCH"
    REDIRECT = "REDIRECT"

    @property
    def is_positive(self) -> bool:
        """MATCH and POSSIBLE_MATCH are the results that attach a source to a golden record."""
        return self in (MatchResult.MATCH, MatchResult.POSSIBLE_MATCH)


class LinkSource(StrEnum):
    AUTO = "AUTO"
    MANUAL = "MANUAL"


class AssuranceLevel(StrEnum):
    """Identity assurance, ordered from LEVEL1 (lowest) to LEVEL4."""

    LEVEL1 = "level1"
    LEVEL2 = "level2"
    LEVEL3 = "level3"
    LEVEL4 = "level4"

    @property
    def rank(self) -> int:
        return _ASSURANCE_RANKS[self]

    def outranks(self, other: AssuranceLevel | None) -> bool:
        return other is None or self.rank > other.rank


_ASSURANCE_RANKS: dict[AssuranceLevel, int] = {
    AssuranceLevel.LEVEL1: 1,
    AssuranceLevel.LEVEL2: 2,
    AssuranceLevel.LEVEL3: 3,
    AssuranceLevel.LEVEL4: 4,
}
