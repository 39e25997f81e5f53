"""Error taxonomy raised by the MDM services.

Each one aborts the operation with no partial writes and is surfaced to the
caller with the offending id(s) in the message. Only StaleGoldenRecord is
retried, by the ingest that hit it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from goldenlink.domain.model import EnterpriseIdentifier, ResourceKind


class MdmError(Exception):
    """Base class for MDM domain errors."""


class ValidationError(MdmError):
    """Null, equal or otherwise malformed operation parameters."""


class InvalidRequest(MdmError):
    """The request is well-formed but not allowed against the current state."""


class ResourceNotFound(MdmError):
    """An id does not resolve to a stored record."""

    def __init__(self, resource_id: object) -> None:
        super().__init__(f"Resource {resource_id} is not known")
        self.resource_id = resource_id


class UnsupportedEntityKind(MdmError):
    """The golden record builder was given a source kind it cannot copy."""

    def __init__(self, kind: ResourceKind | str) -> None:
        super().__init__(
            f"MDM source records are limited to Patient/Practitioner. This is a: {kind}"
        )
        self.kind = kind


class IdentityConflict(MdmError):
    """Two authoritative systems disagree about an entity's enterprise identity."""

    def __init__(
        self,
        reference: str,
        existing: EnterpriseIdentifier,
        incoming: EnterpriseIdentifier,
    ) -> None:
        super().__init__(
            f"{reference} already carries external EID {existing}; "
            f"refusing to replace it with {incoming}. This would create a duplicate golden record!"
        )
        self.reference = reference
        self.existing = existing
        self.incoming = incoming


class ManualOverrideProtected(MdmError):
    """An AUTO write tried to overwrite a MANUAL link decision."""

    def __init__(self, golden_reference: str, source_reference: str) -> None:
        super().__init__(
            f"Link {golden_reference} -> {source_reference} was set manually "
            "and cannot be changed by an automatic process"
        )
        self.golden_reference = golden_reference
        self.source_reference = source_reference


class InvariantViolation(MdmError):
    """A planned change would break a link-graph invariant; nothing was written."""


class StaleGoldenRecord(MdmError):
    """A golden record was merged away between being read and being locked."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"{reference} was merged by a concurrent operation")
        self.reference = reference
