"""Import adapter for FHIR Patient and Practitioner resources."""

from __future__ import annotations

from .schema import BundlePayload, PersonResourceInput, PersonResourcePayload
from .translator import (
    load_source_records,
    parse_source_record,
    parse_source_records,
    record_id_for,
)

__all__ = [
    "BundlePayload",
    "PersonResourceInput",
    "PersonResourcePayload",
    "load_source_records",
    "parse_source_record",
    "parse_source_records",
    "record_id_for",
]
