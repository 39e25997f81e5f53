"""Create and refresh golden records from source records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from goldenlink.domain.model import GoldenRecord

if TYPE_CHECKING:
    from goldenlink.domain.mdm.identifiers import IdentifierManager
    from goldenlink.domain.mdm.person_adapters import PersonAdapter
    from goldenlink.domain.model import SourceRecord

log = logging.getLogger(__name__)


class GoldenRecordBuilder:
    def __init__(self, identifiers: IdentifierManager, adapter: PersonAdapter) -> None:
        self._identifiers = identifiers
        self._adapter = adapter

    def build_from_source(self, source: SourceRecord) -> GoldenRecord:
        """Return a new, unsaved golden record seeded from ``source``.

        Carries over the source's external EID when it has one; otherwise a
        random internal EID is generated.
        """

        golden = GoldenRecord(kind=source.kind)
        self._adapter.copy_demographics(source, golden)
        eid = self._identifiers.resolve_eid(source)
        golden.add_eid(eid)
        golden.add_tag(self._adapter.build_managed_tag())
        log.debug("Built %s from %s with EID %s", golden.reference, source.reference, eid)
        return golden

    def refresh_from_source(self, golden: GoldenRecord, source: SourceRecord) -> None:
        """Re-apply the demographic copy after a source update, then reconcile the EID."""

        self._adapter.copy_demographics(source, golden)
        golden.touch()
        self._identifiers.reconcile_external_eid(
            golden, self._identifiers.resolve_external_eid(source)
        )
