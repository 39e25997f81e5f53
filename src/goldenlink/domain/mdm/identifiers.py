"""Enterprise identifier extraction, comparison, generation and reconciliation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import uuid4

from goldenlink.domain.errors import IdentityConflict
from goldenlink.domain.model import EidKind, EnterpriseIdentifier, IdentifierUse

if TYPE_CHECKING:
    from goldenlink.config import MdmConfig
    from goldenlink.domain.model import GoldenRecord, PersonRecord

log = logging.getLogger(__name__)


class IdentifierManager:
    def __init__(self, config: MdmConfig) -> None:
        self._config = config

    @property
    def enterprise_system(self) -> str:
        return self._config.enterprise_eid_system

    @property
    def internal_system(self) -> str:
        return self._config.internal_eid_system

    def resolve_external_eid(self, record: PersonRecord) -> EnterpriseIdentifier | None:
        """Return the record's external EID, if it carries one.

        Identifiers demoted to ``old`` by a merge are history, not the record's
        current enterprise identity, and are skipped.
        """

        for identifier in record.identifiers_for_system(self.enterprise_system):
            if identifier.use is IdentifierUse.OLD:
                continue
            return EnterpriseIdentifier(identifier.system, identifier.value, EidKind.EXTERNAL)
        return None

    def internal_eids(self, record: PersonRecord) -> tuple[EnterpriseIdentifier, ...]:
        return tuple(
            EnterpriseIdentifier(identifier.system, identifier.value, EidKind.INTERNAL)
            for identifier in record.identifiers_for_system(self.internal_system)
        )

    def generate_internal_eid(self) -> EnterpriseIdentifier:
        return EnterpriseIdentifier(self.internal_system, str(uuid4()), EidKind.INTERNAL)

    def resolve_eid(self, record: PersonRecord) -> EnterpriseIdentifier:
        """External EID when present, otherwise a freshly generated internal one."""

        return self.resolve_external_eid(record) or self.generate_internal_eid()

    @staticmethod
    def eids_equal(a: EnterpriseIdentifier, b: EnterpriseIdentifier) -> bool:
        return a.system == b.system and a.value == b.value

    def reconcile_external_eid(
        self,
        golden: GoldenRecord,
        incoming: EnterpriseIdentifier | None,
    ) -> None:
        """Adopt ``incoming`` as the golden record's external EID, or fail on conflict."""

        if incoming is None:
            return
        current = self.resolve_external_eid(golden)
        if current is None:
            log.debug(
                "Applying external EID %s to %s, which has no external EID yet",
                incoming,
                golden.reference,
            )
            golden.add_eid(incoming)
            golden.touch()
            return
        if self.eids_equal(current, incoming):
            log.debug("%s already carries external EID %s", golden.reference, incoming)
            return
        raise IdentityConflict(golden.reference, current, incoming)
