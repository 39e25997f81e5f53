"""Schema-version specific handling of golden records.

One adapter per supported schema version, selected once from the configured
version tag. Adapters own the person-link components carried on a golden
record, the demographic copy from source records and the managed tag.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Final, Protocol

from goldenlink.domain.errors import UnsupportedEntityKind
from goldenlink.domain.model import Coding, PersonLink, ResourceKind, SchemaVersion

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from goldenlink.config import MdmConfig
    from goldenlink.domain.model import AssuranceLevel, GoldenRecord, SourceRecord

log = logging.getLogger(__name__)

type _FieldCopier = Callable[[SourceRecord, GoldenRecord], None]


def _copy_names(source: SourceRecord, golden: GoldenRecord) -> None:
    golden.names = list(source.names)


def _copy_addresses(source: SourceRecord, golden: GoldenRecord) -> None:
    golden.addresses = list(source.addresses)


def _copy_telecom(source: SourceRecord, golden: GoldenRecord) -> None:
    golden.telecom = list(source.telecom)


def _copy_birth_date(source: SourceRecord, golden: GoldenRecord) -> None:
    golden.birth_date = source.birth_date


def _copy_gender(source: SourceRecord, golden: GoldenRecord) -> None:
    golden.gender = source.gender


def _copy_first_photo(source: SourceRecord, golden: GoldenRecord) -> None:
    golden.photo = source.photos[0] if source.photos else None


_PERSON_DEMOGRAPHICS: Final[tuple[_FieldCopier, ...]] = (
    _copy_names,
    _copy_addresses,
    _copy_telecom,
    _copy_birth_date,
    _copy_gender,
    _copy_first_photo,
)


class PersonAdapter(Protocol):
    """Capability interface over one schema version's golden record shape."""

    @property
    def version(self) -> SchemaVersion: ...

    @property
    def supported_kinds(self) -> frozenset[ResourceKind]: ...

    def get_links(self, golden: GoldenRecord) -> tuple[str, ...]: ...

    def contains_link_to(self, golden: GoldenRecord, reference: str) -> bool: ...

    def add_or_update_link(
        self,
        golden: GoldenRecord,
        reference: str,
        assurance: AssuranceLevel | None,
    ) -> None: ...

    def remove_link(self, golden: GoldenRecord, reference: str) -> bool: ...

    def copy_demographics(self, source: SourceRecord, golden: GoldenRecord) -> None: ...

    def build_managed_tag(self) -> Coding: ...

    def is_managed(self, golden: GoldenRecord) -> bool: ...


class BasePersonAdapter(ABC):
    VERSION: ClassVar[SchemaVersion]
    COPY_SETS: ClassVar[Mapping[ResourceKind, tuple[_FieldCopier, ...]]]

    def __init__(self, config: MdmConfig) -> None:
        self._config = config

    @property
    def version(self) -> SchemaVersion:
        return self.VERSION

    @property
    def supported_kinds(self) -> frozenset[ResourceKind]:
        return frozenset(self.COPY_SETS)

    @abstractmethod
    def _references_match(self, a: str, b: str) -> bool: ...

    def get_links(self, golden: GoldenRecord) -> tuple[str, ...]:
        return tuple(link.target for link in golden.person_links)

    def contains_link_to(self, golden: GoldenRecord, reference: str) -> bool:
        return any(self._references_match(target, reference) for target in self.get_links(golden))

    def add_or_update_link(
        self,
        golden: GoldenRecord,
        reference: str,
        assurance: AssuranceLevel | None,
    ) -> None:
        if assurance is None:
            log.info("Refusing to update or add a link without an Assurance Level.")
            return
        if not self.contains_link_to(golden, reference):
            golden.replace_person_links(
                [*golden.person_links, PersonLink(target=reference, assurance=assurance)]
            )
            return
        golden.replace_person_links(
            PersonLink(target=link.target, assurance=assurance)
            if self._references_match(link.target, reference)
            else link
            for link in golden.person_links
        )

    def remove_link(self, golden: GoldenRecord, reference: str) -> bool:
        if not self.contains_link_to(golden, reference):
            return False
        golden.replace_person_links(
            link
            for link in golden.person_links
            if not self._references_match(link.target, reference)
        )
        return True

    def copy_demographics(self, source: SourceRecord, golden: GoldenRecord) -> None:
        copiers = self.COPY_SETS.get(source.kind)
        if copiers is None:
            raise UnsupportedEntityKind(source.kind)
        for copy in copiers:
            copy(source, golden)

    def build_managed_tag(self) -> Coding:
        return Coding(
            system=self._config.managed_tag_system,
            code=self._config.managed_tag_code,
            display=self._config.managed_tag_display,
        )

    def is_managed(self, golden: GoldenRecord) -> bool:
        return golden.has_tag(self._config.managed_tag_system, self._config.managed_tag_code)


class R4PersonAdapter(BasePersonAdapter):
    VERSION = SchemaVersion.R4
    COPY_SETS = {
        ResourceKind.PATIENT: _PERSON_DEMOGRAPHICS,
        ResourceKind.PRACTITIONER: _PERSON_DEMOGRAPHICS,
    }

    def _references_match(self, a: str, b: str) -> bool:
        return a == b


class Dstu3PersonAdapter(BasePersonAdapter):
    """DSTU3 compares link references case-insensitively."""

    VERSION = SchemaVersion.DSTU3
    COPY_SETS = {
        ResourceKind.PATIENT: _PERSON_DEMOGRAPHICS,
        ResourceKind.PRACTITIONER: _PERSON_DEMOGRAPHICS,
    }

    def _references_match(self, a: str, b: str) -> bool:
        return a.casefold() == b.casefold()


_ADAPTERS: Final[dict[SchemaVersion, type[BasePersonAdapter]]] = {
    SchemaVersion.R4: R4PersonAdapter,
    SchemaVersion.DSTU3: Dstu3PersonAdapter,
}


def person_adapter_for(config: MdmConfig) -> PersonAdapter:
    """Select the adapter for the configured schema version."""

    adapter_cls = _ADAPTERS.get(config.schema_version)
    if adapter_cls is None:
        raise NotImplementedError(f"Version not supported: {config.schema_version}")
    return adapter_cls(config)
