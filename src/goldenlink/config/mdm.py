"""Engine-wide MDM settings: enterprise identifier systems and the managed tag."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from goldenlink.domain.model.enums import SchemaVersion

from .env import env_float, env_or_default, require_env_vars
from .errors import ConfigurationError

DEFAULT_INTERNAL_EID_SYSTEM: Final[str] = (
    "http://hapifhir.io/fhir/NamingSystem/empi-person-enterprise-id"
)
SYSTEM_MDM_MANAGED: Final[str] = "https://hapifhir.org/NamingSystem/managing-mdm-system"
CODE_HAPI_MDM_MANAGED: Final[str] = "HAPI-MDM"
DISPLAY_HAPI_MDM_MANAGED: Final[str] = (
    "This Golden Resource can only be modified by Smile CDR's MDM system."
)
DEFAULT_DUPLICATE_SCORE_THRESHOLD: Final[float] = 0.85


@dataclass(frozen=True, slots=True)
class MdmConfig:
    """Injected into every MDM component at construction."""

    enterprise_eid_system: str
    internal_eid_system: str = DEFAULT_INTERNAL_EID_SYSTEM
    managed_tag_system: str = SYSTEM_MDM_MANAGED
    managed_tag_code: str = CODE_HAPI_MDM_MANAGED
    managed_tag_display: str = DISPLAY_HAPI_MDM_MANAGED
    schema_version: SchemaVersion = SchemaVersion.R4
    duplicate_score_threshold: float = DEFAULT_DUPLICATE_SCORE_THRESHOLD

    def __post_init__(self) -> None:
        if self.enterprise_eid_system == self.internal_eid_system:
            raise ConfigurationError(
                "enterprise_eid_system and internal_eid_system must differ"
            )
        if not 0.0 <= self.duplicate_score_threshold <= 1.0:
            raise ConfigurationError("duplicate_score_threshold must be within [0, 1]")


def _parse_schema_version(raw: str) -> SchemaVersion:
    try:
        return SchemaVersion(raw.upper())
    except ValueError as exc:
        supported = ", ".join(version.value for version in SchemaVersion)
        raise ConfigurationError(
            f"Unsupported schema version {raw!r} (supported: {supported})"
        ) from exc


def get_mdm_config() -> MdmConfig:
    values = require_env_vars(("GOLDENLINK_EID_SYSTEM",))
    return MdmConfig(
        enterprise_eid_system=values["GOLDENLINK_EID_SYSTEM"],
        internal_eid_system=env_or_default(
            "GOLDENLINK_INTERNAL_EID_SYSTEM", DEFAULT_INTERNAL_EID_SYSTEM
        ),
        schema_version=_parse_schema_version(
            env_or_default("GOLDENLINK_SCHEMA_VERSION", SchemaVersion.R4.value)
        ),
        duplicate_score_threshold=env_float(
            "GOLDENLINK_DUPLICATE_SCORE_THRESHOLD", DEFAULT_DUPLICATE_SCORE_THRESHOLD
        ),
    )
