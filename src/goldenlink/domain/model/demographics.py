"""Immutable demographic value objects copied from source records onto golden records.

Each value knows how to round-trip through a JSON-compatible mapping so the
persistence adapter can store lists of them in a single column.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Self

from .enums import AssuranceLevel


def _strings(data: dict[str, Any], key: str) -> tuple[str, ...]:
    raw = data.get(key) or ()
    return tuple(str(item) for item in raw)


@dataclass(frozen=True, slots=True, kw_only=True)
class HumanName:
    family: str | None = None
    given: tuple[str, ...] = ()
    prefix: tuple[str, ...] = ()
    suffix: tuple[str, ...] = ()
    text: str | None = None
    use: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "family": self.family,
            "given": list(self.given),
            "prefix": list(self.prefix),
            "suffix": list(self.suffix),
            "text": self.text,
            "use": self.use,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        return cls(
            family=data.get("family"),
            given=_strings(data, "given"),
            prefix=_strings(data, "prefix"),
            suffix=_strings(data, "suffix"),
            text=data.get("text"),
            use=data.get("use"),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Address:
    line: tuple[str, ...] = ()
    city: str | None = None
    district: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    use: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "line": list(self.line),
            "city": self.city,
            "district": self.district,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "use": self.use,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        return cls(
            line=_strings(data, "line"),
            city=data.get("city"),
            district=data.get("district"),
            state=data.get("state"),
            postal_code=data.get("postal_code"),
            country=data.get("country"),
            use=data.get("use"),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ContactPoint:
    system: str | None = None
    value: str | None = None
    use: str | None = None
    rank: int | None = None

    def to_json(self) -> dict[str, Any]:
        return {"system": self.system, "value": self.value, "use": self.use, "rank": self.rank}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        rank = data.get("rank")
        return cls(
            system=data.get("system"),
            value=data.get("value"),
            use=data.get("use"),
            rank=int(rank) if rank is not None else None,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Attachment:
    content_type: str | None = None
    url: str | None = None
    title: str | None = None
    data: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "content_type": self.content_type,
            "url": self.url,
            "title": self.title,
            "data": self.data,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        return cls(
            content_type=data.get("content_type"),
            url=data.get("url"),
            title=data.get("title"),
            data=data.get("data"),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Coding:
    system: str
    code: str
    display: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {"system": self.system, "code": self.code, "display": self.display}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        return cls(system=str(data["system"]), code=str(data["code"]), display=data.get("display"))


@dataclass(frozen=True, slots=True, kw_only=True)
class PersonLink:
    """Link component carried on a golden record: target reference plus assurance."""

    target: str
    assurance: AssuranceLevel | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "assurance": self.assurance.value if self.assurance is not None else None,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        assurance = data.get("assurance")
        return cls(
            target=str(data["target"]),
            assurance=AssuranceLevel(assurance) if assurance is not None else None,
        )
