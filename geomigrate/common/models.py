"""Data models used across the migration."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

SOURCE_FIELDS = ("city", "state", "zipcode", "zone", "fa_station", "country")
UPSERT_KEY_FIELDS = (*SOURCE_FIELDS, "place_id")


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class SourceRecord:
    city: str
    state: str
    zipcode: str
    zone: str
    fa_station: str
    country: str

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "SourceRecord":
        return cls(**{field: _as_text(document.get(field)) for field in SOURCE_FIELDS})


@dataclass(frozen=True)
class GeocodeResult:
    lat: float
    lng: float
    place_id: str


@dataclass(frozen=True)
class TargetRecord:
    city: str
    state: str
    zipcode: str
    zone: str
    fa_station: str
    country: str
    place_id: str
    lng: float
    lat: float

    def to_document(self) -> dict[str, Any]:
        doc = asdict(self)
        lng = doc.pop("lng")
        lat = doc.pop("lat")
        doc["location"] = {"type": "Point", "coordinates": [lng, lat]}
        return doc
