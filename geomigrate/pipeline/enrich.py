"""Map a source record and its geocode into the target document shape."""

from __future__ import annotations

from geomigrate.common.models import GeocodeResult, SourceRecord, TargetRecord


def enrich(source: SourceRecord, geocode: GeocodeResult) -> TargetRecord:
    return TargetRecord(
        city=f"{source.city}, {source.state}",
        state=source.state,
        zipcode=source.zipcode,
        zone=source.zone,
        fa_station=source.fa_station,
        country=source.country,
        place_id=geocode.place_id,
        lng=geocode.lng,
        lat=geocode.lat,
    )
