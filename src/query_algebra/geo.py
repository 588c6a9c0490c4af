"""Geographic point value type."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """A WGS84 coordinate in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    def distance_km(self, other: GeoPoint, *, radius_km: float = 6371.0088) -> float:
        """Great-circle (haversine) distance to *other*."""
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        d_lat = lat2 - lat1
        d_lon = math.radians(other.longitude - self.longitude)
        a = (
            math.sin(d_lat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
        )
        return 2 * radius_km * math.asin(min(1.0, math.sqrt(a)))

    def to_geojson(self) -> dict[str, object]:
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}
