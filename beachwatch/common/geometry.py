"""Geometry helpers."""

from __future__ import annotations

import math


def lat_lon_from_lon_lat(coordinates: tuple[float, float] | list[float]) -> tuple[float, float]:
    """GeoJSON positions are ``[longitude, latitude]``; return ``(latitude, longitude)``."""
    longitude, latitude = coordinates
    return float(latitude), float(longitude)


def valid_lat_lon(lat: float | None, lon: float | None) -> bool:
    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180
