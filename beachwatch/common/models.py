"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from beachwatch.common.constants import ENTEROCOCCI_UNIT


@dataclass(frozen=True)
class BeachwatchProperties:
    id: str
    site_name: str
    pollution_forecast: str
    pollution_forecast_timestamp: str
    latest_result: str
    latest_result_rating: int
    latest_result_observation_date: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "siteName": self.site_name,
            "pollutionForecast": self.pollution_forecast,
            "pollutionForecastTimeStamp": self.pollution_forecast_timestamp,
            "latestResult": self.latest_result,
            "latestResultRating": self.latest_result_rating,
            "latestResultObservationDate": self.latest_result_observation_date,
        }


@dataclass(frozen=True)
class BeachwatchFeature:
    longitude: float
    latitude: float
    properties: BeachwatchProperties

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [self.longitude, self.latitude]},
            "properties": self.properties.to_dict(),
        }


@dataclass(frozen=True)
class BeachwatchFeatureCollection:
    features: tuple[BeachwatchFeature, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": [f.to_dict() for f in self.features]}


@dataclass(frozen=True)
class VicEpaReading:
    site_id: str
    site_name: str
    latitude: float
    longitude: float
    sample_date: str
    enterococci_cfu_100ml: float
    monitoring_program: str | None = None


@dataclass(frozen=True)
class BeachLocation:
    id: str
    name: str
    state: str
    latitude: float
    longitude: float
    region: str | None = None
    local_government_area: str | None = None
    beach_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "region": self.region,
            "localGovernmentArea": self.local_government_area,
            "beachType": self.beach_type,
        }


@dataclass(frozen=True)
class EnterococciRecord:
    id: str
    location_id: str
    sample_date: str
    enterococci_value: float
    quality_rating: str
    source: str
    unit: str = ENTEROCOCCI_UNIT
    pollution_forecast: str | None = None
    pollution_forecast_timestamp: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "locationId": self.location_id,
            "sampleDate": self.sample_date,
            "enterococciValue": self.enterococci_value,
            "unit": self.unit,
            "qualityRating": self.quality_rating,
            "source": self.source,
        }
        if self.pollution_forecast is not None:
            out["pollutionForecast"] = self.pollution_forecast
        if self.pollution_forecast_timestamp is not None:
            out["pollutionForecastTimeStamp"] = self.pollution_forecast_timestamp
        return out


@dataclass(frozen=True)
class WaterQualityStatistics:
    average: float
    median: float
    min: float
    max: float
    sample_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "average": self.average,
            "median": self.median,
            "min": self.min,
            "max": self.max,
            "sampleCount": self.sample_count,
        }


@dataclass(frozen=True)
class NormalizedWaterQualityData:
    location: BeachLocation
    latest_reading: EnterococciRecord
    historical_readings: tuple[EnterococciRecord, ...]
    statistics: WaterQualityStatistics

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "latestReading": self.latest_reading.to_dict(),
            "historicalReadings": [r.to_dict() for r in self.historical_readings],
            "statistics": self.statistics.to_dict(),
        }


@dataclass(frozen=True)
class NormaliseResult:
    records: tuple[NormalizedWaterQualityData, ...]
    rejected_count: int = 0
    rejected_samples: tuple[str, ...] = ()


@dataclass(frozen=True)
class SourceResult:
    """One source's contribution to a refresh cycle."""

    source: str
    records: tuple[NormalizedWaterQualityData, ...]
    payload: dict[str, Any] | None = None
    rejected_count: int = 0


@dataclass(frozen=True)
class Snapshot:
    records: tuple[NormalizedWaterQualityData, ...]
    sources: tuple[str, ...]
    fetched_at: datetime
    payloads: dict[str, dict[str, Any]] = field(default_factory=dict)
    failed_sources: tuple[str, ...] = ()
    stale: bool = False
    age_seconds: float = 0.0
    error: str | None = None
