from __future__ import annotations

import pytest

from beachwatch.common.models import BeachLocation, EnterococciRecord, NormalizedWaterQualityData
from beachwatch.pipeline.normalise import compute_statistics


def _feature(
    site_id: str = "123",
    name: str = "Bondi Beach",
    lon: float = 151.27,
    lat: float = -33.89,
    rating: int = 4,
    observed: str = "2024-01-02T00:00:00Z",
) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": {
            "id": site_id,
            "siteName": name,
            "pollutionForecast": "Unlikely",
            "pollutionForecastTimeStamp": "2024-01-01T00:00:00Z",
            "latestResult": "Good",
            "latestResultRating": rating,
            "latestResultObservationDate": observed,
        },
    }


def _record(
    name: str,
    *,
    state: str = "NSW",
    region: str | None = "New South Wales",
    rating: str = "good",
    source: str = "nsw_beachwatch",
    sample_date: str = "2024-01-02T00:00:00Z",
    value: float = 0,
    beach_type: str | None = None,
) -> NormalizedWaterQualityData:
    loc_id = f"test-{name.lower().replace(' ', '-')}"
    reading = EnterococciRecord(
        id=f"{loc_id}-{sample_date}",
        location_id=loc_id,
        sample_date=sample_date,
        enterococci_value=value,
        quality_rating=rating,
        source=source,
    )
    return NormalizedWaterQualityData(
        location=BeachLocation(
            id=loc_id,
            name=name,
            state=state,
            latitude=-33.0,
            longitude=151.0,
            region=region,
            beach_type=beach_type,
        ),
        latest_reading=reading,
        historical_readings=(reading,),
        statistics=compute_statistics((reading,)),
    )


@pytest.fixture
def make_feature():
    return _feature


@pytest.fixture
def make_payload():
    def _payload(*features: dict) -> dict:
        return {"type": "FeatureCollection", "features": list(features)}

    return _payload


@pytest.fixture
def make_record():
    return _record
