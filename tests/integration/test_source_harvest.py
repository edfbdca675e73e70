from __future__ import annotations

import pytest

from beachwatch.common.errors import UpstreamServerError, ValidationError
from beachwatch.harvest.nsw_beachwatch import fetch_beachwatch_payload, run_beachwatch_harvest
from beachwatch.harvest.vic_epa import run_vic_epa_harvest


class FakeHttpClient:
    def __init__(self, payload=None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.urls: list[str] = []

    def get_json(self, url: str, **_kwargs):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.mark.integration
def test_beachwatch_harvest_validates_and_normalises(make_feature, make_payload):
    raw = make_payload(
        make_feature(site_id="2", name="Manly", rating=3),
        make_feature(site_id="1", name="Bondi Beach", rating=4),
    )
    client = FakeHttpClient(raw)

    result = run_beachwatch_harvest(client, "https://nsw.example.test")

    assert client.urls == ["https://nsw.example.test"]
    assert result.source == "nsw_beachwatch"
    assert [item.location.id for item in result.records] == ["nsw-2", "nsw-1"]
    assert [item.latest_reading.quality_rating for item in result.records] == ["fair", "good"]
    assert result.payload == raw
    assert result.rejected_count == 0


@pytest.mark.integration
def test_beachwatch_harvest_rejects_malformed_payload(make_feature, make_payload):
    raw = make_payload(make_feature())
    raw["features"][0]["properties"]["latestResultRating"] = "good"

    with pytest.raises(ValidationError) as excinfo:
        fetch_beachwatch_payload(FakeHttpClient(raw), "https://nsw.example.test")

    assert str(excinfo.value).startswith("Invalid data format from NSW Beachwatch API: features[0]")


@pytest.mark.integration
def test_beachwatch_harvest_propagates_fetch_errors():
    with pytest.raises(UpstreamServerError):
        run_beachwatch_harvest(FakeHttpClient(error=UpstreamServerError("503")), "https://nsw.example.test")


@pytest.mark.integration
def test_vic_epa_harvest():
    rows = [
        {
            "site_id": "S1",
            "site_name": "St Kilda",
            "latitude": -37.86,
            "longitude": 144.97,
            "sample_date": "2024-01-02",
            "enterococci_cfu_100ml": 35,
        },
        {
            "site_id": "S1",
            "site_name": "St Kilda",
            "latitude": -37.86,
            "longitude": 144.97,
            "sample_date": "2024-01-01",
            "enterococci_cfu_100ml": 700,
        },
    ]

    result = run_vic_epa_harvest(FakeHttpClient(rows), "https://vic.example.test")

    assert result.source == "vic_epa"
    assert len(result.records) == 1
    assert result.records[0].latest_reading.quality_rating == "excellent"
    assert result.records[0].statistics.max == 700


@pytest.mark.integration
def test_vic_epa_harvest_rejects_malformed_rows():
    with pytest.raises(ValidationError):
        run_vic_epa_harvest(FakeHttpClient({"rows": []}), "https://vic.example.test")
