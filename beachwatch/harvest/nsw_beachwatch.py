"""NSW Beachwatch harvest: fetch, validate and normalise the site GeoJSON."""

from __future__ import annotations

from beachwatch.common.constants import SOURCE_NSW_BEACHWATCH
from beachwatch.common.errors import ValidationError
from beachwatch.common.http import HttpClient
from beachwatch.common.models import BeachwatchFeatureCollection, SourceResult
from beachwatch.common.schema import safe_validate_beachwatch_payload
from beachwatch.pipeline.normalise import normalise_beachwatch_collection


def fetch_beachwatch_payload(client: HttpClient, url: str) -> BeachwatchFeatureCollection:
    raw = client.get_json(url)
    result = safe_validate_beachwatch_payload(raw)
    if not result.success:
        raise ValidationError(f"Invalid data format from NSW Beachwatch API: {result.error}")
    return result.data


def run_beachwatch_harvest(client: HttpClient, url: str) -> SourceResult:
    payload = fetch_beachwatch_payload(client, url)
    normalised = normalise_beachwatch_collection(payload)
    return SourceResult(
        source=SOURCE_NSW_BEACHWATCH,
        records=normalised.records,
        payload=payload.to_dict(),
        rejected_count=normalised.rejected_count,
    )
