"""Normalise source-specific payloads into ``NormalizedWaterQualityData``.

Everything here is pure: no I/O, no clock reads. Normalising the same input
twice gives equal output.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable

from beachwatch.common.constants import (
    MAX_HISTORICAL_READINGS,
    MAX_REJECTED_SAMPLES,
    NSW_REGION,
    NSW_STATE,
    SOURCE_NSW_BEACHWATCH,
    SOURCE_VIC_EPA,
    VIC_REGION,
    VIC_STATE,
)
from beachwatch.common.deterministic import name_key, stable_sorted
from beachwatch.common.errors import ValidationError
from beachwatch.common.geometry import lat_lon_from_lon_lat, valid_lat_lon
from beachwatch.common.ids import location_id, record_id
from beachwatch.common.logging import get_logger, log_event
from beachwatch.common.models import (
    BeachLocation,
    BeachwatchFeature,
    BeachwatchFeatureCollection,
    EnterococciRecord,
    NormaliseResult,
    NormalizedWaterQualityData,
    VicEpaReading,
    WaterQualityStatistics,
)
from beachwatch.common.ratings import classifier_for
from beachwatch.common.time_utils import try_parse_iso_timestamp

logger = get_logger("normalise")

NSW_ID_PREFIX = "nsw"
VIC_ID_PREFIX = "vic"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _checked_location(**fields) -> BeachLocation:
    lat = fields["latitude"]
    lon = fields["longitude"]
    if not valid_lat_lon(lat, lon):
        raise ValidationError(f"location {fields['id']}: coordinates out of range")
    return BeachLocation(**fields)


def compute_statistics(readings: Iterable[EnterococciRecord]) -> WaterQualityStatistics:
    unique: dict[str, EnterococciRecord] = {}
    for reading in readings:
        unique.setdefault(reading.id, reading)
    values = sorted(reading.enterococci_value for reading in unique.values())
    if not values:
        return WaterQualityStatistics(average=0, median=0, min=0, max=0, sample_count=0)
    return WaterQualityStatistics(
        average=sum(values) / len(values),
        median=values[len(values) // 2],
        min=values[0],
        max=values[-1],
        sample_count=len(values),
    )


def _sample_sort_key(reading: EnterococciRecord):
    return try_parse_iso_timestamp(reading.sample_date) or _EPOCH


def build_location_data(
    location: BeachLocation,
    readings: Iterable[EnterococciRecord],
) -> NormalizedWaterQualityData:
    unique: dict[str, EnterococciRecord] = {}
    for reading in readings:
        unique.setdefault(reading.id, reading)
    if not unique:
        raise ValidationError(f"location {location.id}: no readings")
    ordered = stable_sorted(unique.values(), key=_sample_sort_key, reverse=True)
    latest = ordered[0]
    history = tuple(ordered[:MAX_HISTORICAL_READINGS])
    return NormalizedWaterQualityData(
        location=location,
        latest_reading=latest,
        historical_readings=history,
        statistics=compute_statistics((latest, *history)),
    )


def normalise_beachwatch_feature(feature: BeachwatchFeature) -> NormalizedWaterQualityData:
    props = feature.properties
    latitude, longitude = lat_lon_from_lon_lat((feature.longitude, feature.latitude))
    loc_id = location_id(NSW_ID_PREFIX, props.id)
    location = _checked_location(
        id=loc_id,
        name=props.site_name,
        state=NSW_STATE,
        latitude=latitude,
        longitude=longitude,
        region=NSW_REGION,
    )
    classify = classifier_for(SOURCE_NSW_BEACHWATCH)
    latest = EnterococciRecord(
        id=record_id(loc_id, props.latest_result_observation_date),
        location_id=loc_id,
        sample_date=props.latest_result_observation_date,
        # Beachwatch publishes a category only, no concentration.
        enterococci_value=0,
        quality_rating=classify(props.latest_result_rating),
        source=SOURCE_NSW_BEACHWATCH,
        pollution_forecast=props.pollution_forecast,
        pollution_forecast_timestamp=props.pollution_forecast_timestamp,
    )
    return NormalizedWaterQualityData(
        location=location,
        latest_reading=latest,
        historical_readings=(latest,),
        statistics=compute_statistics((latest,)),
    )


def _log_rejections(source: str, rejected: list[str], total: int) -> None:
    if not rejected:
        return
    log_event(
        logger,
        f"rejected {len(rejected)} of {total} {source} records",
        level=logging.WARNING,
        component="normalise",
        source=source,
        event="NORMALISE_REJECT",
        status="partial",
        records_in=total,
        records_out=total - len(rejected),
    )


def normalise_beachwatch_collection(payload: BeachwatchFeatureCollection) -> NormaliseResult:
    records: list[NormalizedWaterQualityData] = []
    rejected: list[str] = []
    for feature in payload.features:
        try:
            records.append(normalise_beachwatch_feature(feature))
        except ValidationError:
            rejected.append(feature.properties.id)
    _log_rejections(SOURCE_NSW_BEACHWATCH, rejected, len(payload.features))
    return NormaliseResult(
        records=tuple(records),
        rejected_count=len(rejected),
        rejected_samples=tuple(rejected[:MAX_REJECTED_SAMPLES]),
    )


def normalise_vic_epa_rows(rows: Iterable[VicEpaReading]) -> NormaliseResult:
    classify = classifier_for(SOURCE_VIC_EPA)
    grouped: dict[str, list[VicEpaReading]] = defaultdict(list)
    for row in rows:
        grouped[row.site_id].append(row)

    records: list[NormalizedWaterQualityData] = []
    rejected: list[str] = []
    for site_id, site_rows in grouped.items():
        loc_id = location_id(VIC_ID_PREFIX, site_id)
        first = site_rows[0]
        try:
            location = _checked_location(
                id=loc_id,
                name=first.site_name,
                state=VIC_STATE,
                latitude=first.latitude,
                longitude=first.longitude,
                region=VIC_REGION,
                beach_type="ocean",
            )
        except ValidationError:
            rejected.append(site_id)
            continue
        readings = [
            EnterococciRecord(
                id=record_id(loc_id, row.sample_date),
                location_id=loc_id,
                sample_date=row.sample_date,
                enterococci_value=row.enterococci_cfu_100ml,
                quality_rating=classify(row.enterococci_cfu_100ml),
                source=SOURCE_VIC_EPA,
            )
            for row in site_rows
        ]
        records.append(build_location_data(location, readings))

    _log_rejections(SOURCE_VIC_EPA, rejected, len(grouped))
    return NormaliseResult(
        records=tuple(records),
        rejected_count=len(rejected),
        rejected_samples=tuple(rejected[:MAX_REJECTED_SAMPLES]),
    )


def merge_sources(*collections: Iterable[NormalizedWaterQualityData]) -> tuple[NormalizedWaterQualityData, ...]:
    flat = [item for collection in collections for item in collection]
    return tuple(stable_sorted(flat, key=lambda item: name_key(item.location.name)))
