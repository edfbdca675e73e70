"""Public water-quality data API."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from beachwatch.api.dependencies import cache_control, get_config, get_service, split_csv
from beachwatch.common.config_loader import AppConfig
from beachwatch.common.constants import SOURCE_NSW_BEACHWATCH
from beachwatch.common.errors import FetchError
from beachwatch.common.time_utils import utc_timestamp_iso
from beachwatch.pipeline.query import QueryParams
from beachwatch.pipeline.service import BeachDataService

beach_data_router = APIRouter(prefix="/api", tags=["beach-data"])


def _filter_params(state: Optional[str], quality: Optional[str], source: Optional[str]) -> QueryParams:
    return QueryParams(
        states=split_csv(state),
        quality_ratings=split_csv(quality),
        sources=split_csv(source),
    )


@beach_data_router.get("/beach-data")
def get_beach_data(
    response: Response,
    state: Optional[str] = Query(None, description="Comma-separated states, e.g. NSW,VIC."),
    quality: Optional[str] = Query(None, description="Comma-separated quality ratings."),
    source: Optional[str] = Query(None, description="Comma-separated data sources."),
    limit: Optional[int] = Query(None, gt=0, description="Maximum number of records to return."),
    service: BeachDataService = Depends(get_service),
    config: AppConfig = Depends(get_config),
):
    """Normalised records from every enabled source, merged and filtered."""
    filtered, snapshot = service.filtered(_filter_params(state, quality, source))
    limited = filtered[:limit] if limit else filtered

    response.headers["Cache-Control"] = cache_control(
        config.cache.beach_data_max_age_seconds, config.cache.stale_while_revalidate_seconds
    )
    return {
        "success": True,
        "data": [item.to_dict() for item in limited],
        "metadata": {
            "total": len(limited),
            "filtered": len(filtered),
            "unfiltered": len(snapshot.records),
            "timestamp": utc_timestamp_iso(),
            "fetchedAt": snapshot.fetched_at.isoformat(timespec="milliseconds"),
            "sources": list(snapshot.sources),
            "failedSources": list(snapshot.failed_sources),
            "stale": snapshot.stale,
            "ageSeconds": round(service.age_seconds(snapshot), 3),
        },
    }


@beach_data_router.get("/beach-data/summary")
def get_beach_data_summary(
    state: Optional[str] = Query(None),
    quality: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    service: BeachDataService = Depends(get_service),
):
    return service.summary(_filter_params(state, quality, source))


@beach_data_router.get("/nsw-beachwatch")
def get_nsw_beachwatch(
    response: Response,
    service: BeachDataService = Depends(get_service),
    config: AppConfig = Depends(get_config),
):
    """Validated NSW Beachwatch GeoJSON, proxied from the cached snapshot."""
    snapshot = service.get_snapshot()
    payload = snapshot.payloads.get(SOURCE_NSW_BEACHWATCH)
    if payload is None:
        raise FetchError("NSW Beachwatch data is not available in the current snapshot")
    response.headers["Cache-Control"] = cache_control(
        int(config.cache.ttl_seconds), config.cache.stale_while_revalidate_seconds
    )
    return payload
