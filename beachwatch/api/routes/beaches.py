"""Beach listing with server-side search, letter filter, sort and pagination."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from beachwatch.api.dependencies import cache_control, get_config, get_service, split_csv
from beachwatch.common.config_loader import AppConfig
from beachwatch.common.errors import QueryValidationError
from beachwatch.pipeline.query import QueryParams
from beachwatch.pipeline.service import BeachDataService

beaches_router = APIRouter(prefix="/api/beaches", tags=["beaches"])


@beaches_router.get("")
def list_beaches(
    response: Response,
    search: Optional[str] = Query(None, description="Case-insensitive substring of the beach name."),
    letter: Optional[str] = Query(None, description="Single letter the beach name starts with."),
    region: Optional[str] = Query(None, description="Comma-separated list of regions."),
    sort: str = Query("asc", description="Name order, asc or desc."),
    page: int = Query(1, description="1-indexed page number."),
    limit: Optional[int] = Query(None, description="Page size; defaults to the configured limit."),
    service: BeachDataService = Depends(get_service),
    config: AppConfig = Depends(get_config),
):
    """
    List beaches with the latest reading for each.

    Filters apply in order search, letter, region; then the result is sorted
    by name and paginated. ``metadata.total`` counts matches before paging.
    """
    page_size = config.query.default_limit if limit is None else limit
    if page_size > config.query.max_limit:
        raise QueryValidationError(f"limit must not exceed {config.query.max_limit}")

    params = QueryParams(
        search=search,
        letter=letter,
        regions=split_csv(region),
        sort=sort,
        page=page,
        limit=page_size,
    )
    result, snapshot = service.query(params)

    response.headers["Cache-Control"] = cache_control(
        config.cache.beaches_max_age_seconds, config.cache.stale_while_revalidate_seconds
    )
    return {
        "data": [item.to_dict() for item in result.items],
        "metadata": {
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
            "totalPages": result.total_pages,
            "filters": {
                "search": search or None,
                "letter": letter or None,
                "region": region or None,
                "sort": sort,
            },
            "stale": snapshot.stale,
            "ageSeconds": round(service.age_seconds(snapshot), 3),
        },
    }


@beaches_router.get("/letters")
def list_letters(service: BeachDataService = Depends(get_service)):
    """Initial letters that have at least one beach, for the alphabet index."""
    letters, snapshot = service.available_letters()
    return {"letters": letters, "total": len(snapshot.records)}
