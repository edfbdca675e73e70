"""Service facade used by the API and the CLI."""

from __future__ import annotations

from beachwatch.common.config_loader import AppConfig
from beachwatch.common.http import HttpClient
from beachwatch.common.models import NormalizedWaterQualityData, Snapshot
from beachwatch.harvest.runner import build_harvest_loader
from beachwatch.pipeline.cache import SnapshotCache
from beachwatch.pipeline.query import (
    QueryParams,
    QueryResult,
    available_letters,
    filter_collection,
    query,
    summary_statistics,
)


class BeachDataService:
    def __init__(self, cache: SnapshotCache) -> None:
        self.cache = cache

    def get_snapshot(self) -> Snapshot:
        return self.cache.get_snapshot()

    def invalidate(self) -> None:
        self.cache.invalidate()

    def get_filtered_data(self, params: QueryParams | None = None) -> list[NormalizedWaterQualityData]:
        items, _snapshot = self.filtered(params)
        return items

    def filtered(self, params: QueryParams | None = None) -> tuple[list[NormalizedWaterQualityData], Snapshot]:
        """Filter one snapshot and return it alongside the matches."""
        snapshot = self.get_snapshot()
        return filter_collection(snapshot.records, params or QueryParams()), snapshot

    def age_seconds(self, snapshot: Snapshot) -> float:
        if snapshot.stale:
            return snapshot.age_seconds
        return self.cache.age_seconds() or 0.0

    def query(self, params: QueryParams) -> tuple[QueryResult, Snapshot]:
        snapshot = self.get_snapshot()
        return query(snapshot.records, params), snapshot

    def available_letters(self) -> tuple[list[str], Snapshot]:
        snapshot = self.get_snapshot()
        return available_letters(snapshot.records), snapshot

    def summary(self, params: QueryParams | None = None) -> dict:
        return summary_statistics(self.get_filtered_data(params))


def build_service(config: AppConfig, client: HttpClient | None = None) -> BeachDataService:
    client = client or HttpClient(timeout=config.timeout, retry=config.retry)
    cache = SnapshotCache(build_harvest_loader(config, client), ttl_seconds=config.cache.ttl_seconds)
    return BeachDataService(cache)
