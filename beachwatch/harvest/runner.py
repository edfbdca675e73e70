"""Harvest orchestration with fail-soft semantics across sources."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from beachwatch.common.config_loader import AppConfig
from beachwatch.common.constants import SOURCE_NSW_BEACHWATCH, SOURCE_VIC_EPA
from beachwatch.common.errors import BeachwatchError, ConfigError
from beachwatch.common.http import HttpClient
from beachwatch.common.logging import get_logger, log_event
from beachwatch.common.models import NormalizedWaterQualityData, SourceResult
from beachwatch.harvest.nsw_beachwatch import run_beachwatch_harvest
from beachwatch.harvest.vic_epa import run_vic_epa_harvest
from beachwatch.pipeline.normalise import merge_sources

logger = get_logger("harvest")


@dataclass(frozen=True)
class HarvestResult:
    records: tuple[NormalizedWaterQualityData, ...]
    sources: tuple[str, ...]
    payloads: dict[str, dict]
    failed_sources: tuple[str, ...] = ()


def _harvesters() -> dict[str, Callable[[HttpClient, str], SourceResult]]:
    return {
        SOURCE_NSW_BEACHWATCH: run_beachwatch_harvest,
        SOURCE_VIC_EPA: run_vic_epa_harvest,
    }


def run_harvest(config: AppConfig, client: HttpClient, *, refresh_id: str | None = None) -> HarvestResult:
    enabled = config.enabled_sources
    if not enabled:
        raise ConfigError("No data sources are enabled")

    harvesters = _harvesters()
    results: list[SourceResult] = []
    failures: list[tuple[str, BeachwatchError]] = []

    for source in enabled:
        harvest = harvesters.get(source.name)
        if harvest is None:
            raise ConfigError(f"No harvester registered for source {source.name}")
        started = time.monotonic()
        try:
            result = harvest(client, source.url)
        except BeachwatchError as exc:
            failures.append((source.name, exc))
            log_event(
                logger,
                f"source {source.name} failed: {exc}",
                level=logging.WARNING,
                refresh_id=refresh_id,
                component="harvest",
                source=source.name,
                event="SOURCE_FAIL",
                status="error",
                duration_ms=int((time.monotonic() - started) * 1000),
                error_code=exc.error_code,
            )
            continue
        results.append(result)
        log_event(
            logger,
            f"source {source.name} harvested",
            refresh_id=refresh_id,
            component="harvest",
            source=source.name,
            event="SOURCE_OK",
            status="ok",
            duration_ms=int((time.monotonic() - started) * 1000),
            records_in=len(result.records) + result.rejected_count,
            records_out=len(result.records),
        )

    if not results:
        # Every enabled source failed: re-raise the first error unchanged.
        raise failures[0][1]

    return HarvestResult(
        records=merge_sources(*(result.records for result in results)),
        sources=tuple(result.source for result in results),
        payloads={result.source: result.payload for result in results if result.payload is not None},
        failed_sources=tuple(name for name, _exc in failures),
    )


def build_harvest_loader(config: AppConfig, client: HttpClient) -> Callable[[str], HarvestResult]:
    def _load(refresh_id: str) -> HarvestResult:
        return run_harvest(config, client, refresh_id=refresh_id)

    return _load
