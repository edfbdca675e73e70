"""Time-boxed, single-flight cache of the normalised upstream snapshot.

The cache is an explicit object handed to whoever needs it. Lifecycle:

* empty at construction;
* the first ``get_snapshot()`` runs the loader and commits a ``Snapshot``;
* reads within ``ttl_seconds`` return the committed snapshot without I/O;
* a stale read triggers one refresh shared by all concurrent callers;
* a failed refresh never replaces a committed snapshot. ``get_snapshot()``
  then serves the previous snapshot flagged ``stale=True``;
* ``invalidate()`` expires the snapshot so the next read refetches, even
  when the invalidation lands while a refresh is still in flight.

The committed snapshot is only ever swapped whole, under ``_lock``.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import replace
from datetime import datetime
from typing import Callable, Protocol

from beachwatch.common.errors import BeachwatchError
from beachwatch.common.ids import generate_refresh_id
from beachwatch.common.logging import get_logger, log_event
from beachwatch.common.models import NormalizedWaterQualityData, Snapshot
from beachwatch.common.time_utils import utc_now

logger = get_logger("cache")


class LoadResult(Protocol):
    records: tuple[NormalizedWaterQualityData, ...]
    sources: tuple[str, ...]
    payloads: dict[str, dict]
    failed_sources: tuple[str, ...]


class SnapshotCache:
    def __init__(
        self,
        loader: Callable[[str], LoadResult],
        *,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._loader = loader
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.Lock()
        self._snapshot: Snapshot | None = None
        self._committed_at: float | None = None
        self._invalidated = False
        self._generation = 0
        self._inflight: Future | None = None

    def _is_fresh(self) -> bool:
        if self._snapshot is None or self._committed_at is None or self._invalidated:
            return False
        return self._clock() - self._committed_at < self.ttl_seconds

    def age_seconds(self) -> float | None:
        with self._lock:
            if self._committed_at is None:
                return None
            return max(0.0, self._clock() - self._committed_at)

    def peek(self) -> Snapshot | None:
        return self._snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._invalidated = True
            self._generation += 1
        log_event(logger, "cache invalidated", component="cache", event="CACHE_INVALIDATED", status="ok")

    def get_snapshot(self) -> Snapshot:
        try:
            return self._refresh(force=False)
        except BeachwatchError as exc:
            with self._lock:
                previous = self._snapshot
                committed_at = self._committed_at
            if previous is None or committed_at is None:
                raise
            age = max(0.0, self._clock() - committed_at)
            log_event(
                logger,
                f"serving stale snapshot aged {age:.0f}s after refresh failure: {exc}",
                level=logging.WARNING,
                component="cache",
                event="STALE_SERVED",
                status="stale",
                error_code=exc.error_code,
            )
            return replace(previous, stale=True, age_seconds=age, error=str(exc))

    def refresh(self) -> Snapshot:
        """Refetch now, joining a refresh that is already in flight."""
        return self._refresh(force=True)

    def _refresh(self, *, force: bool) -> Snapshot:
        with self._lock:
            if not force and self._is_fresh():
                return self._snapshot
            future = self._inflight
            leader = future is None
            if leader:
                future = Future()
                self._inflight = future
                started_generation = self._generation

        if not leader:
            return future.result()

        try:
            snapshot = self._load()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
            future.set_exception(exc)
            raise

        with self._lock:
            self._snapshot = snapshot
            self._committed_at = self._clock()
            # An invalidate() that landed mid-refresh still expires this snapshot.
            self._invalidated = self._generation != started_generation
            self._inflight = None
        future.set_result(snapshot)
        return snapshot

    def _load(self) -> Snapshot:
        refresh_id = generate_refresh_id()
        started = time.monotonic()
        log_event(logger, "refresh start", refresh_id=refresh_id, component="cache", event="REFRESH_START", status="ok")
        try:
            result = self._loader(refresh_id)
        except BeachwatchError as exc:
            log_event(
                logger,
                f"refresh failed: {exc}",
                level=logging.ERROR,
                refresh_id=refresh_id,
                component="cache",
                event="REFRESH_FAIL",
                status="error",
                duration_ms=int((time.monotonic() - started) * 1000),
                error_code=exc.error_code,
            )
            raise
        log_event(
            logger,
            "refresh committed",
            refresh_id=refresh_id,
            component="cache",
            event="REFRESH_OK",
            status="partial" if result.failed_sources else "ok",
            duration_ms=int((time.monotonic() - started) * 1000),
            records_out=len(result.records),
        )
        return Snapshot(
            records=tuple(result.records),
            sources=tuple(result.sources),
            fetched_at=self._wall_clock(),
            payloads=dict(result.payloads),
            failed_sources=tuple(result.failed_sources),
        )
