"""Filter, sort and paginate normalised records.

The same pipeline backs the dashboard data call, the REST listing and the
letter index, so every entry point filters identically. Steps run in a fixed
order: search, letter, set-membership filters, date range, sort, paginate.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence

from beachwatch.common.constants import BEACH_TYPES, DATA_SOURCES, QUALITY_RATINGS, SORT_ORDERS
from beachwatch.common.deterministic import name_key, stable_sorted
from beachwatch.common.errors import QueryValidationError
from beachwatch.common.models import NormalizedWaterQualityData
from beachwatch.common.time_utils import try_parse_iso_timestamp


@dataclass(frozen=True)
class QueryParams:
    search: str | None = None
    letter: str | None = None
    regions: tuple[str, ...] = ()
    states: tuple[str, ...] = ()
    quality_ratings: tuple[str, ...] = ()
    beach_types: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort: str | None = None
    page: int = 1
    limit: int | None = None


@dataclass(frozen=True)
class QueryResult:
    items: tuple[NormalizedWaterQualityData, ...]
    total: int
    page: int
    limit: int | None

    @property
    def total_pages(self) -> int:
        if self.limit is None:
            return 1 if self.total else 0
        return math.ceil(self.total / self.limit)


def validate_params(params: QueryParams) -> None:
    if params.page < 1:
        raise QueryValidationError(f"page must be >= 1, got {params.page}")
    if params.limit is not None and params.limit <= 0:
        raise QueryValidationError(f"limit must be a positive integer, got {params.limit}")
    if params.sort is not None and params.sort not in SORT_ORDERS:
        raise QueryValidationError(f"sort must be one of {', '.join(SORT_ORDERS)}")
    for name, values, allowed in (
        ("quality", params.quality_ratings, QUALITY_RATINGS),
        ("source", params.sources, DATA_SOURCES),
        ("beach_type", params.beach_types, BEACH_TYPES),
    ):
        unknown = sorted(set(values) - set(allowed))
        if unknown:
            raise QueryValidationError(f"unknown {name} value(s): {', '.join(unknown)}")
    if params.date_from and params.date_to and _aware(params.date_from) > _aware(params.date_to):
        raise QueryValidationError("date_from must not be after date_to")


def filter_by_search(items: Sequence[NormalizedWaterQualityData], search: str | None) -> list[NormalizedWaterQualityData]:
    if not search or not search.strip():
        return list(items)
    term = search.strip().casefold()
    return [item for item in items if term in item.location.name.casefold()]


def _valid_letter(letter: str | None) -> str | None:
    if not letter:
        return None
    stripped = letter.strip()
    if len(stripped) != 1 or not (stripped.isascii() and stripped.isalpha()):
        return None
    return stripped.casefold()


def filter_by_letter(items: Sequence[NormalizedWaterQualityData], letter: str | None) -> list[NormalizedWaterQualityData]:
    wanted = _valid_letter(letter)
    if wanted is None:
        return list(items)
    return [item for item in items if item.location.name[:1].casefold() == wanted]


def _member(value: str | None, allowed: tuple[str, ...]) -> bool:
    if not allowed:
        return True
    return value is not None and value in allowed


def filter_by_membership(
    items: Iterable[NormalizedWaterQualityData],
    params: QueryParams,
) -> list[NormalizedWaterQualityData]:
    return [
        item
        for item in items
        if _member(item.location.region, params.regions)
        and _member(item.location.state, params.states)
        and _member(item.latest_reading.quality_rating, params.quality_ratings)
        and _member(item.location.beach_type, params.beach_types)
        and _member(item.latest_reading.source, params.sources)
    ]


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def filter_by_date_range(
    items: Iterable[NormalizedWaterQualityData],
    date_from: datetime | None,
    date_to: datetime | None,
) -> list[NormalizedWaterQualityData]:
    if date_from is None and date_to is None:
        return list(items)
    date_from = _aware(date_from)
    date_to = _aware(date_to)
    out = []
    for item in items:
        sampled = try_parse_iso_timestamp(item.latest_reading.sample_date)
        if sampled is None:
            continue
        if date_from is not None and sampled < date_from:
            continue
        if date_to is not None and sampled > date_to:
            continue
        out.append(item)
    return out


def sort_by_name(items: Sequence[NormalizedWaterQualityData], order: str | None) -> list[NormalizedWaterQualityData]:
    if order is None:
        return list(items)
    return stable_sorted(items, key=lambda item: name_key(item.location.name), reverse=order == "desc")


def paginate(items: Sequence[NormalizedWaterQualityData], page: int, limit: int | None) -> list[NormalizedWaterQualityData]:
    if limit is None:
        return list(items)
    start = (page - 1) * limit
    return list(items[start : start + limit])


def filter_collection(
    collection: Sequence[NormalizedWaterQualityData],
    params: QueryParams,
) -> list[NormalizedWaterQualityData]:
    validate_params(params)
    items = filter_by_search(collection, params.search)
    items = filter_by_letter(items, params.letter)
    items = filter_by_membership(items, params)
    return filter_by_date_range(items, params.date_from, params.date_to)


def query(collection: Sequence[NormalizedWaterQualityData], params: QueryParams) -> QueryResult:
    filtered = sort_by_name(filter_collection(collection, params), params.sort)
    return QueryResult(
        items=tuple(paginate(filtered, params.page, params.limit)),
        total=len(filtered),
        page=params.page,
        limit=params.limit,
    )


def available_letters(collection: Iterable[NormalizedWaterQualityData]) -> list[str]:
    letters = set()
    for item in collection:
        first = item.location.name[:1].upper()
        if "A" <= first <= "Z":
            letters.add(first)
    return sorted(letters)


def summary_statistics(collection: Sequence[NormalizedWaterQualityData]) -> dict:
    total = len(collection)
    distribution = Counter(item.latest_reading.quality_rating for item in collection)
    if total == 0:
        return {
            "totalLocations": 0,
            "qualityDistribution": {},
            "averageEnterococci": 0,
            "excellentPercentage": 0,
            "goodOrBetterPercentage": 0,
        }
    average = sum(item.latest_reading.enterococci_value for item in collection) / total
    excellent = distribution.get("excellent", 0)
    good = distribution.get("good", 0)
    return {
        "totalLocations": total,
        "qualityDistribution": dict(sorted(distribution.items())),
        "averageEnterococci": average,
        "excellentPercentage": round(excellent / total * 100, 2),
        "goodOrBetterPercentage": round((excellent + good) / total * 100, 2),
    }
