"""Identifier helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def generate_refresh_id() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime("refresh-%Y%m%dT%H%M%S%fZ")


def location_id(prefix: str, site_id: str) -> str:
    return f"{prefix}-{site_id}"


def record_id(location: str, sample_date: str) -> str:
    return f"{location}-{sample_date}"
