"""UTC-focused helpers for timestamps in payloads and logs."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def parse_iso_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values and a trailing ``Z`` as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def try_parse_iso_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_iso_timestamp(value)
    except ValueError:
        return None
