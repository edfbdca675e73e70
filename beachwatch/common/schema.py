"""Strict structural contracts for upstream payloads and YAML config.

Upstream data is untrusted. Validation is total and fail-closed: one malformed
feature rejects the whole batch. Error messages carry the path of the first
failure and never echo raw values back.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from beachwatch.common.errors import ConfigError, ValidationError
from beachwatch.common.models import (
    BeachwatchFeature,
    BeachwatchFeatureCollection,
    BeachwatchProperties,
    VicEpaReading,
)

T = TypeVar("T")

BEACHWATCH_STRING_PROPERTIES = (
    "id",
    "siteName",
    "pollutionForecast",
    "pollutionForecastTimeStamp",
    "latestResult",
    "latestResultObservationDate",
)
VIC_EPA_STRING_FIELDS = ("site_id", "site_name", "sample_date")
VIC_EPA_NUMBER_FIELDS = ("latitude", "longitude", "enterococci_cfu_100ml")


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "unknown"


def _fail(path: str, message: str) -> ValidationError:
    return ValidationError(f"{path}: {message}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _require_object(value: Any, path: str) -> dict:
    if not isinstance(value, dict):
        raise _fail(path, f"expected object, received {_type_name(value)}")
    return value


def _require_literal(obj: dict, key: str, expected: str, path: str) -> None:
    if obj.get(key) != expected:
        raise _fail(f"{path}.{key}", f'expected literal "{expected}"')


def _require_string(obj: dict, key: str, path: str) -> str:
    if key not in obj:
        raise _fail(f"{path}.{key}", "required")
    value = obj[key]
    if not isinstance(value, str):
        raise _fail(f"{path}.{key}", f"expected string, received {_type_name(value)}")
    return value


def _require_number(obj: dict, key: str, path: str) -> float:
    if key not in obj:
        raise _fail(f"{path}.{key}", "required")
    value = obj[key]
    if not _is_number(value):
        raise _fail(f"{path}.{key}", f"expected finite number, received {_type_name(value)}")
    return float(value)


def _validate_rating(properties: dict, path: str) -> int:
    key = "latestResultRating"
    if key not in properties:
        raise _fail(f"{path}.{key}", "required")
    value = properties[key]
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        raise _fail(f"{path}.{key}", f"expected integer, received {_type_name(value)}")
    if not 1 <= value <= 5:
        raise _fail(f"{path}.{key}", "expected integer between 1 and 5")
    return value


def _validate_coordinates(geometry: dict, path: str) -> tuple[float, float]:
    coords = geometry.get("coordinates")
    coords_path = f"{path}.coordinates"
    if not isinstance(coords, list):
        raise _fail(coords_path, f"expected array, received {_type_name(coords)}")
    if len(coords) != 2:
        raise _fail(coords_path, "expected exactly 2 elements [longitude, latitude]")
    for idx, value in enumerate(coords):
        if not _is_number(value):
            raise _fail(f"{coords_path}[{idx}]", f"expected finite number, received {_type_name(value)}")
    return float(coords[0]), float(coords[1])


def _validate_feature(raw: Any, path: str) -> BeachwatchFeature:
    feature = _require_object(raw, path)
    _require_literal(feature, "type", "Feature", path)

    geometry = _require_object(feature.get("geometry"), f"{path}.geometry")
    _require_literal(geometry, "type", "Point", f"{path}.geometry")
    longitude, latitude = _validate_coordinates(geometry, f"{path}.geometry")

    props_path = f"{path}.properties"
    props = _require_object(feature.get("properties"), props_path)
    values = {key: _require_string(props, key, props_path) for key in BEACHWATCH_STRING_PROPERTIES}
    rating = _validate_rating(props, props_path)

    return BeachwatchFeature(
        longitude=longitude,
        latitude=latitude,
        properties=BeachwatchProperties(
            id=values["id"],
            site_name=values["siteName"],
            pollution_forecast=values["pollutionForecast"],
            pollution_forecast_timestamp=values["pollutionForecastTimeStamp"],
            latest_result=values["latestResult"],
            latest_result_rating=rating,
            latest_result_observation_date=values["latestResultObservationDate"],
        ),
    )


def validate_beachwatch_payload(raw: Any) -> BeachwatchFeatureCollection:
    """Validate an NSW Beachwatch GeoJSON document or raise ``ValidationError``."""
    root = _require_object(raw, "$")
    _require_literal(root, "type", "FeatureCollection", "$")
    features = root.get("features")
    if not isinstance(features, list):
        raise _fail("$.features", f"expected array, received {_type_name(features)}")
    return BeachwatchFeatureCollection(
        features=tuple(_validate_feature(item, f"features[{idx}]") for idx, item in enumerate(features))
    )


def safe_validate_beachwatch_payload(raw: Any) -> ValidationResult[BeachwatchFeatureCollection]:
    try:
        return ValidationResult(success=True, data=validate_beachwatch_payload(raw))
    except ValidationError as exc:
        return ValidationResult(success=False, error=str(exc))


def validate_vic_epa_rows(raw: Any) -> tuple[VicEpaReading, ...]:
    if not isinstance(raw, list):
        raise _fail("$", f"expected array, received {_type_name(raw)}")
    readings: list[VicEpaReading] = []
    for idx, item in enumerate(raw):
        path = f"[{idx}]"
        row = _require_object(item, path)
        strings = {key: _require_string(row, key, path) for key in VIC_EPA_STRING_FIELDS}
        numbers = {key: _require_number(row, key, path) for key in VIC_EPA_NUMBER_FIELDS}
        program = row.get("monitoring_program")
        readings.append(
            VicEpaReading(
                site_id=strings["site_id"],
                site_name=strings["site_name"],
                sample_date=strings["sample_date"],
                latitude=numbers["latitude"],
                longitude=numbers["longitude"],
                enterococci_cfu_100ml=numbers["enterococci_cfu_100ml"],
                monitoring_program=program if isinstance(program, str) else None,
            )
        )
    return tuple(readings)


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive(value: Any, ctx: str, *, allow_zero: bool = False) -> None:
    if not _is_number(value):
        raise ConfigError(f"{ctx} must be a number")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{ctx} must be {'non-negative' if allow_zero else 'positive'}")


def validate_app_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"environment", "log_level", "sources", "request", "cache", "security", "query"}
    _assert_required_keys(cfg, top_required, "app config")
    _assert_no_unknown_keys(cfg, top_required, "app config", allow_unknown)

    sources = cfg["sources"]
    _assert_required_keys(sources, {"nsw_beachwatch"}, "sources")
    for name, source in sources.items():
        _assert_required_keys(source, {"enabled", "url"}, f"sources.{name}")
        if source["enabled"] and not source["url"]:
            raise ConfigError(f"sources.{name}.url is required when the source is enabled")

    request = cfg["request"]
    _assert_required_keys(request, {"timeout", "retry"}, "request")
    _assert_required_keys(request["timeout"], {"connect_seconds", "read_seconds"}, "request.timeout")
    _assert_required_keys(request["retry"], {"retries", "backoff_seconds"}, "request.retry")
    _assert_positive(request["timeout"]["connect_seconds"], "request.timeout.connect_seconds")
    _assert_positive(request["timeout"]["read_seconds"], "request.timeout.read_seconds")
    if request["timeout"].get("total_seconds") is not None:
        _assert_positive(request["timeout"]["total_seconds"], "request.timeout.total_seconds")
    _assert_positive(request["retry"]["retries"], "request.retry.retries", allow_zero=True)
    _assert_positive(request["retry"]["backoff_seconds"], "request.retry.backoff_seconds", allow_zero=True)

    _assert_required_keys(
        cfg["cache"],
        {
            "ttl_seconds",
            "beaches_max_age_seconds",
            "beach_data_max_age_seconds",
            "stale_while_revalidate_seconds",
        },
        "cache",
    )
    _assert_positive(cfg["cache"]["ttl_seconds"], "cache.ttl_seconds")
    _assert_required_keys(cfg["security"], {"revalidate_token"}, "security")
    _assert_required_keys(cfg["query"], {"default_limit", "max_limit"}, "query")
    _assert_positive(cfg["query"]["default_limit"], "query.default_limit")
    _assert_positive(cfg["query"]["max_limit"], "query.max_limit")
    if cfg["query"]["default_limit"] > cfg["query"]["max_limit"]:
        raise ConfigError("query.default_limit must not exceed query.max_limit")

    return cfg
