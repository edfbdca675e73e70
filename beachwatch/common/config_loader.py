"""Configuration loading and validation."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from beachwatch.common.errors import ConfigError
from beachwatch.common.fs import read_yaml
from beachwatch.common.http import RetryConfig, TimeoutConfig
from beachwatch.common.schema import validate_app_config

CONFIG_FILENAME = "beachwatch.yml"

# env var -> (config path, parser)
ENV_OVERRIDES: dict[str, tuple[tuple[str, ...], type]] = {
    "NSW_BEACHWATCH_API_URL": (("sources", "nsw_beachwatch", "url"), str),
    "VIC_EPA_API_URL": (("sources", "vic_epa", "url"), str),
    "API_CACHE_DURATION": (("cache", "ttl_seconds"), float),
    "API_TIMEOUT": (("request", "timeout", "read_seconds"), float),
    "API_RETRY_COUNT": (("request", "retry", "retries"), int),
    "API_RETRY_BACKOFF": (("request", "retry", "backoff_seconds"), float),
    "REVALIDATE_TOKEN": (("security", "revalidate_token"), str),
    "APP_ENV": (("environment",), str),
    "LOG_LEVEL": (("log_level",), str),
}


@dataclass(frozen=True)
class SourceConfig:
    name: str
    enabled: bool
    url: str | None


@dataclass(frozen=True)
class CacheConfig:
    ttl_seconds: float = 3600.0
    beaches_max_age_seconds: int = 60
    beach_data_max_age_seconds: int = 1800
    stale_while_revalidate_seconds: int = 300


@dataclass(frozen=True)
class QueryConfig:
    default_limit: int = 100
    max_limit: int = 1000


@dataclass(frozen=True)
class AppConfig:
    environment: str = "development"
    log_level: str = "INFO"
    sources: dict[str, SourceConfig] = field(default_factory=dict)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    revalidate_token: str | None = None
    query: QueryConfig = field(default_factory=QueryConfig)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def enabled_sources(self) -> list[SourceConfig]:
        return [source for source in self.sources.values() if source.enabled]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if not overlay:
        return base
    return _deep_merge(base, overlay)


def _set_path(cfg: dict, path: tuple[str, ...], value: Any) -> None:
    node = cfg
    for key in path[:-1]:
        node = node.setdefault(key, {})
    node[path[-1]] = value


def apply_env_overrides(cfg: dict, environ: Mapping[str, str]) -> dict:
    out = copy.deepcopy(cfg)
    for name, (path, parser) in ENV_OVERRIDES.items():
        raw = environ.get(name)
        if raw is None or raw == "":
            continue
        try:
            value = parser(raw)
        except ValueError as exc:
            raise ConfigError(f"Environment variable {name} is not a valid {parser.__name__}") from exc
        _set_path(out, path, value)
    return out


def build_app_config(cfg: dict) -> AppConfig:
    request = cfg["request"]
    timeout = request["timeout"]
    retry = request["retry"]
    cache = cfg["cache"]
    return AppConfig(
        environment=str(cfg["environment"]),
        log_level=str(cfg["log_level"]).upper(),
        sources={
            name: SourceConfig(name=name, enabled=bool(source["enabled"]), url=source.get("url"))
            for name, source in cfg["sources"].items()
        },
        timeout=TimeoutConfig(
            connect=float(timeout["connect_seconds"]),
            read=float(timeout["read_seconds"]),
            total=None if timeout.get("total_seconds") is None else float(timeout["total_seconds"]),
        ),
        retry=RetryConfig(
            retries=int(retry["retries"]),
            backoff_seconds=float(retry["backoff_seconds"]),
            max_wait=float(retry.get("max_wait_seconds", 60)),
            jitter=float(retry.get("jitter_seconds", 0)),
        ),
        cache=CacheConfig(
            ttl_seconds=float(cache["ttl_seconds"]),
            beaches_max_age_seconds=int(cache["beaches_max_age_seconds"]),
            beach_data_max_age_seconds=int(cache["beach_data_max_age_seconds"]),
            stale_while_revalidate_seconds=int(cache["stale_while_revalidate_seconds"]),
        ),
        revalidate_token=cfg["security"].get("revalidate_token") or None,
        query=QueryConfig(
            default_limit=int(cfg["query"]["default_limit"]),
            max_limit=int(cfg["query"]["max_limit"]),
        ),
    )


def load_app_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    overlay_path = overlay_config_dir / CONFIG_FILENAME if overlay_config_dir is not None else None
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    cfg = apply_env_overrides(cfg, os.environ if environ is None else environ)
    validate_app_config(cfg, allow_unknown=allow_unknown)
    return build_app_config(cfg)
