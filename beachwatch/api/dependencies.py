"""Request-scoped access to the objects built in ``create_app``."""

from __future__ import annotations

from fastapi import Request

from beachwatch.common.config_loader import AppConfig
from beachwatch.pipeline.service import BeachDataService


def get_service(request: Request) -> BeachDataService:
    return request.app.state.service


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def cache_control(max_age: int, stale_while_revalidate: int) -> str:
    return f"public, s-maxage={max_age}, stale-while-revalidate={stale_while_revalidate}"
