"""Manual cache revalidation webhook."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header

from beachwatch.api.dependencies import get_config, get_service
from beachwatch.api.errors import error_response
from beachwatch.common.config_loader import AppConfig
from beachwatch.common.time_utils import utc_timestamp_iso
from beachwatch.pipeline.service import BeachDataService

revalidate_router = APIRouter(prefix="/api", tags=["revalidate"])


def _bearer_token(authorization: Optional[str]) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _revalidate(
    authorization: Optional[str],
    service: BeachDataService,
    config: AppConfig,
):
    token = _bearer_token(authorization)
    expected = config.revalidate_token
    if not token or not expected or not secrets.compare_digest(token, expected):
        return error_response(401, "Unauthorized", None, config)

    service.invalidate()
    return {"revalidated": True, "timestamp": utc_timestamp_iso()}


@revalidate_router.post("/revalidate")
def post_revalidate(
    authorization: Optional[str] = Header(None),
    service: BeachDataService = Depends(get_service),
    config: AppConfig = Depends(get_config),
):
    """Expire the cached snapshot so the next read refetches upstream."""
    return _revalidate(authorization, service, config)


@revalidate_router.get("/revalidate")
def get_revalidate(
    authorization: Optional[str] = Header(None),
    service: BeachDataService = Depends(get_service),
    config: AppConfig = Depends(get_config),
):
    if config.is_production:
        return error_response(405, "Method not allowed in production", None, config)
    return _revalidate(authorization, service, config)
