from importlib import metadata

from fastapi import APIRouter, Depends

from beachwatch.api.dependencies import get_config
from beachwatch.common.config_loader import AppConfig

internal_router = APIRouter(tags=["internal"])


def _get_project_version() -> str:
    try:
        return metadata.version("beachwatch-aggregator")
    except metadata.PackageNotFoundError:
        return "0.3.0"


@internal_router.get("/health")
def healthcheck() -> dict:
    """Simple health endpoint used for local dev and readiness checks."""
    return {"status": "ok"}


@internal_router.get("/version")
def version(config: AppConfig = Depends(get_config)) -> dict:
    """Return the current app version and deployment metadata."""
    return {
        "name": "beachwatch-aggregator",
        "version": _get_project_version(),
        "environment": config.environment,
        "sources": [source.name for source in config.enabled_sources],
    }
