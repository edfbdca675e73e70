"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from beachwatch.api.errors import register_error_handlers
from beachwatch.api.routes.beach_data import beach_data_router
from beachwatch.api.routes.beaches import beaches_router
from beachwatch.api.routes.internal import internal_router
from beachwatch.api.routes.revalidate import revalidate_router
from beachwatch.common.config_loader import AppConfig
from beachwatch.pipeline.service import BeachDataService, build_service


def create_app(config: AppConfig, service: BeachDataService | None = None) -> FastAPI:
    app = FastAPI(title="Beachwatch Water Quality API")
    app.state.config = config
    app.state.service = service or build_service(config)

    register_error_handlers(app, config)
    app.include_router(internal_router)
    app.include_router(beaches_router)
    app.include_router(beach_data_router)
    app.include_router(revalidate_router)
    return app
