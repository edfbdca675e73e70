"""ASGI entrypoint: ``uvicorn beachwatch.api.main:app``."""

from __future__ import annotations

import os
from pathlib import Path

from beachwatch.api.app import create_app
from beachwatch.common.config_loader import load_app_config
from beachwatch.common.logging import build_logger

config = load_app_config(
    Path(os.getenv("BEACHWATCH_CONFIG_DIR", "config")),
    overlay_config_dir=Path(os.environ["BEACHWATCH_OVERLAY_CONFIG_DIR"])
    if os.getenv("BEACHWATCH_OVERLAY_CONFIG_DIR")
    else None,
)
build_logger(config.log_level)

app = create_app(config)
