from pathlib import Path

import pytest

from beachwatch.common.config_loader import apply_env_overrides, load_app_config
from beachwatch.common.errors import ConfigError


def test_load_app_config_from_repo_config_dir():
    config = load_app_config(Path("config"), environ={})

    assert config.environment == "development"
    assert not config.is_production
    assert [source.name for source in config.enabled_sources] == ["nsw_beachwatch"]
    assert config.sources["nsw_beachwatch"].url.startswith("https://")
    assert config.timeout.read == 10.0
    assert config.timeout.attempt_seconds == 15.0
    assert config.retry.retries == 3
    assert config.retry.max_attempts == 4
    assert config.retry.backoff_seconds == 1.0
    assert config.cache.ttl_seconds == 3600.0
    assert config.revalidate_token is None
    assert config.query.default_limit <= config.query.max_limit


def test_load_app_config_applies_overlay_values(tmp_path: Path):
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "beachwatch.yml").write_text(
        """environment: production
sources:
  vic_epa:
    enabled: true
cache:
  ttl_seconds: 600
""",
        encoding="utf-8",
    )

    config = load_app_config(Path("config"), overlay_config_dir=overlay, environ={})

    assert config.is_production
    assert config.cache.ttl_seconds == 600.0
    assert config.cache.beaches_max_age_seconds == 60
    assert [source.name for source in config.enabled_sources] == ["nsw_beachwatch", "vic_epa"]
    assert config.sources["vic_epa"].url


def test_missing_overlay_file_is_ignored(tmp_path: Path):
    config = load_app_config(Path("config"), overlay_config_dir=tmp_path, environ={})
    assert config.environment == "development"


def test_environment_variables_override_yaml():
    config = load_app_config(
        Path("config"),
        environ={
            "NSW_BEACHWATCH_API_URL": "https://mirror.example.test/geojson",
            "API_CACHE_DURATION": "120",
            "API_TIMEOUT": "3.5",
            "API_RETRY_COUNT": "0",
            "API_RETRY_BACKOFF": "0.25",
            "REVALIDATE_TOKEN": "s3cret",
            "APP_ENV": "production",
            "LOG_LEVEL": "debug",
        },
    )

    assert config.sources["nsw_beachwatch"].url == "https://mirror.example.test/geojson"
    assert config.cache.ttl_seconds == 120.0
    assert config.timeout.read == 3.5
    assert config.retry.retries == 0
    assert config.retry.backoff_seconds == 0.25
    assert config.revalidate_token == "s3cret"
    assert config.is_production
    assert config.log_level == "DEBUG"


def test_empty_environment_variable_is_ignored():
    cfg = {"cache": {"ttl_seconds": 10}}
    assert apply_env_overrides(cfg, {"API_CACHE_DURATION": ""}) == cfg


def test_environment_override_does_not_mutate_input():
    cfg = {"cache": {"ttl_seconds": 10}}
    out = apply_env_overrides(cfg, {"API_CACHE_DURATION": "20"})
    assert cfg["cache"]["ttl_seconds"] == 10
    assert out["cache"]["ttl_seconds"] == 20.0


def test_invalid_environment_value_raises_config_error():
    with pytest.raises(ConfigError):
        load_app_config(Path("config"), environ={"API_RETRY_COUNT": "three"})


def test_missing_config_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_app_config(tmp_path, environ={})


def test_unknown_keys_are_rejected_unless_allowed(tmp_path: Path):
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "beachwatch.yml").write_text("extras:\n  feature_flag: true\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_app_config(Path("config"), overlay_config_dir=overlay, environ={})

    config = load_app_config(Path("config"), overlay_config_dir=overlay, environ={}, allow_unknown=True)
    assert config.environment == "development"
