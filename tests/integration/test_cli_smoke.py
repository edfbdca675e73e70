from __future__ import annotations

import json
from pathlib import Path

import pytest

from beachwatch import cli
from beachwatch.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from beachwatch.common.errors import NetworkError
from beachwatch.harvest.runner import HarvestResult
from beachwatch.pipeline.cache import SnapshotCache
from beachwatch.pipeline.service import BeachDataService


def _install_service(monkeypatch, records=(), failed_sources=(), error=None):
    def _loader(refresh_id: str) -> HarvestResult:
        if error is not None:
            raise error
        return HarvestResult(
            records=tuple(records),
            sources=("nsw_beachwatch",),
            payloads={},
            failed_sources=tuple(failed_sources),
        )

    monkeypatch.setattr(
        cli,
        "build_service",
        lambda _config: BeachDataService(SnapshotCache(_loader, ttl_seconds=60)),
    )


@pytest.mark.integration
def test_cli_query_writes_json(monkeypatch, tmp_path: Path, make_record):
    _install_service(monkeypatch, [make_record("Manly"), make_record("Bondi"), make_record("Avalon")])
    output = tmp_path / "out" / "query.json"

    exit_code = cli.main(["query", "--config-dir", "config", "--limit", "2", "--output", str(output)])

    assert exit_code == EXIT_SUCCESS
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["total"] == 3
    assert payload["totalPages"] == 2
    assert [item["location"]["name"] for item in payload["items"]] == ["Avalon", "Bondi"]


@pytest.mark.integration
def test_cli_letters_to_stdout(monkeypatch, capsys, make_record):
    _install_service(monkeypatch, [make_record("Manly"), make_record("Bondi")])

    exit_code = cli.main(["letters", "--config-dir", "config"])

    assert exit_code == EXIT_SUCCESS
    out = capsys.readouterr().out
    assert json.loads(out) == {"letters": ["B", "M"], "total": 2}


@pytest.mark.integration
def test_cli_fetch_reports_partial_refresh(monkeypatch, tmp_path: Path, make_record):
    _install_service(monkeypatch, [make_record("Bondi")], failed_sources=["vic_epa"])
    output = tmp_path / "fetch.json"

    exit_code = cli.main(["fetch", "--config-dir", "config", "--output", str(output)])

    assert exit_code == EXIT_PARTIAL
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["failedSources"] == ["vic_epa"]
    assert len(payload["records"]) == 1


@pytest.mark.integration
def test_cli_hard_fails_when_fetch_fails(monkeypatch, capsys):
    _install_service(monkeypatch, error=NetworkError("dns"))

    exit_code = cli.main(["fetch", "--config-dir", "config"])

    assert exit_code == EXIT_HARD_FAIL
    assert "NETWORK_ERROR" in capsys.readouterr().err


@pytest.mark.integration
def test_cli_hard_fails_on_missing_config(tmp_path: Path):
    assert cli.main(["fetch", "--config-dir", str(tmp_path)]) == EXIT_HARD_FAIL
