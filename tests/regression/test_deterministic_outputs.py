from __future__ import annotations

import json
from pathlib import Path

import pytest

from beachwatch import cli
from beachwatch.common.fs import write_json
from beachwatch.common.schema import validate_beachwatch_payload
from beachwatch.harvest import runner
from beachwatch.pipeline.cache import SnapshotCache
from beachwatch.pipeline.normalise import normalise_beachwatch_collection
from beachwatch.pipeline.service import BeachDataService


class FixtureClient:
    def __init__(self, payload: dict):
        self.payload = payload

    def get_json(self, url: str, **_kwargs):
        return self.payload


@pytest.fixture
def fixture_payload(make_feature, make_payload):
    return make_payload(
        make_feature(site_id="10", name="Manly", rating=4, observed="2024-01-03T00:00:00Z"),
        make_feature(site_id="11", name="Bondi Beach", rating=2),
        make_feature(site_id="12", name="bondi beach", rating=3),
        make_feature(site_id="13", name="Avalon", rating=1),
        make_feature(site_id="14", name="Off The Map", lon=181.0, lat=-33.0),
    )


@pytest.mark.regression
def test_normalised_output_is_byte_stable_for_same_input(tmp_path: Path, fixture_payload):
    first = tmp_path / "first.json"
    second = tmp_path / "second.json"

    for path in (first, second):
        result = normalise_beachwatch_collection(validate_beachwatch_payload(fixture_payload))
        write_json(path, [item.to_dict() for item in result.records])

    assert first.read_bytes() == second.read_bytes()


@pytest.mark.regression
def test_cli_query_output_is_byte_stable(monkeypatch, tmp_path: Path, fixture_payload):
    def _service(config):
        client = FixtureClient(fixture_payload)
        return BeachDataService(SnapshotCache(runner.build_harvest_loader(config, client), ttl_seconds=60))

    monkeypatch.setattr(cli, "build_service", _service)

    outputs = []
    for name in ("a.json", "b.json"):
        path = tmp_path / name
        assert cli.main(["query", "--config-dir", "config", "--output", str(path)]) == 0
        outputs.append(path.read_bytes())

    assert outputs[0] == outputs[1]
    names = [item["location"]["name"] for item in json.loads(outputs[0])["items"]]
    assert names == ["Avalon", "Bondi Beach", "bondi beach", "Manly"]
