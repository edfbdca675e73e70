"""Victoria EPA harvest: per-sample enterococci concentrations."""

from __future__ import annotations

from beachwatch.common.constants import SOURCE_VIC_EPA
from beachwatch.common.errors import ValidationError
from beachwatch.common.http import HttpClient
from beachwatch.common.models import SourceResult
from beachwatch.common.schema import validate_vic_epa_rows
from beachwatch.pipeline.normalise import normalise_vic_epa_rows


def run_vic_epa_harvest(client: HttpClient, url: str) -> SourceResult:
    raw = client.get_json(url)
    try:
        readings = validate_vic_epa_rows(raw)
    except ValidationError as exc:
        raise ValidationError(f"Invalid data format from Victoria EPA API: {exc}") from exc
    normalised = normalise_vic_epa_rows(readings)
    return SourceResult(
        source=SOURCE_VIC_EPA,
        records=normalised.records,
        rejected_count=normalised.rejected_count,
    )
