"""CLI entrypoint for the beach water-quality aggregator."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from beachwatch.common.config_loader import load_app_config
from beachwatch.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, QUALITY_RATINGS, SORT_ORDERS
from beachwatch.common.errors import BeachwatchError
from beachwatch.common.fs import write_json
from beachwatch.common.logging import build_logger, log_event
from beachwatch.pipeline.query import QueryParams
from beachwatch.pipeline.service import build_service

COMMANDS = ("fetch", "query", "letters")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--output", default=None, help="Write JSON here instead of stdout.")
    parser.add_argument("--search", default=None)
    parser.add_argument("--letter", default=None)
    parser.add_argument("--region", action="append", default=[])
    parser.add_argument("--state", action="append", default=[])
    parser.add_argument("--quality", action="append", default=[], choices=QUALITY_RATINGS)
    parser.add_argument("--date-from", default=None, type=datetime.fromisoformat)
    parser.add_argument("--date-to", default=None, type=datetime.fromisoformat)
    parser.add_argument("--sort", default="asc", choices=SORT_ORDERS)
    parser.add_argument("--page", default=1, type=int)
    parser.add_argument("--limit", default=None, type=int)
    return parser.parse_args(argv)


def _query_params(args: argparse.Namespace) -> QueryParams:
    return QueryParams(
        search=args.search,
        letter=args.letter,
        regions=tuple(args.region),
        states=tuple(args.state),
        quality_ratings=tuple(args.quality),
        date_from=args.date_from,
        date_to=args.date_to,
        sort=args.sort,
        page=args.page,
        limit=args.limit,
    )


def _emit(payload: dict, output: str | None) -> None:
    if output:
        write_json(Path(output), payload)
        return
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def run_command(args: argparse.Namespace) -> int:
    config = load_app_config(
        Path(args.config_dir),
        overlay_config_dir=Path(args.overlay_config_dir) if args.overlay_config_dir else None,
    )
    logger = build_logger(args.log_level or config.log_level)
    service = build_service(config)

    log_event(logger, f"{args.command} start", component="cli", event="COMMAND_START", status="ok")
    snapshot = service.get_snapshot()

    if args.command == "fetch":
        payload = {
            "fetchedAt": snapshot.fetched_at.isoformat(timespec="milliseconds"),
            "sources": list(snapshot.sources),
            "failedSources": list(snapshot.failed_sources),
            "records": [item.to_dict() for item in snapshot.records],
        }
    elif args.command == "query":
        result, _snapshot = service.query(_query_params(args))
        payload = {
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
            "totalPages": result.total_pages,
            "items": [item.to_dict() for item in result.items],
        }
    elif args.command == "letters":
        letters, _snapshot = service.available_letters()
        payload = {"letters": letters, "total": len(snapshot.records)}
    else:
        raise ValueError(f"Unknown command: {args.command}")

    _emit(payload, args.output)
    log_event(
        logger,
        f"{args.command} end",
        component="cli",
        event="COMMAND_END",
        status="partial" if snapshot.failed_sources else "ok",
        records_out=len(snapshot.records),
    )
    if snapshot.failed_sources:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return run_command(args)
    except BeachwatchError as exc:
        sys.stderr.write(f"{exc.error_code}: {exc}\n")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
