"""CLI entry point."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config
from .fetcher import FetchError, fetch_airports
from .logging_config import configure_logging
from .store import StructuralLoadError, load_from_file

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iataplaces", description="OurAirports IATA lookup tools")
    sub = parser.add_subparsers(dest="command", required=True)

    update = sub.add_parser("update", help="Download the airports CSV")
    update.add_argument("--out", dest="out_dir", help="Output directory for airports CSV files")
    update.add_argument("--url", help="OurAirports CSV URL")
    update.add_argument("--timeout", type=float, help="HTTP timeout in seconds")

    lookup = sub.add_parser("lookup", help="Print the airport for an IATA code as JSON")
    lookup.add_argument("code", help="IATA code, any case")
    lookup.add_argument("--csv", dest="csv_path", help="Airports CSV to load (default: AIRPORTS_CSV_PATH)")
    return parser


def run_update(args: argparse.Namespace, config: Config) -> int:
    try:
        result = fetch_airports(
            url=args.url or config.source_url,
            out_dir=Path(args.out_dir) if args.out_dir else config.output_dir,
            timeout_seconds=args.timeout if args.timeout is not None else config.request_timeout_seconds,
            user_agent=config.user_agent,
        )
    except FetchError as exc:
        logger.error("Airports update failed: %s", exc)
        return 1
    logger.info("Latest airports CSV: %s", result.latest_path)
    return 0


def run_lookup(args: argparse.Namespace, config: Config) -> int:
    csv_path = Path(args.csv_path) if args.csv_path else config.csv_path
    try:
        store = load_from_file(csv_path)
    except StructuralLoadError as exc:
        logger.error("Could not load airports: %s", exc)
        return 2

    airport, found = store.lookup_iata(args.code)
    if not found:
        logger.info("No airport with IATA code %r", args.code)
        return 1
    json.dump(airport.to_dict(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    config = Config.from_env()
    if args.command == "update":
        return run_update(args, config)
    return run_lookup(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
