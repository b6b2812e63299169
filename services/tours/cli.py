"""
CLI helper to inspect the tours sheet without running the API.

Use-cases:
- Check that SHEET_URL serves parseable CSV (and see which rows get skipped).
- Search or look up a tour the same way the website does.
"""

from __future__ import annotations

import argparse
import json
import sys

import config
from services.common.logging_utils import setup_logging
from services.tours.errors import TourSheetError
from services.tours.service import TourSheetService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tours sheet helper")
    parser.add_argument("--url", default=None, help="Sheet CSV URL (defaults to SHEET_URL)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("fetch", help="Download and parse the sheet, print all tours")

    search = sub.add_parser("search", help="Print tours matching a query")
    search.add_argument("query")

    show = sub.add_parser("show", help="Print one tour by row id or ID column")
    show.add_argument("tour_id")

    sub.add_parser("stats", help="Print tour count and cache status")
    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    service = TourSheetService(
        args.url or config.SHEET_URL,
        cache_expiry=config.CACHE_EXPIRY_SECONDS,
        fetch_timeout=config.FETCH_TIMEOUT_SECONDS,
        country_code=config.COUNTRY_CODE,
        min_body_length=config.MIN_CSV_LENGTH,
    )

    try:
        if args.command == "fetch":
            tours = service.fetch_tours()
            _print_json({"count": len(tours), "tours": tours})
            for warning in service.last_warnings:
                print(f"warning: {warning}", file=sys.stderr)
        elif args.command == "search":
            tours = service.search_tours(args.query)
            _print_json({"count": len(tours), "tours": tours})
        elif args.command == "show":
            tour = service.get_tour_by_id(args.tour_id)
            if tour is None:
                print(f"Tour not found: {args.tour_id}", file=sys.stderr)
                return 1
            _print_json(tour)
        elif args.command == "stats":
            _print_json(service.get_stats().model_dump())
    except TourSheetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
