"""
Command-line entry points for scheduled jobs.

    dailybrief-ingest ingest [--date YYYY-MM-DD] [--input payload.json]
    dailybrief-ingest rotate [--today YYYY-MM-DD]
    dailybrief-ingest init-db

Exit codes: 0 success, 1 failure, 2 nothing to ingest for the date.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from dailybrief.contracts.issue import IngestPayload, today_iso
from dailybrief.infrastructure.database import RepositoryError, create_database
from dailybrief.infrastructure.database_schema import init_database
from dailybrief.observability.logging import configure_logging, get_logger
from dailybrief.service import build_service

logger = get_logger(__name__)


def _iso_date(value: str) -> str:
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from e


def _read_payload(path: Path | None, issue_date: str) -> IngestPayload:
    if path is None:
        return IngestPayload(date=issue_date)
    payload = IngestPayload.model_validate(json.loads(path.read_text(encoding="utf-8")))
    return payload.model_copy(update={"date": issue_date})


def cmd_ingest(args: argparse.Namespace) -> int:
    issue_date = args.date or today_iso()
    service = build_service()
    try:
        payload = service.resolve_payload(_read_payload(args.input, issue_date))
        if payload is None:
            print(f"No automation feed for {issue_date} and sports data not configured")
            return 2
        issue = service.ingest(payload)
    finally:
        service.close()

    status = getattr(issue.status, "value", issue.status)
    print(f"Ingested {issue.date}: status={status}, items={issue.item_count()}")
    return 0


def cmd_rotate(args: argparse.Namespace) -> int:
    service = build_service()
    try:
        moved = service.repository.rotate(args.today or today_iso())
    finally:
        service.close()
    print(f"Archived {moved} issue(s)")
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:  # noqa: ARG001
    db = create_database()
    try:
        report = init_database(db)
    finally:
        db.close()
    print(f"Schema ready on {db.describe()}")
    if report["added_columns"]:
        print(f"  Added columns: {', '.join(report['added_columns'])}")
    if report["rebuilt_covers"]:
        print("  Rebuilt issue_covers without the legacy section constraint")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dailybrief-ingest", description="Daily Brief scheduled jobs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Build and store the issue for one date")
    ingest.add_argument("--date", type=_iso_date, help="Issue date (default: today, UTC)")
    ingest.add_argument("--input", type=Path, help="JSON file with newsText/techText/sportsText")
    ingest.set_defaults(func=cmd_ingest)

    rotate = subparsers.add_parser("rotate", help="Move issues past the retention window to the archive")
    rotate.add_argument("--today", type=_iso_date, help="Reference date (default: today, UTC)")
    rotate.set_defaults(func=cmd_rotate)

    init_db = subparsers.add_parser("init-db", help="Create or migrate the schema")
    init_db.set_defaults(func=cmd_init_db)
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except RepositoryError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
