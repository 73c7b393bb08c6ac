"""Seed and inspect the local SafeWatch crime-report database.

Loads crime reports into the SQLite store used by the backend, either as
synthetic reports scattered around a point or from a JSON export, and
prints a per-area safety summary of what is stored.

Output:
  - datasets/crime_reports.db   SQLite database read by the backend

Usage:
  python scripts/seed_reports.py seed                                  # 200 reports around Kolkata
  python scripts/seed_reports.py seed --count 50 --lat 22.77 --lng 88.3786 --spread 0.02
  python scripts/seed_reports.py import reports.json                   # [{crimeType, latitude, longitude, ...}]
  python scripts/seed_reports.py status                                # Report count + top areas
"""

import argparse
import json
import logging
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR / "backend"))

from config import DATABASE_PATH  # noqa: E402
from repository import CrimeReportRepository, parse_timestamp  # noqa: E402
from scoring import compute_area_scores  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("report_seeder")

CRIME_TYPES = ["Theft", "Burglary", "Assault", "Robbery", "Vandalism", "Vehicle Theft", "Other"]


def _open_repository(db_path: str) -> CrimeReportRepository:
    repo = CrimeReportRepository(db_path)
    repo.init_schema()
    return repo


def cmd_seed(args):
    repo = _open_repository(args.db)
    rng = random.Random(args.seed)
    now = datetime.now(timezone.utc)
    for _ in range(args.count):
        repo.add_report(
            rng.choice(CRIME_TYPES),
            args.lat + rng.uniform(-args.spread, args.spread),
            args.lng + rng.uniform(-args.spread, args.spread),
            description="Synthetic report",
            reported_at=now - timedelta(hours=rng.randint(0, 24 * 30)),
        )
    logger.info(f"Seeded {args.count} reports around ({args.lat}, {args.lng}) into {args.db}")


def cmd_import(args):
    repo = _open_repository(args.db)
    with open(args.path, encoding="utf-8") as f:
        records = json.load(f)

    imported = skipped = 0
    for i, rec in enumerate(records):
        crime_type = rec.get("crimeType") or rec.get("type")
        if not crime_type:
            skipped += 1
            continue
        reported_at = rec.get("reportedAt")
        try:
            reported_at = parse_timestamp(reported_at) if reported_at else None
        except ValueError as e:
            logger.warning(f"Skipping record {i}: bad reportedAt {reported_at!r} ({e})")
            skipped += 1
            continue
        repo.add_report(
            crime_type,
            rec.get("latitude", rec.get("lat")),
            rec.get("longitude", rec.get("lng")),
            description=rec.get("description"),
            address=rec.get("address"),
            is_anonymous=bool(rec.get("isAnonymous", False)),
            reported_at=reported_at,
        )
        imported += 1
    logger.info(f"Imported {imported} reports from {args.path} ({skipped} skipped)")


def cmd_status(args):
    repo = _open_repository(args.db)
    reports = repo.get_all_reports()
    areas = compute_area_scores(reports)
    print(f"{len(reports)} reports in {len(areas)} areas ({args.db})")
    for area in areas[:args.top]:
        print(f"  {area.areaId:<20} {area.crimeCount:>4} crimes  {area.tier:<9} score {area.score}")


def main():
    parser = argparse.ArgumentParser(description="Seed and inspect the SafeWatch crime-report database")
    parser.add_argument("--db", default=DATABASE_PATH, help="SQLite database path")
    sub = parser.add_subparsers(dest="command")

    p_seed = sub.add_parser("seed", help="Insert synthetic reports around a point")
    p_seed.add_argument("--count", type=int, default=200)
    p_seed.add_argument("--lat", type=float, default=22.5726)
    p_seed.add_argument("--lng", type=float, default=88.3639)
    p_seed.add_argument("--spread", type=float, default=0.05, help="Max offset in degrees")
    p_seed.add_argument("--seed", type=int, default=42, help="Random seed")
    p_seed.set_defaults(func=cmd_seed)

    p_imp = sub.add_parser("import", help="Import reports from a JSON array")
    p_imp.add_argument("path")
    p_imp.set_defaults(func=cmd_import)

    p_st = sub.add_parser("status", help="Show report count and busiest areas")
    p_st.add_argument("--top", type=int, default=10)
    p_st.set_defaults(func=cmd_status)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)
    args.func(args)


if __name__ == "__main__":
    main()
