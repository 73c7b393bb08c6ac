"""SafeWatch Backend: Crime report storage (SQLite)

The scoring and route code never touch the database directly: handlers get a
CrimeReportRepository through FastAPI dependency injection and hand the
fetched list to the pure algorithms.
"""

import logging
import os
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from cache import TTLCache, report_cache
from models import CrimeReport

logger = logging.getLogger("safewatch.repository")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS crime_reports (
    id TEXT PRIMARY KEY,
    crime_type TEXT NOT NULL,
    description TEXT,
    latitude REAL,
    longitude REAL,
    address TEXT,
    is_anonymous INTEGER DEFAULT 0,
    reported_at TEXT,
    created_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_crime_reports_reported_at
    ON crime_reports (reported_at);
"""

_COLUMNS = ("id, crime_type, description, latitude, longitude, address, "
            "is_anonymous, reported_at, created_at")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z`` for UTC.

    Naive timestamps are taken as UTC. Raises ValueError on anything else.
    """
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_report(row: tuple) -> CrimeReport:
    (report_id, crime_type, description, lat, lng,
     address, is_anonymous, reported_at, created_at) = row
    return CrimeReport(
        id=report_id,
        crimeType=crime_type,
        description=description,
        latitude=lat,
        longitude=lng,
        address=address,
        isAnonymous=bool(is_anonymous),
        reportedAt=reported_at,
        createdAt=created_at,
    )


class CrimeReportRepository:
    """Read access to stored crime reports, newest first."""

    def __init__(self, db_path: str, timeout: float = 10.0):
        self.db_path = db_path
        self.timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def init_schema(self):
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def add_report(
        self,
        crime_type: str,
        latitude: Optional[float],
        longitude: Optional[float],
        *,
        description: Optional[str] = None,
        address: Optional[str] = None,
        is_anonymous: bool = False,
        reported_at: Optional[datetime] = None,
        report_id: Optional[str] = None,
    ) -> CrimeReport:
        """Insert a report. Used for seeding; the API itself is read-only."""
        now = datetime.now(timezone.utc)
        reported_at = reported_at or now
        report_id = report_id or str(uuid.uuid4())
        conn = self._connect()
        try:
            conn.execute(
                f"INSERT INTO crime_reports ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (report_id, crime_type, description, latitude, longitude, address,
                 int(is_anonymous), reported_at.isoformat(), now.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
        return CrimeReport(
            id=report_id, crimeType=crime_type, description=description,
            latitude=latitude, longitude=longitude, address=address,
            isAnonymous=is_anonymous, reportedAt=reported_at, createdAt=now,
        )

    def get_all_reports(self, limit: Optional[int] = None) -> list[CrimeReport]:
        """All reports ordered by reportedAt descending; ``limit`` caps the count."""
        query = f"SELECT {_COLUMNS} FROM crime_reports ORDER BY reported_at DESC, rowid DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)
        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        return [_row_to_report(r) for r in rows]

    def get_recent_reports(self, limit: int = 20, days: int = 7) -> list[CrimeReport]:
        cutoff = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM crime_reports WHERE reported_at >= ? "
                "ORDER BY reported_at DESC, rowid DESC LIMIT ?",
                (cutoff, limit),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_report(r) for r in rows]

    def count_reports(self) -> int:
        conn = self._connect()
        try:
            (count,) = conn.execute("SELECT COUNT(*) FROM crime_reports").fetchone()
        finally:
            conn.close()
        return count


class ReportSnapshot:
    """Short-TTL memo over a repository fetch that never raises.

    Scoring and route endpoints stay available when storage is down: a
    failed fetch is logged and reads as an empty report list.
    """

    def __init__(self, repository: CrimeReportRepository, cache: TTLCache = report_cache):
        self.repository = repository
        self.cache = cache

    def _key(self, limit: Optional[int]) -> str:
        return f"{self.repository.db_path}:{'all' if limit is None else limit}"

    def load(self, limit: Optional[int] = None) -> list[CrimeReport]:
        key = self._key(limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        try:
            reports = self.repository.get_all_reports(limit=limit)
        except Exception as e:
            logger.warning(f"Crime report fetch failed, continuing with no reports: {e}")
            return []
        self.cache.set(key, reports)
        return reports
