"""Shared pytest fixtures for the SafeWatch backend."""

import sqlite3
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

import routes
from cache import report_cache
from models import CrimeReport
from repository import CrimeReportRepository

KM_PER_DEGREE_LAT = 6371.0 * 3.141592653589793 / 180.0


def km_north(lat: float, km: float) -> float:
    """Latitude ``km`` kilometres north of ``lat`` along a meridian."""
    return lat + km / KM_PER_DEGREE_LAT


class BrokenRepository:
    """Stands in for a store that is unreachable."""

    db_path = "unreachable.db"

    def get_all_reports(self, limit=None):
        raise sqlite3.OperationalError("unable to open database file")

    def get_recent_reports(self, limit=20, days=7):
        raise sqlite3.OperationalError("unable to open database file")

    def count_reports(self):
        raise sqlite3.OperationalError("unable to open database file")


@pytest.fixture(autouse=True)
def _reset_shared_state():
    report_cache.clear()
    routes._rate_store.clear()
    yield
    report_cache.clear()
    routes.app.dependency_overrides.clear()


@pytest.fixture
def make_report():
    counter = {"n": 0}

    def _make(lat=22.77, lng=88.3786, crime_type="Theft", **kwargs):
        counter["n"] += 1
        return CrimeReport(
            id=kwargs.pop("id", f"r{counter['n']}"),
            crimeType=crime_type,
            latitude=lat,
            longitude=lng,
            createdAt=kwargs.pop("createdAt", datetime(2024, 1, 1, tzinfo=timezone.utc)),
            **kwargs,
        )

    return _make


@pytest.fixture
def repository(tmp_path):
    repo = CrimeReportRepository(str(tmp_path / "crime_reports.db"))
    repo.init_schema()
    return repo


@pytest.fixture
def client(repository):
    routes.app.dependency_overrides[routes.get_repository] = lambda: repository
    with TestClient(routes.app) as c:
        yield c


@pytest.fixture
def broken_client():
    routes.app.dependency_overrides[routes.get_repository] = lambda: BrokenRepository()
    with TestClient(routes.app) as c:
        yield c
