import importlib
import math

import pytest

from config import DEFAULT_END_COORDS, DEFAULT_START_COORDS
from conftest import km_north
from geo import distance
from models import Coordinates
from route_advisor import (
    build_crime_grid, corridor_crime_count, generate_waypoints,
    grid_safety_score, resolve_endpoints, round_half_up, suggest_routes, summarize_analysis,
)

START = (22.5726, 88.3639)
END = (22.6500, 88.4300)


# ─────────────────────────── Route variants ─────────────────────

def test_three_routes_in_fixed_order_without_crime_data():
    routes = suggest_routes(START, END, [])
    assert [r.id for r in routes] == ["safest", "balanced", "fastest"]


def test_distances_follow_variant_multipliers():
    safest, balanced, fastest = suggest_routes(START, END, [])
    base = distance(*START, *END)

    assert safest.distance == pytest.approx(base * 1.15)
    assert balanced.distance == pytest.approx(base * 1.05)
    assert fastest.distance == pytest.approx(base)
    assert safest.distance > balanced.distance >= fastest.distance


def test_durations_scale_rounded_base_duration():
    routes = suggest_routes(START, END, [])
    base_duration = math.floor(distance(*START, *END) * 2.5 + 0.5)

    assert [r.duration for r in routes] == [
        math.floor(base_duration * 1.15 + 0.5),
        math.floor(base_duration * 1.05 + 0.5),
        base_duration,
    ]


def test_half_minute_durations_round_up():
    end = (km_north(START[0], 4.0), START[1])

    routes = suggest_routes(START, end, [])

    # base 10 min; 11.5 and 10.5 both round up
    assert [r.duration for r in routes] == [12, 11, 10]


@pytest.mark.parametrize("value, expected", [(0.5, 1), (2.5, 3), (10.5, 11), (10.49, 10), (0.0, 0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_fixed_mode_ignores_crime_data(make_report):
    reports = [make_report(*START) for _ in range(50)]

    routes = suggest_routes(START, END, reports, scoring_mode="fixed")

    assert [r.safetyScore for r in routes] == [1.0, 0.75, 0.5]
    assert [r.crimeCount for r in routes] == [0, 1, 3]


def test_presentation_metadata_present():
    for route in suggest_routes(START, END, []):
        assert route.name
        assert route.color.startswith("#")
        assert route.recommendation


def test_same_start_and_end_gives_zero_length_routes():
    routes = suggest_routes(START, START, [])
    assert [r.distance for r in routes] == [0, 0, 0]
    assert [r.duration for r in routes] == [0, 0, 0]


def test_unknown_scoring_mode_rejected():
    with pytest.raises(ValueError):
        suggest_routes(START, END, [], scoring_mode="magic")


# ─────────────────────────── Waypoints ──────────────────────────

def test_waypoints_start_and_end_at_endpoints():
    for route in suggest_routes(START, END, []):
        assert len(route.coordinates) == 5
        assert route.coordinates[0] == pytest.approx(list(START))
        assert route.coordinates[-1] == pytest.approx(list(END))


def test_balanced_route_is_straight():
    points = generate_waypoints(START, END)
    for i, (lat, lon) in enumerate(points):
        t = i / 4
        assert lat == pytest.approx(START[0] + (END[0] - START[0]) * t)
        assert lon == pytest.approx(START[1] + (END[1] - START[1]) * t)


def test_safest_bends_latitude_and_fastest_bends_longitude():
    safest, balanced, fastest = suggest_routes(START, END, [])
    mid_straight = balanced.coordinates[2]

    assert safest.coordinates[2][0] == pytest.approx(mid_straight[0] + 0.01)
    assert safest.coordinates[2][1] == pytest.approx(mid_straight[1])
    assert fastest.coordinates[2][0] == pytest.approx(mid_straight[0])
    assert fastest.coordinates[2][1] == pytest.approx(mid_straight[1] + 0.005)
    assert safest.coordinates[1][0] == pytest.approx(
        balanced.coordinates[1][0] + 0.01 * math.sin(math.pi / 4))


# ─────────────────────────── Crime grid ─────────────────────────

def test_grid_buckets_by_floor_of_cell(make_report):
    reports = [
        make_report(22.7755, 88.3755),
        make_report(22.7712, 88.3701),
        make_report(22.7855, 88.3755),
        make_report(None, 88.3755),
    ]

    grid = build_crime_grid(reports)

    assert grid == {(2277, 8837): 2, (2278, 8837): 1}


def test_grid_uses_floor_for_negative_coordinates(make_report):
    grid = build_crime_grid([make_report(-33.8655, -151.2095)])
    assert grid == {(-3387, -15121): 1}


def test_corridor_counts_each_cell_once():
    grid = {(100, 200): 4, (101, 200): 2, (500, 500): 9}
    waypoints = [[1.005, 2.005], [1.006, 2.006], [1.015, 2.005]]
    assert corridor_crime_count(waypoints, grid) == 6


def test_grid_mode_counts_crimes_along_routes(make_report):
    reports = [make_report(*START) for _ in range(10)]

    routes = suggest_routes(START, END, reports, scoring_mode="grid")

    assert [r.crimeCount for r in routes] == [10, 10, 10]
    assert all(r.safetyScore == grid_safety_score(10) == 0.5 for r in routes)


def test_grid_mode_without_nearby_crime_is_fully_safe(make_report):
    reports = [make_report(28.6328, 77.2197) for _ in range(10)]

    routes = suggest_routes(START, END, reports, scoring_mode="grid")

    assert [r.crimeCount for r in routes] == [0, 0, 0]
    assert [r.safetyScore for r in routes] == [1.0, 1.0, 1.0]


# ─────────────────────────── Endpoint resolution ────────────────

def test_explicit_coordinates_win():
    start, end, fallback = resolve_endpoints(
        Coordinates(latitude=1.0, longitude=2.0),
        Coordinates(latitude=3.0, longitude=4.0),
        Coordinates(latitude=5.0, longitude=6.0),
    )
    assert (start, end, fallback) == ((1.0, 2.0), (3.0, 4.0), False)


def test_start_falls_back_to_user_location():
    start, end, fallback = resolve_endpoints(
        None, Coordinates(latitude=3.0, longitude=4.0), Coordinates(latitude=5.0, longitude=6.0),
    )
    assert start == (5.0, 6.0)
    assert not fallback


def test_missing_coordinates_use_defaults():
    start, end, fallback = resolve_endpoints(None, None, None)
    assert start == DEFAULT_START_COORDS
    assert end == DEFAULT_END_COORDS
    assert fallback


def test_partial_coordinates_count_as_missing():
    start, end, fallback = resolve_endpoints(
        Coordinates(latitude=1.0), Coordinates(latitude=float("nan"), longitude=4.0),
    )
    assert start == DEFAULT_START_COORDS
    assert end == DEFAULT_END_COORDS
    assert fallback


def test_default_end_is_north_east_of_default_start():
    assert DEFAULT_END_COORDS[0] > DEFAULT_START_COORDS[0]
    assert DEFAULT_END_COORDS[1] > DEFAULT_START_COORDS[1]
    assert 1 < distance(*DEFAULT_START_COORDS, *DEFAULT_END_COORDS) < 10


def test_analysis_summary():
    assert summarize_analysis(12) == "Analyzed 12 crime reports to suggest safer routes"


# ─────────────────────────── Scoring mode config ────────────────

@pytest.mark.parametrize("raw, expected", [(" Grid ", "grid"), ("FIXED", "fixed")])
def test_scoring_mode_env_is_normalised(monkeypatch, raw, expected):
    import config

    monkeypatch.setenv("ROUTE_SCORING_MODE", raw)
    try:
        importlib.reload(config)
        assert config.ROUTE_SCORING_MODE == expected
    finally:
        monkeypatch.delenv("ROUTE_SCORING_MODE")
        importlib.reload(config)


def test_unknown_scoring_mode_env_rejected(monkeypatch):
    import config

    monkeypatch.setenv("ROUTE_SCORING_MODE", "shortest")
    try:
        with pytest.raises(ValueError, match="ROUTE_SCORING_MODE"):
            importlib.reload(config)
    finally:
        monkeypatch.delenv("ROUTE_SCORING_MODE")
        importlib.reload(config)
