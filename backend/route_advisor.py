"""SafeWatch Backend: Safer route suggestions

Produces three route variants (safest, balanced, fastest) between two points.
Distances come from the great-circle distance scaled per variant; the
polylines are interpolated between the endpoints with a small sinusoidal
offset so the variants are distinguishable on a map. They are not
street-network paths.

Safety metadata has two modes:
  fixed: each variant carries a constant safetyScore / crimeCount
  grid:  crimeCount sums the crime-density grid cells along the
         variant's corridor and safetyScore decays with that sum
"""

import logging
import math
from collections import defaultdict
from typing import Optional

import numpy as np

from config import (
    DEFAULT_END_COORDS, DEFAULT_START_COORDS,
    ROUTE_GRID_CELL_SIZE, ROUTE_MINUTES_PER_KM, ROUTE_SCORING_MODE, ROUTE_SCORING_MODES,
    ROUTE_VARIANTS, ROUTE_WAYPOINT_COUNT,
)
from geo import distance, is_valid_coordinate
from models import Coordinates, CrimeReport, SafeRoute

logger = logging.getLogger("safewatch.routes.advisor")


# Crimes along a corridor at which a grid-scored route drops to 0.5 safety
GRID_HALF_SAFETY_CRIMES = 10


def round_half_up(value: float) -> int:
    """Round to the nearest whole number, halves away from zero (value >= 0)."""
    return math.floor(value + 0.5)


def _coords_or_none(coords: Optional[Coordinates]) -> Optional[tuple[float, float]]:
    if coords is None or not is_valid_coordinate(coords.latitude, coords.longitude):
        return None
    return float(coords.latitude), float(coords.longitude)


def resolve_endpoints(
    start_coords: Optional[Coordinates],
    end_coords: Optional[Coordinates],
    user_location: Optional[Coordinates] = None,
) -> tuple[tuple[float, float], tuple[float, float], bool]:
    """Pick route endpoints, substituting defaults when a location is missing.

    The start falls back to the user's location, then to DEFAULT_START_COORDS;
    the end falls back to DEFAULT_END_COORDS. The third element tells the
    caller whether any default was used.
    """
    start = _coords_or_none(start_coords) or _coords_or_none(user_location)
    end = _coords_or_none(end_coords)
    used_fallback = start is None or end is None
    if start is None:
        start = DEFAULT_START_COORDS
    if end is None:
        end = DEFAULT_END_COORDS
    if used_fallback:
        logger.warning(f"Route location unresolved, using fallback endpoints {start} → {end}")
    return start, end, used_fallback


def grid_cell(lat: float, lon: float, cell_size: float = ROUTE_GRID_CELL_SIZE) -> tuple[int, int]:
    return math.floor(lat / cell_size), math.floor(lon / cell_size)


def build_crime_grid(reports: list[CrimeReport],
                     cell_size: float = ROUTE_GRID_CELL_SIZE) -> dict[tuple[int, int], int]:
    """Count crime reports per cell of a uniform lat/lon grid."""
    grid: dict[tuple[int, int], int] = defaultdict(int)
    for r in reports:
        if not is_valid_coordinate(r.latitude, r.longitude):
            continue
        grid[grid_cell(r.latitude, r.longitude, cell_size)] += 1
    return dict(grid)


def generate_waypoints(start: tuple[float, float], end: tuple[float, float],
                       lat_wave: float = 0.0, lon_wave: float = 0.0,
                       count: int = ROUTE_WAYPOINT_COUNT) -> list[list[float]]:
    """Interpolate ``count`` points from start to end with a sine-shaped bulge.

    The offset is zero at both endpoints and peaks at the midpoint.
    """
    t = np.linspace(0.0, 1.0, count)
    bulge = np.sin(np.pi * t)
    lats = start[0] + (end[0] - start[0]) * t + lat_wave * bulge
    lons = start[1] + (end[1] - start[1]) * t + lon_wave * bulge
    return [[float(lat), float(lon)] for lat, lon in zip(lats, lons)]


def corridor_crime_count(waypoints: list[list[float]], grid: dict[tuple[int, int], int],
                         cell_size: float = ROUTE_GRID_CELL_SIZE) -> int:
    """Sum crimes over the distinct cells around each waypoint (3x3 block)."""
    cells: set[tuple[int, int]] = set()
    for lat, lon in waypoints:
        row, col = grid_cell(lat, lon, cell_size)
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                cells.add((row + dr, col + dc))
    return sum(grid.get(cell, 0) for cell in cells)


def grid_safety_score(crime_count: int) -> float:
    return round(1.0 / (1.0 + crime_count / GRID_HALF_SAFETY_CRIMES), 2)


def suggest_routes(
    start: tuple[float, float],
    end: tuple[float, float],
    reports: list[CrimeReport],
    scoring_mode: str = ROUTE_SCORING_MODE,
    cell_size: float = ROUTE_GRID_CELL_SIZE,
) -> list[SafeRoute]:
    """Build the safest, balanced and fastest routes between two points.

    Always returns exactly three routes in that order, with or without
    crime data.
    """
    if scoring_mode not in ROUTE_SCORING_MODES:
        raise ValueError(f"Unknown route scoring mode: {scoring_mode!r}")

    base_distance = distance(start[0], start[1], end[0], end[1])
    base_duration = round_half_up(base_distance * ROUTE_MINUTES_PER_KM)
    grid = build_crime_grid(reports, cell_size)

    routes = []
    for variant in ROUTE_VARIANTS:
        multiplier = variant["multiplier"]
        waypoints = generate_waypoints(start, end, variant["lat_wave"], variant["lon_wave"])

        if scoring_mode == "grid":
            crime_count = corridor_crime_count(waypoints, grid, cell_size)
            safety_score = grid_safety_score(crime_count)
        else:
            crime_count = variant["crimeCount"]
            safety_score = variant["safetyScore"]

        routes.append(SafeRoute(
            id=variant["id"],
            name=variant["name"],
            distance=base_distance * multiplier,
            duration=round_half_up(base_duration * multiplier),
            safetyScore=safety_score,
            crimeCount=crime_count,
            coordinates=waypoints,
            color=variant["color"],
            recommendation=variant["recommendation"],
        ))

    logger.info(
        f"Suggested routes ({scoring_mode}) over {base_distance:.2f} km "
        f"with {sum(grid.values())} gridded crime reports"
    )
    return routes


def summarize_analysis(report_count: int) -> str:
    return f"Analyzed {report_count} crime reports to suggest safer routes"
