"""SafeWatch Backend: Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from backend/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)

# ── Storage ──
DATABASE_PATH = os.environ.get(
    "DATABASE_PATH",
    str(Path(__file__).resolve().parent.parent / "datasets" / "crime_reports.db"),
)

# ── API Keys ──
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")

# ── Area clustering ──
AREA_CLUSTER_RADIUS_KM = float(os.environ.get("AREA_CLUSTER_RADIUS_KM", "1.0"))
RECENT_CRIMES_PER_AREA = 3

# Safety tiers, checked top to bottom: (min crime count, tier, base score, base count, step)
AREA_TIERS = [
    (15, "Poor", 40, 15, 2),
    (10, "Fair", 60, 10, 4),
    (5, "Good", 80, 5, 4),
]
EXCELLENT_TIER = "Excellent"

# ── Route advisor ──
ROUTE_GRID_CELL_SIZE = float(os.environ.get("ROUTE_GRID_CELL_SIZE", "0.01"))  # degrees, ~1.1 km
ROUTE_SCORING_MODES = ("fixed", "grid")
ROUTE_SCORING_MODE = os.environ.get("ROUTE_SCORING_MODE", "fixed").strip().lower()
if ROUTE_SCORING_MODE not in ROUTE_SCORING_MODES:
    raise ValueError(
        f"ROUTE_SCORING_MODE must be one of {ROUTE_SCORING_MODES}, got {ROUTE_SCORING_MODE!r}"
    )
ROUTE_MINUTES_PER_KM = 2.5
ROUTE_WAYPOINT_COUNT = 5

# Fallback endpoints when the caller's location could not be resolved (Kolkata)
DEFAULT_START_COORDS = (22.5726, 88.3639)
DEFAULT_END_COORDS = (22.6000, 88.4000)

# Variant order is the response order
ROUTE_VARIANTS = [
    {
        "id": "safest",
        "name": "Safest Route",
        "multiplier": 1.15,
        "safetyScore": 1.0,
        "crimeCount": 0,
        "color": "#16a34a",
        "recommendation": "Avoids areas with reported crimes. Recommended, especially at night.",
        "lat_wave": 0.01,
        "lon_wave": 0.0,
    },
    {
        "id": "balanced",
        "name": "Balanced Route",
        "multiplier": 1.05,
        "safetyScore": 0.75,
        "crimeCount": 1,
        "color": "#f59e0b",
        "recommendation": "Good balance between travel time and safety.",
        "lat_wave": 0.0,
        "lon_wave": 0.0,
    },
    {
        "id": "fastest",
        "name": "Fastest Route",
        "multiplier": 1.00,
        "safetyScore": 0.5,
        "crimeCount": 3,
        "color": "#dc2626",
        "recommendation": "Shortest travel time. Passes near reported incidents, stay alert.",
        "lat_wave": 0.0,
        "lon_wave": 0.005,
    },
]

# ── Report fetching ──
REPORT_SNAPSHOT_TTL = int(os.environ.get("REPORT_SNAPSHOT_TTL", "30"))  # seconds
CRIMES_LIST_LIMIT = 100
RECENT_CRIMES_LIMIT = 20
RECENT_CRIMES_DAYS = 7

# ── HTTP ──
RATE_LIMIT = int(os.environ.get("RATE_LIMIT", "60"))  # requests per minute per IP
RATE_WINDOW = 60  # seconds
API_VERSION = "1.0.0"
