"""SafeWatch Backend: FastAPI Routes"""

import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import (
    API_VERSION, CRIMES_LIST_LIMIT, DATABASE_PATH,
    RATE_LIMIT, RATE_WINDOW, RECENT_CRIMES_DAYS, RECENT_CRIMES_LIMIT,
    ROUTE_SCORING_MODE,
)
from insights import analyze_crime_patterns
from models import (
    Area, CrimeAnalysis, CrimeReport, HealthResponse,
    SafeRouteRequest, SafeRouteResponse,
)
from repository import CrimeReportRepository, ReportSnapshot
from route_advisor import resolve_endpoints, suggest_routes, summarize_analysis
from scoring import compute_area_scores

logger = logging.getLogger("safewatch.routes")


# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="SafeWatch Safety API", version=API_VERSION)

_allowed_origins = [
    f"http://localhost:{p}" for p in range(5000, 5010)
] + [
    f"http://localhost:{p}" for p in range(5173, 5180)
] + [
    f"http://127.0.0.1:{p}" for p in range(5000, 5010)
] + [
    f"http://127.0.0.1:{p}" for p in range(5173, 5180)
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────── Dependencies ───────────────────────

_repository: CrimeReportRepository | None = None


def get_repository() -> CrimeReportRepository:
    """Lazily open the configured SQLite store. Tests override this dependency."""
    global _repository
    if _repository is None:
        _repository = CrimeReportRepository(DATABASE_PATH)
        _repository.init_schema()
        logger.info(f"Crime report store ready at {DATABASE_PATH}")
    return _repository


def get_snapshot(repository: CrimeReportRepository = Depends(get_repository)) -> ReportSnapshot:
    return ReportSnapshot(repository)


# ─────────────────────────── Rate Limiting ──────────────────────

_rate_store: dict[str, list[float]] = {}
_RATE_EVICT_INTERVAL = 300  # evict stale IPs every 5 minutes
_last_rate_evict = 0.0


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    client_ip = request.client.host if request.client else "unknown"
    now = time.time()

    # Periodically evict stale IPs to prevent memory leak
    global _last_rate_evict
    if now - _last_rate_evict > _RATE_EVICT_INTERVAL:
        stale_ips = [ip for ip, timestamps in _rate_store.items()
                     if not timestamps or now - timestamps[-1] > RATE_WINDOW * 2]
        for ip in stale_ips:
            del _rate_store[ip]
        _last_rate_evict = now

    recent = [t for t in _rate_store.get(client_ip, []) if now - t < RATE_WINDOW]
    if len(recent) >= RATE_LIMIT:
        _rate_store[client_ip] = recent
        logger.warning(f"Rate limit exceeded for {client_ip}")
        return JSONResponse(
            status_code=429,
            content={"detail": "Rate limit exceeded. Try again in a minute."},
        )

    recent.append(now)
    _rate_store[client_ip] = recent
    return await call_next(request)


# ─────────────────────────── Crime Reports ──────────────────────

@app.get("/api/crimes", response_model=list[CrimeReport])
def get_crimes(repository: CrimeReportRepository = Depends(get_repository)):
    try:
        return repository.get_all_reports(limit=CRIMES_LIST_LIMIT)
    except Exception as e:
        logger.error(f"Error fetching crimes: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch crimes")


@app.get("/api/crimes/recent", response_model=list[CrimeReport])
def get_recent_crimes(repository: CrimeReportRepository = Depends(get_repository)):
    try:
        return repository.get_recent_reports(limit=RECENT_CRIMES_LIMIT, days=RECENT_CRIMES_DAYS)
    except Exception as e:
        logger.error(f"Error fetching recent crimes: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch recent crimes")


# ─────────────────────────── Area Safety Scores ─────────────────

@app.get("/api/safety-scores", response_model=list[Area])
def get_safety_scores(snapshot: ReportSnapshot = Depends(get_snapshot)):
    """Cluster every stored report into areas and score them, busiest first.

    Fails open: any error is logged and an empty list is returned.
    """
    try:
        reports = snapshot.load()
        return compute_area_scores(reports)
    except Exception as e:
        logger.error(f"Error computing safety scores: {e}")
        return []


# ─────────────────────────── Safer Routes ───────────────────────

@app.post("/api/suggest-safer-routes", response_model=SafeRouteResponse)
def suggest_safer_routes(req: SafeRouteRequest, snapshot: ReportSnapshot = Depends(get_snapshot)):
    """Suggest safest, balanced and fastest routes between two points.

    ``startLocation`` / ``endLocation`` are display labels; coordinates come
    from ``startCoords`` / ``endCoords`` (start falls back to
    ``userLocation``), then fixed defaults.
    """
    if not req.startLocation and not req.endLocation:
        raise HTTPException(status_code=400, detail="Start and end locations are required")

    start, end, used_fallback = resolve_endpoints(req.startCoords, req.endCoords, req.userLocation)
    reports = snapshot.load(limit=CRIMES_LIST_LIMIT)
    logger.info(
        f"Route request: {req.startLocation or '?'} → {req.endLocation or '?'} "
        f"({start[0]:.4f}, {start[1]:.4f}) → ({end[0]:.4f}, {end[1]:.4f})"
    )

    try:
        routes = suggest_routes(start, end, reports, scoring_mode=ROUTE_SCORING_MODE)
    except Exception as e:
        logger.error(f"Error scoring routes, falling back to fixed safety metadata: {e}")
        routes = suggest_routes(start, end, [], scoring_mode="fixed")
    return SafeRouteResponse(
        routes=routes,
        analysis=summarize_analysis(len(reports)),
        usedFallbackLocation=used_fallback,
    )


# ─────────────────────────── AI Crime Analysis ──────────────────

@app.get("/api/ai/crime-analysis", response_model=CrimeAnalysis)
def crime_analysis(snapshot: ReportSnapshot = Depends(get_snapshot)):
    return analyze_crime_patterns(snapshot.load(limit=CRIMES_LIST_LIMIT))


# ─────────────────────────── Utility Endpoints ──────────────────

@app.get("/api/health", response_model=HealthResponse)
def health(repository: CrimeReportRepository = Depends(get_repository)):
    try:
        count = repository.count_reports()
        status = "ok"
    except Exception as e:
        logger.warning(f"Health check could not reach crime report store: {e}")
        count = 0
        status = "degraded"
    return HealthResponse(status=status, version=API_VERSION, crimeReports=count)
