"""SafeWatch Backend: Pydantic Models"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CrimeReport(BaseModel):
    id: str
    crimeType: str
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    isAnonymous: bool = False
    reportedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class RecentCrime(BaseModel):
    id: str
    crimeType: str
    createdAt: Optional[datetime] = None


class Area(BaseModel):
    areaId: str  # "{lat:.3f}_{lon:.3f}" of the first report in the cluster
    latitude: float
    longitude: float
    crimeCount: int
    tier: str  # Excellent, Good, Fair, Poor
    score: int = Field(ge=0, le=100)
    recentCrimes: list[RecentCrime] = []


class Coordinates(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class SafeRouteRequest(BaseModel):
    startLocation: Optional[str] = None  # display label only
    endLocation: Optional[str] = None    # display label only
    userLocation: Optional[Coordinates] = None
    startCoords: Optional[Coordinates] = None
    endCoords: Optional[Coordinates] = None


class SafeRoute(BaseModel):
    id: str  # safest, balanced, fastest
    name: str
    distance: float  # km
    duration: int    # minutes
    safetyScore: float
    crimeCount: int
    coordinates: list[list[float]]  # [[lat, lon], ...]
    color: str
    recommendation: str


class SafeRouteResponse(BaseModel):
    routes: list[SafeRoute]
    analysis: str
    # True when a default endpoint replaced a missing coordinate
    usedFallbackLocation: bool = False


class CrimeAnalysis(BaseModel):
    analysis: str
    recommendations: list[str]
    selfDefenseRecommendations: list[str]


class HealthResponse(BaseModel):
    status: str
    version: str
    crimeReports: int
