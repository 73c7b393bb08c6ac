"""SafeWatch Backend: Area clustering & safety scoring"""

import logging

from config import AREA_CLUSTER_RADIUS_KM, AREA_TIERS, EXCELLENT_TIER, RECENT_CRIMES_PER_AREA
from geo import distance, is_valid_coordinate
from models import Area, CrimeReport, RecentCrime

logger = logging.getLogger("safewatch.scoring")


def filter_located_reports(reports: list[CrimeReport]) -> list[CrimeReport]:
    """Drop reports whose coordinates are missing, NaN or out of range."""
    located = [r for r in reports if is_valid_coordinate(r.latitude, r.longitude)]
    skipped = len(reports) - len(located)
    if skipped:
        logger.warning(f"Skipping {skipped} crime report(s) without usable coordinates")
    return located


def cluster_reports(reports: list[CrimeReport],
                    radius_km: float = AREA_CLUSTER_RADIUS_KM) -> list[list[CrimeReport]]:
    """Group reports into areas by distance to each area's founding report.

    Reports are visited in input order. A report joins the first existing
    cluster (in creation order) whose first member lies within ``radius_km``,
    even when a later cluster is closer. Membership is never tested against
    the centroid or the nearest member, so areas can stretch along a chain of
    reports. Otherwise the report founds a new cluster.

    Coordinates must already be valid; see ``filter_located_reports``.
    """
    clusters: list[list[CrimeReport]] = []
    for report in reports:
        for cluster in clusters:
            founder = cluster[0]
            if distance(report.latitude, report.longitude,
                        founder.latitude, founder.longitude) <= radius_km:
                cluster.append(report)
                break
        else:
            clusters.append([report])
    return clusters


def classify_area(crime_count: int) -> tuple[str, int]:
    """Map an area's crime count to its (tier, score).

      >= 15  → Poor       max(0, 40 - (n-15)*2)
      10-14  → Fair       max(0, 60 - (n-10)*4)
      5-9    → Good       max(0, 80 - (n-5)*4)
      < 5    → Excellent  100 - n*5
    """
    for min_count, tier, base_score, base_count, step in AREA_TIERS:
        if crime_count >= min_count:
            return tier, max(0, base_score - (crime_count - base_count) * step)
    return EXCELLENT_TIER, 100 - crime_count * 5


def build_area(cluster: list[CrimeReport]) -> Area:
    founder = cluster[0]
    count = len(cluster)
    tier, score = classify_area(count)
    return Area(
        areaId=f"{founder.latitude:.3f}_{founder.longitude:.3f}",
        latitude=sum(r.latitude for r in cluster) / count,
        longitude=sum(r.longitude for r in cluster) / count,
        crimeCount=count,
        tier=tier,
        score=score,
        recentCrimes=[
            RecentCrime(id=r.id, crimeType=r.crimeType, createdAt=r.createdAt)
            for r in cluster[-RECENT_CRIMES_PER_AREA:]
        ],
    )


def compute_area_scores(reports: list[CrimeReport],
                        radius_km: float = AREA_CLUSTER_RADIUS_KM) -> list[Area]:
    """Cluster reports into areas and score each one, busiest area first.

    Every located report lands in exactly one area. Ties in crime count keep
    the order in which the areas were discovered.
    """
    located = filter_located_reports(reports)
    if not located:
        return []

    areas = [build_area(cluster) for cluster in cluster_reports(located, radius_km)]
    areas.sort(key=lambda a: a.crimeCount, reverse=True)

    logger.info(f"Scored {len(areas)} area(s) from {len(located)} crime reports")
    return areas
