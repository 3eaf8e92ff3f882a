"""
Radius search around a point.

The store narrows rows with a bounding box on the (lat, lon) index; exact
great-circle distance is computed here with haversine_km, the single distance
definition used everywhere in the project. Results are ordered by
(distance, id) so equal distances come back in a stable order.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from db.schemas import Job
from jobfeed.errors import InvalidQueryError
from jobfeed.models.job import JOB_STATUSES
from jobfeed.pipeline.storage import query_deadline
from jobfeed.settings import settings

EARTH_RADIUS_KM = 6371.0
# Widens the prefilter box so float rounding never drops a point on the rim
_BOX_PAD = 1.001


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def validate_point(lat, lon) -> tuple[float, float]:
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        raise InvalidQueryError("lat and lon must be numbers") from None
    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise InvalidQueryError("lat must be in [-90, 90]")
    if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
        raise InvalidQueryError("lon must be in [-180, 180]")
    return lat, lon


def snap_radius(radius_km: Optional[float], allowed: Optional[Sequence[int]] = None) -> int:
    """Nearest allowed radius; ties go to the smaller one. None -> configured default."""
    allowed = sorted(allowed or settings.NEARBY_RADII_KM)
    if radius_km is None:
        return settings.NEARBY_DEFAULT_RADIUS_KM
    if not math.isfinite(radius_km):
        raise InvalidQueryError("radiusKm must be a finite number")
    return min(allowed, key=lambda r: (abs(r - radius_km), r))


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.NEARBY_LIMIT_DEFAULT
    return max(1, min(limit, settings.NEARBY_LIMIT_MAX))


def bounding_box(lat: float, lon: float, radius_km: float):
    """
    (lat_min, lat_max, lon_ranges) enclosing the circle, padded slightly.
    lon_ranges has two entries when the box crosses the antimeridian and
    covers every longitude when the circle reaches a pole.
    """
    ang = radius_km / EARTH_RADIUS_KM * _BOX_PAD
    lat_delta = math.degrees(ang)
    lat_min, lat_max = max(-90.0, lat - lat_delta), min(90.0, lat + lat_delta)

    cos_lat = math.cos(math.radians(lat))
    ratio = math.sin(ang) / cos_lat if cos_lat > 1e-12 else 2.0
    if lat_min <= -90.0 or lat_max >= 90.0 or ratio >= 1.0:
        return lat_min, lat_max, [(-180.0, 180.0)]

    lon_delta = math.degrees(math.asin(ratio))
    west, east = lon - lon_delta, lon + lon_delta
    if west < -180.0:
        return lat_min, lat_max, [(west + 360.0, 180.0), (-180.0, east)]
    if east > 180.0:
        return lat_min, lat_max, [(west, 180.0), (-180.0, east - 360.0)]
    return lat_min, lat_max, [(west, east)]


@dataclass
class NearbyJob:
    job: Job
    distance_km: float


@dataclass
class NearbyPage:
    results: list[NearbyJob]
    total: int
    radius_km: int
    limit: int


def nearby(
    sess: Session,
    lat,
    lon,
    radius_km: Optional[float] = None,
    limit: Optional[int] = None,
    status: Optional[str] = None,
    timeout_s: Optional[float] = None,
) -> NearbyPage:
    lat, lon = validate_point(lat, lon)
    radius = snap_radius(radius_km)
    limit = clamp_limit(limit)
    if status is not None and status not in JOB_STATUSES:
        raise InvalidQueryError(f"status must be one of {', '.join(JOB_STATUSES)}")

    lat_min, lat_max, lon_ranges = bounding_box(lat, lon, radius)
    clauses = [
        Job.lat.isnot(None),
        Job.lon.isnot(None),
        Job.lat.between(lat_min, lat_max),
        or_(*[and_(Job.lon >= lo, Job.lon <= hi) for lo, hi in lon_ranges]),
    ]
    if status is not None:
        clauses.append(Job.status == status)

    timeout_s = settings.QUERY_TIMEOUT_S if timeout_s is None else timeout_s
    with query_deadline(sess, timeout_s):
        rows = sess.query(Job).filter(*clauses).all()

    hits = []
    for job in rows:
        d = haversine_km(lat, lon, job.lat, job.lon)
        if d <= radius:
            hits.append(NearbyJob(job=job, distance_km=d))
    hits.sort(key=lambda h: (h.distance_km, h.job.id))

    return NearbyPage(results=hits[:limit], total=len(hits), radius_km=radius, limit=limit)
