"""
Reverse-geocode caches keyed by rounded coordinates.

Rounding buckets nearby lookups into one cell (2 decimals ~ 1.1 km), so two
close points sharing an entry is expected. Both backends support a capacity
bound (oldest inserted evicted first) and a TTL; either can be disabled with
None. Neither backend talks to the network.
"""
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from db.schemas import GeoCacheEntry
from jobfeed.models.geo import GeoAddress
from jobfeed.pipeline.storage import get_session
from jobfeed.settings import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def cache_key(lat: float, lon: float, precision: int = 2) -> str:
    # + 0.0 folds -0.0 into 0.0 so both sides of the equator/meridian agree
    lat_r = round(lat, precision) + 0.0
    lon_r = round(lon, precision) + 0.0
    return f"{lat_r:.{precision}f}:{lon_r:.{precision}f}"


class MemoryGeocodeCache:
    """In-process cache; insertion-ordered dict behind a lock."""

    def __init__(
        self,
        capacity: Optional[int] = 500,
        ttl_s: Optional[float] = None,
        precision: int = 2,
        clock: Clock = time.monotonic,
    ):
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be >= 1 or None")
        self.capacity = capacity
        self.ttl_s = ttl_s
        self.precision = precision
        self.clock = clock
        self.evictions = 0
        self.expirations = 0
        self._entries: "OrderedDict[str, tuple[float, GeoAddress]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, stored_at: float, now: float) -> bool:
        return self.ttl_s is not None and now - stored_at >= self.ttl_s

    def get(self, lat: float, lon: float) -> Optional[GeoAddress]:
        key = cache_key(lat, lon, self.precision)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, address = entry
            if self._expired(stored_at, self.clock()):
                del self._entries[key]
                self.expirations += 1
                return None
            return address.model_copy()

    def put(self, lat: float, lon: float, address: GeoAddress) -> None:
        key = cache_key(lat, lon, self.precision)
        with self._lock:
            now = self.clock()
            # a re-put counts as a fresh insertion
            self._entries.pop(key, None)
            self._entries[key] = (now, address.model_copy())

            # insertion order is also age order, so expired entries sit at the front
            while self._entries:
                oldest_key, (stored_at, _) = next(iter(self._entries.items()))
                if not self._expired(stored_at, now):
                    break
                del self._entries[oldest_key]
                self.expirations += 1

            while self.capacity is not None and len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("geocode cache evicted %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SqlGeocodeCache:
    """Durable cache in the geo_cache table; shares the job store's engine."""

    def __init__(
        self,
        capacity: Optional[int] = None,
        ttl_s: Optional[float] = 24 * 60 * 60,
        precision: int = 2,
        clock: Clock = time.time,
        session_factory=get_session,
    ):
        self.capacity = capacity
        self.ttl_s = ttl_s
        self.precision = precision
        self.clock = clock
        self.session_factory = session_factory

    def get(self, lat: float, lon: float) -> Optional[GeoAddress]:
        key = cache_key(lat, lon, self.precision)
        with self.session_factory() as s:
            row = s.get(GeoCacheEntry, key)
            if row is None:
                return None
            if self.ttl_s is not None and self.clock() - row.cached_at >= self.ttl_s:
                s.delete(row)
                return None
            return GeoAddress.model_validate(row.result)

    def put(self, lat: float, lon: float, address: GeoAddress) -> None:
        key = cache_key(lat, lon, self.precision)
        try:
            with self.session_factory() as s:
                s.merge(GeoCacheEntry(cache_key=key, result=address.model_dump(), cached_at=self.clock()))
                s.flush()
                if self.capacity is not None:
                    self._trim(s)
        except IntegrityError:
            # concurrent put for the same cell; the other writer's row stands
            logger.debug("geocode cache put lost a race for %s", key)

    def _trim(self, s) -> None:
        total = s.query(func.count(GeoCacheEntry.cache_key)).scalar() or 0
        excess = total - self.capacity
        if excess <= 0:
            return
        oldest = [
            k for (k,) in s.query(GeoCacheEntry.cache_key)
            .order_by(GeoCacheEntry.cached_at.asc(), GeoCacheEntry.cache_key.asc())
            .limit(excess)
        ]
        s.query(GeoCacheEntry).filter(GeoCacheEntry.cache_key.in_(oldest)).delete(synchronize_session=False)


def build_geocode_cache():
    """Cache backend selected by GEOCODE_CACHE_BACKEND."""
    if settings.GEOCODE_CACHE_BACKEND == "db":
        return SqlGeocodeCache(
            capacity=settings.GEOCODE_CACHE_CAPACITY,
            ttl_s=settings.GEOCODE_CACHE_TTL_S,
            precision=settings.GEOCODE_PRECISION,
        )
    if settings.GEOCODE_CACHE_BACKEND != "memory":
        raise ValueError(f"unknown GEOCODE_CACHE_BACKEND: {settings.GEOCODE_CACHE_BACKEND!r}")
    return MemoryGeocodeCache(
        capacity=settings.GEOCODE_CACHE_CAPACITY,
        ttl_s=settings.GEOCODE_CACHE_TTL_S,
        precision=settings.GEOCODE_PRECISION,
    )
