import logging
from typing import Protocol

from jobfeed.models.geo import GeoAddress
from jobfeed.query.nearby import validate_point

logger = logging.getLogger(__name__)


class GeocodeCache(Protocol):
    def get(self, lat: float, lon: float) -> GeoAddress | None: ...
    def put(self, lat: float, lon: float, address: GeoAddress) -> None: ...


class Geocoder(Protocol):
    def reverse(self, lat: float, lon: float) -> GeoAddress: ...


def reverse_geocode(lat, lon, cache: GeocodeCache, geocoder: Geocoder) -> tuple[GeoAddress, bool]:
    """
    Cached reverse lookup; returns (address, served_from_cache).
    The cache is consulted first so earlier lookups keep working while the
    provider is down. Provider failures raise ProviderUnavailableError.
    """
    lat, lon = validate_point(lat, lon)
    hit = cache.get(lat, lon)
    if hit is not None:
        return hit, True

    address = geocoder.reverse(lat, lon)
    cache.put(lat, lon, address)
    logger.debug("geocoded %s,%s -> %s", lat, lon, address.display_name)
    return address, False
