import logging
from typing import Any, Optional

import httpx

from jobfeed.client.http import get_client
from jobfeed.errors import ProviderUnavailableError
from jobfeed.models.geo import GeoAddress
from jobfeed.settings import settings

logger = logging.getLogger(__name__)

# First non-empty key wins
_CITY_KEYS = ("city", "town", "village", "municipality")
_DISTRICT_KEYS = ("county", "state_district", "district")


def _first(addr: dict[str, Any], keys) -> Optional[str]:
    for k in keys:
        if addr.get(k):
            return str(addr[k])
    return None


def normalize_address(payload: dict[str, Any], lat: float, lon: float) -> GeoAddress:
    """Trim a Nominatim-style payload (LocationIQ, Nominatim) to GeoAddress."""
    addr = payload.get("address") or {}
    try:
        res_lat = float(payload.get("lat", lat))
        res_lon = float(payload.get("lon", lon))
    except (TypeError, ValueError):
        res_lat, res_lon = lat, lon
    return GeoAddress(
        display_name=payload.get("display_name") or "",
        city=_first(addr, _CITY_KEYS),
        district=_first(addr, _DISTRICT_KEYS),
        state=addr.get("state"),
        country=addr.get("country"),
        postcode=addr.get("postcode"),
        lat=res_lat,
        lon=res_lon,
    )


class LocationIQGeocoder:
    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.url = url or settings.LOCATIONIQ_URL
        self.timeout = timeout if timeout is not None else settings.GEOCODE_TIMEOUT
        self.transport = transport

    def reverse(self, lat: float, lon: float) -> GeoAddress:
        if not self.api_key:
            raise ProviderUnavailableError("reverse geocoding is not configured")

        params = {"key": self.api_key, "lat": lat, "lon": lon, "format": "json", "accept-language": "en"}
        try:
            with get_client(self.transport, timeout=self.timeout) as client:
                r = client.get(self.url, params=params)
                r.raise_for_status()
                payload = r.json()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            logger.error("geocoding provider HTTP %s for %s,%s", code, lat, lon)
            raise ProviderUnavailableError(f"geocoding provider returned HTTP {code}", status_code=code) from e
        except httpx.HTTPError as e:
            logger.error("geocoding provider unreachable: %s", e)
            raise ProviderUnavailableError("geocoding provider unreachable") from e
        except ValueError as e:
            raise ProviderUnavailableError("geocoding provider returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise ProviderUnavailableError("geocoding provider returned an unexpected payload")
        return normalize_address(payload, lat, lon)


def build_geocoder() -> LocationIQGeocoder:
    return LocationIQGeocoder(api_key=settings.LOCATIONIQ_API_KEY)
