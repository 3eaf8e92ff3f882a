import httpx
import pytest

from jobfeed.errors import InvalidQueryError, ProviderUnavailableError
from jobfeed.geo.cache import MemoryGeocodeCache
from jobfeed.geo.provider import LocationIQGeocoder, normalize_address
from jobfeed.geo.service import reverse_geocode
from jobfeed.models.geo import GeoAddress

URL = "https://geo.example.test/v1/reverse"

PAYLOAD = {
    "display_name": "Connaught Place, New Delhi, Delhi, 110001, India",
    "lat": "28.6315",
    "lon": "77.2167",
    "address": {
        "road": "Janpath",
        "town": "New Delhi",
        "state_district": "New Delhi District",
        "state": "Delhi",
        "country": "India",
        "postcode": "110001",
    },
}


class FakeGeocoder:
    def __init__(self, fail: bool = False):
        self.calls = 0
        self.fail = fail

    def reverse(self, lat, lon):
        self.calls += 1
        if self.fail:
            raise ProviderUnavailableError("provider down", status_code=502)
        return GeoAddress(display_name=f"{lat},{lon}", city="Somewhere", lat=lat, lon=lon)


def test_normalize_address_picks_first_present_keys():
    addr = normalize_address(PAYLOAD, 28.63, 77.21)
    assert addr.city == "New Delhi"
    assert addr.district == "New Delhi District"
    assert addr.state == "Delhi"
    assert addr.postcode == "110001"
    assert (addr.lat, addr.lon) == (28.6315, 77.2167)
    assert "road" not in addr.model_dump()


def test_normalize_address_tolerates_sparse_payload():
    addr = normalize_address({}, 1.5, 2.5)
    assert addr.display_name == ""
    assert addr.city is None
    assert (addr.lat, addr.lon) == (1.5, 2.5)


def test_locationiq_request_and_response():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=PAYLOAD)

    geocoder = LocationIQGeocoder(api_key="secret", url=URL, transport=httpx.MockTransport(handler))
    addr = geocoder.reverse(28.63, 77.21)

    assert seen["key"] == "secret"
    assert seen["format"] == "json"
    assert addr.city == "New Delhi"


def test_locationiq_without_key_is_unavailable():
    with pytest.raises(ProviderUnavailableError, match="not configured"):
        LocationIQGeocoder(api_key=None, url=URL).reverse(1.0, 1.0)


def test_locationiq_http_error_is_unavailable():
    transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"error": "Rate Limited"}))
    with pytest.raises(ProviderUnavailableError) as exc:
        LocationIQGeocoder(api_key="k", url=URL, transport=transport).reverse(1.0, 1.0)
    assert exc.value.status_code == 429


def test_locationiq_network_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderUnavailableError) as exc:
        LocationIQGeocoder(api_key="k", url=URL, transport=httpx.MockTransport(handler)).reverse(1.0, 1.0)
    assert exc.value.status_code is None


def test_locationiq_invalid_json_is_unavailable():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(ProviderUnavailableError):
        LocationIQGeocoder(api_key="k", url=URL, transport=transport).reverse(1.0, 1.0)


def test_reverse_geocode_caches_provider_result():
    cache, geocoder = MemoryGeocodeCache(), FakeGeocoder()

    first, cached = reverse_geocode(28.6139, 77.2090, cache, geocoder)
    assert cached is False
    second, cached = reverse_geocode(28.6141, 77.2088, cache, geocoder)
    assert cached is True
    assert second == first
    assert geocoder.calls == 1


def test_cache_serves_while_provider_is_down():
    cache = MemoryGeocodeCache()
    reverse_geocode(28.6139, 77.2090, cache, FakeGeocoder())

    down = FakeGeocoder(fail=True)
    addr, cached = reverse_geocode(28.6139, 77.2090, cache, down)
    assert cached is True
    assert addr.city == "Somewhere"
    assert down.calls == 0

    with pytest.raises(ProviderUnavailableError):
        reverse_geocode(12.97, 77.59, cache, down)


def test_reverse_geocode_validates_coordinates():
    geocoder = FakeGeocoder()
    with pytest.raises(InvalidQueryError):
        reverse_geocode(95.0, 0.0, MemoryGeocodeCache(), geocoder)
    assert geocoder.calls == 0
