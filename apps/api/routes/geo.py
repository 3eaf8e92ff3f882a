from fastapi import APIRouter, Depends, Query

from apps.api.deps import get_geocode_cache, get_geocoder
from apps.api.schemas import AddressOut, ReverseGeocodeOut
from jobfeed.geo.service import reverse_geocode

router = APIRouter()


@router.get("/reverse", response_model=ReverseGeocodeOut)
def reverse(
    lat: float = Query(...),
    lon: float = Query(...),
    cache=Depends(get_geocode_cache),
    geocoder=Depends(get_geocoder),
) -> ReverseGeocodeOut:
    address, cached = reverse_geocode(lat, lon, cache, geocoder)
    return ReverseGeocodeOut(
        display_name=address.display_name,
        address=AddressOut(
            city=address.city,
            district=address.district,
            state=address.state,
            country=address.country,
            postcode=address.postcode,
        ),
        lat=address.lat,
        lon=address.lon,
        cached=cached,
    )
