from typing import Optional

from pydantic import BaseModel


class GeoAddress(BaseModel):
    """Reverse-geocoding result trimmed to the fields we persist."""

    display_name: str = ""
    city: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postcode: Optional[str] = None
    lat: float
    lon: float
