from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from jobfeed.models.job import JobStatus


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    title: str
    organisation: Optional[str] = None
    category: Optional[str] = None
    qualification: Optional[str] = None
    description: Optional[str] = None
    vacancies: Optional[int] = None
    salary: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    location_label: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    status: JobStatus
    apply_start_date: Optional[date] = None
    apply_end_date: Optional[date] = None
    published_at: datetime
    source_url: Optional[str] = None
    official_notification_url: Optional[str] = None
    source_id: Optional[str] = None
    content_hash: str


class NearbyJobOut(JobOut):
    distance_km: float = Field(alias="distanceKm")


class FacetCountOut(BaseModel):
    value: str
    count: int


class FacetsOut(BaseModel):
    state: list[FacetCountOut] = Field(default_factory=list)
    category: list[FacetCountOut] = Field(default_factory=list)
    status: list[FacetCountOut] = Field(default_factory=list)


class SearchOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    results: list[JobOut]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    sort: str
    facets: FacetsOut


class NearbyOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    results: list[NearbyJobOut]
    total: int
    radius_km: int = Field(alias="radiusKm")
    limit: int


class AddressOut(BaseModel):
    city: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postcode: Optional[str] = None


class ReverseGeocodeOut(BaseModel):
    display_name: str
    address: AddressOut
    lat: float
    lon: float
    cached: bool


class StatusPatch(BaseModel):
    status: JobStatus


class ErrorOut(BaseModel):
    error: str
    detail: str
    provider_status: Optional[int] = None
