from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

JobStatus = Literal["open", "upcoming", "closed", "result_out"]
JOB_STATUSES: tuple[str, ...] = ("open", "upcoming", "closed", "result_out")


class CandidateJob(BaseModel):
    """An adapter-normalized job that has not been deduplicated or stored yet."""

    title: str
    organisation: Optional[str] = None
    category: Optional[str] = None
    qualification: Optional[str] = None
    description: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    location_label: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    vacancies: Optional[int] = None
    salary: Optional[str] = None
    status: JobStatus = "open"
    apply_start_date: Optional[date] = None
    apply_end_date: Optional[date] = None
    published_at: Optional[datetime] = None
    source_url: Optional[str] = None
    official_notification_url: Optional[str] = None
    source_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @model_validator(mode="after")
    def _check_coordinates(self) -> "CandidateJob":
        if (self.lat is None) != (self.lon is None):
            raise ValueError("lat and lon must be given together")
        if self.lat is not None and not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"lat out of range: {self.lat}")
        if self.lon is not None and not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"lon out of range: {self.lon}")
        return self
