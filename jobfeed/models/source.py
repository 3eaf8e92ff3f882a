from typing import Literal, Optional

from pydantic import BaseModel, Field

SourceType = Literal["rss", "html", "pdf"]


class SourceConfig(BaseModel):
    # Defaults applied to fields the source itself does not provide
    default_org: Optional[str] = None
    default_category: Optional[str] = None
    default_state: Optional[str] = None
    default_district: Optional[str] = None
    default_city: Optional[str] = None
    default_lat: Optional[float] = None
    default_lon: Optional[float] = None

    # RSS field mapping
    title_field: str = "title"
    link_field: str = "link"
    description_field: str = "description"

    # HTML list-page selectors
    list_selector: str = ".job-item"
    title_selector: Optional[str] = None
    org_selector: Optional[str] = None
    link_selector: Optional[str] = None
    description_selector: Optional[str] = None
    date_selector: Optional[str] = None
    location_selector: Optional[str] = None

    # PDF notifications
    pdf_urls: list[str] = Field(default_factory=list)


class SourceDescriptor(BaseModel):
    id: str
    name: str
    type: SourceType
    base_url: str
    active: bool = True
    config: SourceConfig = Field(default_factory=SourceConfig)

    @property
    def label(self) -> str:
        return f"{self.type}:{self.id}"
