from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.sql import func
from db.base import Base
from jobfeed.pipeline.normalize import SEARCH_FIELDS, build_search_vector


class Job(Base):
    __tablename__ = "jobs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    content_hash = Column(String(64), nullable=False, unique=True)
    source_id = Column(String(100), nullable=True)

    title = Column(String(500), nullable=False)
    organisation = Column(String(300), nullable=True)
    category = Column(String(100), nullable=True)
    qualification = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    vacancies = Column(Integer, nullable=True)
    salary = Column(String(200), nullable=True)

    state = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    location_label = Column(String(200), nullable=True)
    lat = Column(Float, nullable=True)
    lon = Column(Float, nullable=True)

    status = Column(String(20), nullable=False, default="open", server_default="open")
    apply_start_date = Column(Date, nullable=True)
    apply_end_date = Column(Date, nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    source_url = Column(String(1000), nullable=True)
    official_notification_url = Column(String(1000), nullable=True)

    # Maintained by the listeners below and by storage.insert_if_new
    search_vector = Column(Text, nullable=False, default="", server_default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('open', 'upcoming', 'closed', 'result_out')", name="ck_jobs_status"
        ),
        CheckConstraint(
            "(lat IS NULL AND lon IS NULL) OR "
            "(lat BETWEEN -90 AND 90 AND lon BETWEEN -180 AND 180)",
            name="ck_jobs_coordinates",
        ),
        Index("ix_jobs_lat_lon", "lat", "lon"),
        Index("ix_jobs_state", "state"),
        Index("ix_jobs_category", "category"),
        Index("ix_jobs_status", "status"),
        Index("ix_jobs_published_at", "published_at"),
        Index("ix_jobs_apply_end_date", "apply_end_date"),
    )


class GeoCacheEntry(Base):
    __tablename__ = "geo_cache"
    cache_key = Column(String(64), primary_key=True)
    result = Column(JSON, nullable=False)
    cached_at = Column(Float, nullable=False, index=True)  # clock seconds


@event.listens_for(Job, "before_insert")
@event.listens_for(Job, "before_update")
def _refresh_search_vector(mapper, connection, target: Job):
    target.search_vector = build_search_vector(
        {name: getattr(target, name) for name in SEARCH_FIELDS}
    )
