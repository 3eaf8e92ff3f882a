# scripts/seed_jobs.py
"""Insert a handful of sample jobs. Safe to re-run: duplicates are skipped by content hash."""
from datetime import date, datetime, timedelta, timezone

from jobfeed.log import configure_logging
from jobfeed.models.job import CandidateJob
from jobfeed.pipeline.storage import get_session, init_engine, insert_if_new
from jobfeed.settings import settings

_today = date.today()
_now = datetime.now(timezone.utc)

SAMPLE_JOBS: list[dict] = [
    {
        "title": "Junior Engineer (Civil)",
        "organisation": "Public Works Department",
        "category": "Engineering",
        "qualification": "B.Tech / BE (Civil)",
        "state": "Maharashtra", "district": "Pune", "city": "Pune",
        "location_label": "Pune Division",
        "lat": 18.5204, "lon": 73.8567,
        "vacancies": 120,
        "salary": "₹35,400 – ₹1,12,400",
        "apply_start_date": _today - timedelta(days=10),
        "apply_end_date": _today + timedelta(days=20),
        "published_at": _now - timedelta(days=10),
        "official_notification_url": "https://example.gov.in/notice/1",
        "source_url": "https://example.gov.in/1",
    },
    {
        "title": "Staff Nurse",
        "organisation": "All India Institute of Medical Sciences",
        "category": "Medical",
        "qualification": "B.Sc Nursing",
        "state": "Delhi", "district": "New Delhi", "city": "New Delhi",
        "location_label": "AIIMS New Delhi",
        "lat": 28.5672, "lon": 77.2100,
        "vacancies": 400,
        "salary": "₹44,900 – ₹1,42,400",
        "apply_start_date": _today - timedelta(days=5),
        "apply_end_date": _today + timedelta(days=15),
        "published_at": _now - timedelta(days=5),
        "official_notification_url": "https://example.gov.in/notice/2",
        "source_url": "https://example.gov.in/2",
    },
    {
        "title": "Sub-Inspector (Executive)",
        "organisation": "Central Reserve Police Force",
        "category": "Police / Defence",
        "qualification": "Graduate",
        "status": "upcoming",
        "state": "National",
        "location_label": "All India",
        "vacancies": 1458,
        "apply_start_date": _today + timedelta(days=5),
        "apply_end_date": _today + timedelta(days=35),
        "published_at": _now - timedelta(days=2),
        "official_notification_url": "https://example.gov.in/notice/3",
        "source_url": "https://example.gov.in/3",
    },
    {
        "title": "Assistant Section Officer",
        "organisation": "Staff Selection Commission",
        "category": "Administrative",
        "qualification": "Graduate",
        "state": "National",
        "location_label": "All India",
        "vacancies": 523,
        "apply_start_date": _today - timedelta(days=8),
        "apply_end_date": _today + timedelta(days=12),
        "published_at": _now - timedelta(days=8),
        "official_notification_url": "https://example.gov.in/notice/4",
        "source_url": "https://example.gov.in/4",
    },
    {
        "title": "Primary Teacher",
        "organisation": "Government of Karnataka – Education Department",
        "category": "Teaching",
        "qualification": "D.Ed / B.Ed",
        "status": "result_out",
        "state": "Karnataka", "district": "Bengaluru", "city": "Bengaluru",
        "location_label": "Bengaluru Urban",
        "lat": 12.9716, "lon": 77.5946,
        "vacancies": 2200,
        "apply_start_date": _today - timedelta(days=60),
        "apply_end_date": _today - timedelta(days=30),
        "published_at": _now - timedelta(days=60),
        "official_notification_url": "https://example.gov.in/notice/5",
        "source_url": "https://example.gov.in/5",
    },
]


def seed() -> tuple[int, int]:
    init_engine(settings.DB_URL)
    inserted = skipped = 0
    with get_session() as s:
        for data in SAMPLE_JOBS:
            job = CandidateJob(source_id="seed", **data)
            if insert_if_new(s, job):
                inserted += 1
                print(f"  [+] {job.title} ({job.city or job.state})")
            else:
                skipped += 1
                print(f"  [=] Skipped (already exists): {job.title}")
    return inserted, skipped


if __name__ == "__main__":
    configure_logging()
    i, k = seed()
    print(f"Done. Inserted: {i}, Skipped: {k} → DB: {settings.DB_URL}")
