from datetime import date, datetime, timezone

import pytest

from jobfeed.errors import InvalidQueryError, QueryTimeoutError
from jobfeed.models.job import CandidateJob
from jobfeed.pipeline.storage import insert_if_new
from jobfeed.query.search import SearchParams, search
from helpers import bulk_insert_jobs

JOBS = [
    dict(
        title="Junior Engineer Civil", organisation="Public Works Department",
        state="Maharashtra", district="Pune", category="Engineering", qualification="Diploma",
        status="open", published_at=datetime(2025, 1, 10, tzinfo=timezone.utc), apply_end_date=date(2025, 2, 10),
    ),
    dict(
        title="Staff Nurse", organisation="AIIMS",
        state="Delhi", district="New Delhi", category="Medical", qualification="B.Sc Nursing",
        status="open", published_at=datetime(2025, 1, 12, tzinfo=timezone.utc), apply_end_date=date(2025, 1, 20),
    ),
    dict(
        title="Assistant Engineer", organisation="Water Resources Department",
        state="Maharashtra", district="Nagpur", category="Engineering", qualification="B.Tech",
        status="upcoming", published_at=datetime(2025, 1, 5, tzinfo=timezone.utc),
    ),
    dict(
        title="Primary Teacher", organisation="Education Department",
        state="Karnataka", district="Bengaluru", category="Teaching", qualification="B.Ed",
        status="result_out", published_at=datetime(2025, 1, 1, tzinfo=timezone.utc), apply_end_date=date(2024, 12, 1),
    ),
    dict(
        title="Accounts Officer", organisation="Military Engineer Services",
        state="Delhi", district="New Delhi", category="Finance",
        status="closed", published_at=datetime(2025, 1, 15, tzinfo=timezone.utc), apply_end_date=date(2025, 1, 31),
    ),
]


@pytest.fixture
def seeded(session):
    for i, data in enumerate(JOBS):
        insert_if_new(session, CandidateJob(source_url=f"https://jobs.example.gov.in/{i}", **data))
    return session


def _titles(page):
    return [j.title for j in page.results]


def _facet(page, name):
    return [(f.value, f.count) for f in page.facets[name]]


def test_default_sort_is_latest_without_query(seeded):
    page = search(seeded, SearchParams())
    assert page.sort == "latest"
    assert page.total == 5
    assert _titles(page) == [
        "Accounts Officer", "Staff Nurse", "Junior Engineer Civil", "Assistant Engineer", "Primary Teacher",
    ]


def test_keyword_defaults_to_relevance(seeded):
    page = search(seeded, SearchParams(q="engineer"))
    assert page.sort == "relevance"
    assert page.total == 3
    # title hits outrank the organisation-only hit; ties fall back to newest first
    assert _titles(page) == ["Junior Engineer Civil", "Assistant Engineer", "Accounts Officer"]


def test_keyword_with_latest_sort(seeded):
    page = search(seeded, SearchParams(q="engineer", sort="latest"))
    assert _titles(page) == ["Accounts Officer", "Junior Engineer Civil", "Assistant Engineer"]


def test_every_token_must_match_as_prefix(seeded):
    assert _titles(search(seeded, SearchParams(q="junior engin"))) == ["Junior Engineer Civil"]
    assert search(seeded, SearchParams(q="ngineer")).total == 0
    assert search(seeded, SearchParams(q="NURSING")).total == 1


def test_relevance_without_keyword_falls_back_to_latest(seeded):
    page = search(seeded, SearchParams(q="   ", sort="relevance"))
    assert page.sort == "latest"
    assert page.total == 5


def test_closing_soon_puts_open_ended_last(seeded):
    page = search(seeded, SearchParams(sort="closing_soon"))
    assert _titles(page) == [
        "Primary Teacher", "Staff Nurse", "Accounts Officer", "Junior Engineer Civil", "Assistant Engineer",
    ]


def test_filters_are_case_insensitive_and_combined(seeded):
    page = search(seeded, SearchParams(state="maharashtra"))
    assert sorted(_titles(page)) == ["Assistant Engineer", "Junior Engineer Civil"]

    page = search(seeded, SearchParams(state="Maharashtra", status="upcoming"))
    assert _titles(page) == ["Assistant Engineer"]

    page = search(seeded, SearchParams(district="new delhi", qualification="b.sc nursing"))
    assert _titles(page) == ["Staff Nurse"]

    assert search(seeded, SearchParams(state="Goa")).total == 0


def test_facets_exclude_their_own_filter(seeded):
    page = search(seeded, SearchParams(state="Maharashtra"))
    assert _facet(page, "state") == [("Delhi", 2), ("Maharashtra", 2), ("Karnataka", 1)]
    assert _facet(page, "category") == [("Engineering", 2)]
    assert _facet(page, "status") == [("open", 1), ("upcoming", 1)]


def test_facets_follow_keyword(seeded):
    page = search(seeded, SearchParams(q="engineer"))
    assert _facet(page, "category") == [("Engineering", 2), ("Finance", 1)]


def test_facets_can_be_skipped(seeded):
    assert search(seeded, SearchParams(), with_facets=False).facets == {}


def test_pages_partition_the_result_set(seeded):
    seen = []
    for n in (1, 2, 3):
        page = search(seeded, SearchParams(page=n, page_size=2))
        assert page.total == 5
        assert len(page.results) <= 2
        seen.extend(j.id for j in page.results)
    assert len(seen) == len(set(seen)) == 5
    assert search(seeded, SearchParams(page=4, page_size=2)).results == []


def test_page_size_is_clamped(seeded):
    assert search(seeded, SearchParams(page_size=0)).page_size == 1
    assert search(seeded, SearchParams(page_size=1000)).page_size == 100
    assert search(seeded, SearchParams()).page_size == 20


@pytest.mark.parametrize(
    "params",
    [
        SearchParams(page=0),
        SearchParams(sort="oldest"),
        SearchParams(status="archived"),
    ],
)
def test_invalid_params_are_rejected(seeded, params):
    with pytest.raises(InvalidQueryError):
        search(seeded, params)


def test_like_wildcards_in_query_are_literal(seeded):
    assert search(seeded, SearchParams(q="%")).total == 5  # no tokens, no text filter
    assert search(seeded, SearchParams(q="staff_")).total == 0


def test_slow_search_is_aborted(session):
    bulk_insert_jobs(session, 3000)
    with pytest.raises(QueryTimeoutError):
        search(session, SearchParams(q="clerk"), timeout_s=1e-6)
    # the deadline is lifted once the query is over
    assert search(session, SearchParams(q="clerk", page_size=1), with_facets=False).total == 3000
