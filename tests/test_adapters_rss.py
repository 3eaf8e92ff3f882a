from datetime import datetime, timezone

import httpx
import pytest

from jobfeed.adapters.rss import RssAdapter
from jobfeed.errors import AdapterError
from helpers import make_source, make_transport

FEED_URL = "https://jobs.example.gov.in/rss.xml"

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Employment News</title>
    <link>https://jobs.example.gov.in/</link>
    <item>
      <title>SSC  Combined Graduate Level Exam 2025</title>
      <link>https://jobs.example.gov.in/notices/cgl-2025</link>
      <description>&lt;p&gt;Apply online for &lt;b&gt;CGL&lt;/b&gt; posts.&lt;/p&gt;</description>
      <pubDate>Mon, 06 Jan 2025 10:00:00 +0530</pubDate>
    </item>
    <item>
      <title>Junior Engineer Recruitment</title>
      <link>/notices/je-2025</link>
      <description>Civil and electrical posts</description>
    </item>
    <item>
      <title>Stenographer Grade C</title>
      <link>https://jobs.example.gov.in/notices/steno-c</link>
      <content:encoded>&lt;div&gt;Skill test required&lt;/div&gt;</content:encoded>
    </item>
    <item>
      <title>   </title>
      <link>https://jobs.example.gov.in/notices/blank</link>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Railway Board</title>
  <entry>
    <title>Assistant Loco Pilot</title>
    <link rel="alternate" href="https://rb.example.in/jobs/alp"/>
    <updated>2025-02-01T09:00:00Z</updated>
    <summary>Assistant loco pilot posts across zones</summary>
  </entry>
</feed>
"""


def _fetch(body: str, status: int = 200, **config):
    source = make_source(base_url=FEED_URL, **config)
    transport = make_transport({FEED_URL: httpx.Response(status, text=body)})
    return RssAdapter(transport=transport).fetch(source)


def test_rss_items_become_candidates():
    jobs = _fetch(RSS_FEED, default_org="Staff Selection Commission", default_state="Delhi")

    # the blank-title item is rejected
    assert [j.title for j in jobs] == [
        "SSC Combined Graduate Level Exam 2025",
        "Junior Engineer Recruitment",
        "Stenographer Grade C",
    ]
    first = jobs[0]
    assert first.organisation == "Staff Selection Commission"
    assert first.state == "Delhi"
    assert first.source_id == "src"
    assert first.status == "open"
    assert first.source_url == "https://jobs.example.gov.in/notices/cgl-2025"
    assert first.official_notification_url == first.source_url
    assert first.description == "Apply online for CGL posts."
    assert first.published_at.astimezone(timezone.utc) == datetime(2025, 1, 6, 4, 30, tzinfo=timezone.utc)


def test_relative_links_resolve_against_feed_url():
    jobs = _fetch(RSS_FEED)
    assert jobs[1].source_url == "https://jobs.example.gov.in/notices/je-2025"
    assert jobs[1].published_at is None


def test_description_falls_back_to_content_encoded():
    jobs = _fetch(RSS_FEED)
    assert jobs[2].description == "Skill test required"


def test_organisation_defaults_to_feed_title():
    jobs = _fetch(RSS_FEED)
    assert {j.organisation for j in jobs} == {"Employment News"}


def test_field_mapping_can_be_overridden():
    jobs = _fetch(RSS_FEED, title_field="description", description_field="title")
    assert jobs[1].title == "Civil and electrical posts"
    assert jobs[1].description == "Junior Engineer Recruitment"


def test_atom_feed():
    jobs = _fetch(ATOM_FEED, default_category="Railways")
    assert len(jobs) == 1
    job = jobs[0]
    assert job.title == "Assistant Loco Pilot"
    assert job.organisation == "Railway Board"
    assert job.category == "Railways"
    assert job.source_url == "https://rb.example.in/jobs/alp"
    assert job.description == "Assistant loco pilot posts across zones"
    assert job.published_at == datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc)


def test_non_feed_document_raises_adapter_error():
    with pytest.raises(AdapterError):
        _fetch("<html><body><p>Maintenance</p></body></html>")


def test_http_error_propagates():
    with pytest.raises(httpx.HTTPStatusError):
        _fetch("oops", status=500)


def test_empty_channel_yields_nothing():
    assert _fetch('<rss version="2.0"><channel><title>Empty</title></channel></rss>') == []
