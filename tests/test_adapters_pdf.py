import httpx

from jobfeed.adapters.pdf import DEFAULT_PDF_ORG, PdfAdapter, extract_text_naive, title_from_url
from helpers import make_source, make_transport

PDF_BYTES = b"\x00\x01Hello World\x02ab\x03Recruitment 2025\xff\xfe"


def test_extract_text_keeps_printable_runs():
    assert extract_text_naive(PDF_BYTES) == "Hello World Recruitment 2025"


def test_extract_text_truncates():
    assert extract_text_naive(PDF_BYTES, max_chars=5) == "Hello"
    assert extract_text_naive(b"\x00\x01\x02") == ""


def test_title_from_url():
    assert title_from_url("https://upsc.example.gov.in/files/CGL_Notice-2025.pdf", None) == "CGL Notice 2025"
    assert title_from_url("https://upsc.example.gov.in/files/CSE%20Notice%202025.PDF", None) == "CSE Notice 2025"
    assert title_from_url("https://upsc.example.gov.in/a.pdf", "UPSC") == "Notification from UPSC"
    assert title_from_url("https://upsc.example.gov.in/a.pdf", None) == "Notification from Government"


def test_pdf_adapter_one_candidate_per_file():
    urls = [
        "https://upsc.example.gov.in/files/Engineering_Services_2025.pdf",
        "https://upsc.example.gov.in/files/x.pdf",
    ]
    transport = make_transport({u: httpx.Response(200, content=PDF_BYTES) for u in urls})
    source = make_source(id="upsc", type="pdf", base_url="https://upsc.example.gov.in/", pdf_urls=urls)

    jobs = PdfAdapter(transport=transport).fetch(source)

    assert [j.title for j in jobs] == ["Engineering Services 2025", "Notification from Government"]
    assert all(j.organisation == DEFAULT_PDF_ORG for j in jobs)
    assert [j.official_notification_url for j in jobs] == urls
    assert [j.source_url for j in jobs] == urls
    assert jobs[0].description == "Hello World Recruitment 2025"


def test_pdf_adapter_uses_base_url_without_file_list():
    url = "https://psc.example.gov.in/Assistant_Professor_Advt.pdf"
    transport = make_transport({url: httpx.Response(200, content=PDF_BYTES)})
    source = make_source(id="psc", type="pdf", base_url=url, default_org="State PSC")

    jobs = PdfAdapter(transport=transport).fetch(source)

    assert len(jobs) == 1
    assert jobs[0].title == "Assistant Professor Advt"
    assert jobs[0].organisation == "State PSC"
