import logging
import re
from typing import Optional
from urllib.parse import unquote, urlsplit

from jobfeed.adapters.base import BaseAdapter
from jobfeed.models.job import CandidateJob
from jobfeed.models.source import SourceDescriptor
from jobfeed.pipeline.normalize import build_candidate, collapse_ws
from jobfeed.settings import settings

logger = logging.getLogger(__name__)

_printable_run = re.compile(rb"[\x20-\x7e]{4,}")
_pdf_suffix = re.compile(r"\.pdf$", re.I)

DEFAULT_PDF_ORG = "Government of India"


def extract_text_naive(data: bytes, max_chars: Optional[int] = None) -> str:
    """
    Best-effort text scan: printable ASCII runs of 4+ bytes joined by spaces.

    TODO: swap for a Unicode-aware PDF text extractor; single-byte scanning
    cannot recover Devanagari or other non-Latin scripts.
    """
    limit = settings.PDF_TEXT_MAX_CHARS if max_chars is None else max_chars
    runs = _printable_run.findall(data)
    return b" ".join(runs).decode("ascii")[:limit]


def title_from_url(url: str, org: Optional[str]) -> str:
    filename = unquote(urlsplit(url).path.rsplit("/", 1)[-1])
    filename = collapse_ws(_pdf_suffix.sub("", re.sub(r"[_-]", " ", filename)))
    if len(filename) > 5:
        return filename
    return f"Notification from {org or 'Government'}"


class PdfAdapter(BaseAdapter):
    """
    One candidate per notification PDF. A source lists its files in
    config.pdf_urls; with an empty list the base_url itself is the PDF.
    """
    source_type = "pdf"

    def fetch(self, source: SourceDescriptor) -> list[CandidateJob]:
        urls = source.config.pdf_urls or [source.base_url]
        org = source.config.default_org or DEFAULT_PDF_ORG
        jobs: list[CandidateJob] = []
        for url in urls:
            r = self._get(url)
            text = extract_text_naive(r.content)
            job = build_candidate(
                source,
                title=title_from_url(url, source.config.default_org),
                organisation=org,
                description=text,
                source_url=url,
                official_notification_url=url,
            )
            if job is not None:
                jobs.append(job)
            logger.debug("%s: %s -> %d bytes, %d chars text", source.label, url, len(r.content), len(text))
        return jobs
