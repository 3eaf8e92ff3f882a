import logging
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from jobfeed.adapters.base import BaseAdapter
from jobfeed.models.job import CandidateJob
from jobfeed.models.source import SourceDescriptor
from jobfeed.pipeline.normalize import build_candidate, parse_datetime

logger = logging.getLogger(__name__)


def _select_text(el: Tag, selector: Optional[str]) -> Optional[str]:
    if not selector:
        return None
    found = el.select_one(selector)
    if found is None:
        return None
    return found.get_text(" ", strip=True) or None


class HtmlListAdapter(BaseAdapter):
    """
    Job list pages scraped with CSS selectors from the source config:
      list_selector   -> one element per job (required)
      title_selector  -> title inside the item (item text when unset or unmatched)
      org/link/description/date/location selectors are optional; a selector
      that is unset or matches nothing leaves the field empty.
    """
    source_type = "html"

    def fetch(self, source: SourceDescriptor) -> list[CandidateJob]:
        r = self._get(source.base_url)
        page_url = str(r.url)
        soup = BeautifulSoup(r.text, "lxml")
        cfg = source.config

        items = soup.select(cfg.list_selector)
        jobs: list[CandidateJob] = []
        seen = set()
        for el in items:
            # an unmatched title selector falls back to the item text
            title = _select_text(el, cfg.title_selector) or el.get_text(" ", strip=True)

            href = None
            if cfg.link_selector:
                link_el = el.select_one(cfg.link_selector)
                if link_el is not None:
                    href = link_el.get("href")
            elif el.name == "a":
                href = el.get("href")
            url = urljoin(page_url, href) if href else None

            key = (title, url)
            if key in seen:
                continue
            seen.add(key)

            job = build_candidate(
                source,
                title=title,
                organisation=_select_text(el, cfg.org_selector),
                description=_select_text(el, cfg.description_selector),
                location_label=_select_text(el, cfg.location_selector),
                published_at=parse_datetime(_select_text(el, cfg.date_selector)),
                source_url=url or source.base_url,
                official_notification_url=url or source.base_url,
            )
            if job is not None:
                jobs.append(job)

        logger.debug("%s: %d list items -> %d candidates", source.label, len(items), len(jobs))
        return jobs
