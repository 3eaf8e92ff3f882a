import logging
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from jobfeed.adapters.base import BaseAdapter
from jobfeed.errors import AdapterError
from jobfeed.models.job import CandidateJob
from jobfeed.models.source import SourceDescriptor
from jobfeed.pipeline.normalize import build_candidate, clean_text, parse_datetime

logger = logging.getLogger(__name__)

# Fallback element names when the configured field is missing on an item
_DESCRIPTION_FALLBACKS = ("description", "encoded", "summary", "content")
_DATE_FIELDS = ("pubDate", "published", "updated", "date")


def _element_value(el: Optional[Tag]) -> Optional[str]:
    if el is None:
        return None
    # Atom links carry the URL in href, not in the text node
    if el.name == "link" and el.get("href"):
        return el["href"]
    return el.get_text(strip=True) or None


def _item_value(item: Tag, name: str) -> Optional[str]:
    if name == "link":
        links = item.find_all("link")
        preferred = [l for l in links if (l.get("rel") or "alternate") == "alternate"]
        for el in preferred or links:
            value = _element_value(el)
            if value:
                return value
        return None
    return _element_value(item.find(name))


def _strip_html(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    if "<" not in text:
        return text.strip() or None
    return BeautifulSoup(text, "lxml").get_text(" ", strip=True) or None


class RssAdapter(BaseAdapter):
    """
    RSS 2.0, Atom and RSS 1.0 (RDF) feeds.
    Field names for title/link/description can be remapped per source.
    """
    source_type = "rss"

    def fetch(self, source: SourceDescriptor) -> list[CandidateJob]:
        r = self._get(source.base_url)
        soup = BeautifulSoup(r.content, "xml")

        root = soup.find(["rss", "feed", "RDF"])
        if root is None:
            raise AdapterError(f"{source.base_url} is not an RSS/Atom feed")

        is_atom = root.name == "feed"
        channel = root if is_atom else (root.find("channel") or root)
        feed_title = clean_text(_element_value(channel.find("title", recursive=False)))
        items = root.find_all("entry") if is_atom else root.find_all("item")

        cfg = source.config
        jobs: list[CandidateJob] = []
        for item in items:
            title = _item_value(item, cfg.title_field)
            link = _item_value(item, cfg.link_field)
            if link:
                link = urljoin(source.base_url, link)

            description = _item_value(item, cfg.description_field)
            if not description:
                for name in _DESCRIPTION_FALLBACKS:
                    description = _item_value(item, name)
                    if description:
                        break

            published = None
            for name in _DATE_FIELDS:
                published = parse_datetime(_item_value(item, name))
                if published:
                    break

            job = build_candidate(
                source,
                title=title,
                organisation=cfg.default_org or feed_title,
                description=_strip_html(description),
                source_url=link or source.base_url,
                official_notification_url=link,
                published_at=published,
            )
            if job is not None:
                jobs.append(job)

        logger.debug("%s: %d feed items -> %d candidates", source.label, len(items), len(jobs))
        return jobs
