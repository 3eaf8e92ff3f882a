# jobfeed/pipeline/orchestrator.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Iterable, Optional

import httpx

from jobfeed.adapters.base import BaseAdapter
from jobfeed.adapters.html import HtmlListAdapter
from jobfeed.adapters.pdf import PdfAdapter
from jobfeed.adapters.rss import RssAdapter
from jobfeed.models.source import SourceDescriptor
from jobfeed.pipeline.dedup import filter_new
from jobfeed.pipeline.storage import existing_hashes, get_session, init_engine, insert_if_new
from jobfeed.settings import settings
from jobfeed.sources import active_sources, load_sources

logger = logging.getLogger(__name__)

ADAPTERS: dict[str, type[BaseAdapter]] = {
    "rss": RssAdapter,
    "html": HtmlListAdapter,
    "pdf": PdfAdapter,
}


class SourceState(str, Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    DEDUPING = "deduping"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SourceOutcome:
    source_id: str
    name: str
    type: str
    state: SourceState = SourceState.PENDING
    fetched: int = 0
    inserted: int = 0
    skipped: int = 0
    error: Optional[str] = None

    def advance(self, state: SourceState) -> None:
        logger.debug("[%s:%s] %s -> %s", self.type, self.source_id, self.state.value, state.value)
        self.state = state


@dataclass
class IngestReport:
    sources: list[SourceOutcome] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(o.inserted for o in self.sources)

    @property
    def skipped(self) -> int:
        return sum(o.skipped for o in self.sources)

    @property
    def failed(self) -> list[SourceOutcome]:
        return [o for o in self.sources if o.state is SourceState.FAILED]

    def by_id(self, source_id: str) -> SourceOutcome:
        return next(o for o in self.sources if o.source_id == source_id)


# --- adapter factory ----------------------------------------------------------

def adapter_for(source: SourceDescriptor, transport: Optional[httpx.BaseTransport] = None) -> BaseAdapter:
    try:
        cls = ADAPTERS[source.type]
    except KeyError:
        raise ValueError(f"unknown adapter type: {source.type!r}") from None
    return cls(transport=transport)


# --- per-source pipeline ------------------------------------------------------

def _describe(e: Exception) -> str:
    if isinstance(e, httpx.HTTPStatusError):
        return f"HTTP {e.response.status_code} for {e.request.url}"
    if isinstance(e, httpx.TimeoutException):
        return f"timeout fetching {e.request.url}"
    return f"{type(e).__name__}: {e}"


def process_source(source: SourceDescriptor, transport: Optional[httpx.BaseTransport] = None) -> SourceOutcome:
    """Fetch -> dedup -> persist one source. Never raises; failures land in the outcome."""
    outcome = SourceOutcome(source_id=source.id, name=source.name, type=source.type)
    logger.info("[run] %s (%s)", source.label, source.base_url)

    outcome.advance(SourceState.FETCHING)
    try:
        candidates = adapter_for(source, transport).fetch(source)
    except Exception as e:
        outcome.error = _describe(e)
        outcome.advance(SourceState.FAILED)
        logger.warning("[skip] %s fetch failed: %s", source.label, outcome.error, exc_info=not isinstance(e, httpx.HTTPError))
        return outcome
    outcome.fetched = len(candidates)

    try:
        with get_session() as s:
            outcome.advance(SourceState.DEDUPING)
            fresh = filter_new(partial(existing_hashes, s), candidates)
            outcome.skipped = len(candidates) - len(fresh)

            outcome.advance(SourceState.PERSISTING)
            for content_hash, job in fresh:
                if insert_if_new(s, job, content_hash):
                    outcome.inserted += 1
                else:
                    # lost a race with a concurrent run
                    outcome.skipped += 1
    except Exception as e:
        outcome.inserted = 0
        outcome.skipped = 0
        outcome.error = _describe(e)
        outcome.advance(SourceState.FAILED)
        logger.exception("[skip] %s persist failed", source.label)
        return outcome

    outcome.advance(SourceState.DONE)
    return outcome


# --- main run ----------------------------------------------------------------

def run(
    sources: Iterable[SourceDescriptor],
    *,
    workers: Optional[int] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> IngestReport:
    """Ingest every active source; one source failing never stops the others."""
    todo = active_sources(sources)
    workers = max(1, workers or settings.INGEST_WORKERS)
    logger.info("running ingestion for %d active source(s), %d worker(s)", len(todo), workers)

    if workers == 1 or len(todo) <= 1:
        outcomes = [process_source(src, transport) for src in todo]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest") as pool:
            outcomes = list(pool.map(lambda src: process_source(src, transport), todo))

    report = IngestReport(sources=outcomes)
    _log_summary(report)
    return report


def _log_summary(report: IngestReport) -> None:
    logger.info("—" * 60)
    for o in report.sources:
        label = f"{o.type}:{o.source_id}"
        if o.state is SourceState.FAILED:
            logger.info("[fail] %-40s error=%s", label, o.error)
        else:
            logger.info("[done] %-40s fetched=%4d  inserted=%4d  skipped=%4d", label, o.fetched, o.inserted, o.skipped)
    logger.info("—" * 60)


def run_once(sources_file: Optional[str] = None, workers: Optional[int] = None) -> IngestReport:
    """Load the source registry, bind the store and run one ingestion pass."""
    init_engine(settings.DB_URL)
    return run(load_sources(sources_file or settings.SOURCES_FILE), workers=workers)
