# jobfeed/pipeline/normalize.py
import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

from pydantic import ValidationError

from jobfeed.models.job import CandidateJob
from jobfeed.models.source import SourceDescriptor

logger = logging.getLogger(__name__)

_ws_re = re.compile(r"\s+")
_token_re = re.compile(r"\w+")

# Columns feeding the search vector, in order
SEARCH_FIELDS = (
    "title",
    "organisation",
    "category",
    "qualification",
    "state",
    "district",
    "city",
    "description",
)

# ---------------------
# Text cleanup
# ---------------------
def collapse_ws(text: Optional[str]) -> str:
    return _ws_re.sub(" ", text or "").strip()


def clean_text(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace; empty strings become None."""
    value = collapse_ws(text)
    return value or None


def tokenize(text: Optional[str]) -> list[str]:
    return _token_re.findall((text or "").lower())


def build_search_vector(fields: dict[str, Any]) -> str:
    """
    Space-delimited, de-duplicated token list over SEARCH_FIELDS.
    Padded with a leading/trailing space so prefix matches can anchor on " tok".
    """
    seen: dict[str, None] = {}
    for name in SEARCH_FIELDS:
        for tok in tokenize(fields.get(name)):
            seen.setdefault(tok, None)
    return " " + " ".join(seen) + " " if seen else ""


# ---------------------
# Dates
# ---------------------
def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """RFC 822 (RSS pubDate) or ISO 8601 (Atom); None when unparseable."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("unparseable date %r", value)
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ---------------------
# Candidate construction
# ---------------------
def build_candidate(source: SourceDescriptor, **fields: Any) -> Optional[CandidateJob]:
    """
    Fill unset fields from the source defaults and validate.
    Returns None (and logs) for records that must not reach the store.
    """
    cfg = source.config
    defaults = {
        "organisation": cfg.default_org,
        "category": cfg.default_category,
        "state": cfg.default_state,
        "district": cfg.default_district,
        "city": cfg.default_city,
        "lat": cfg.default_lat,
        "lon": cfg.default_lon,
    }
    for key, default in defaults.items():
        if fields.get(key) is None:
            fields[key] = default
    fields.setdefault("source_id", source.id)

    for key, value in list(fields.items()):
        if isinstance(value, str):
            fields[key] = clean_text(value) if key != "description" else (value.strip() or None)

    try:
        return CandidateJob(title=fields.pop("title", None) or "", **fields)
    except ValidationError as e:
        logger.warning("[reject] %s: %s", source.label, e.errors(include_url=False))
        return None
