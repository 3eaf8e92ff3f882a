import json
import logging
from pathlib import Path
from typing import Iterable, Union

from pydantic import TypeAdapter

from jobfeed.models.source import SourceDescriptor

logger = logging.getLogger(__name__)

_sources_adapter = TypeAdapter(list[SourceDescriptor])


def parse_sources(data: Union[dict, list]) -> list[SourceDescriptor]:
    """Accepts either {"sources": [...]} or a bare list of descriptors."""
    if isinstance(data, dict):
        data = data.get("sources", [])
    sources = _sources_adapter.validate_python(data)
    ids = [s.id for s in sources]
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        raise ValueError(f"duplicate source ids: {', '.join(dupes)}")
    return sources


def load_sources(path: Union[str, Path]) -> list[SourceDescriptor]:
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        sources = parse_sources(json.load(fh))
    logger.info("loaded %d source(s) from %s", len(sources), path)
    return sources


def active_sources(sources: Iterable[SourceDescriptor]) -> list[SourceDescriptor]:
    return [s for s in sources if s.active]
