from typing import Optional

import httpx

from jobfeed.client.http import get_client
from jobfeed.models.job import CandidateJob
from jobfeed.models.source import SourceDescriptor


class BaseAdapter:
    source_type: str

    def __init__(self, transport: Optional[httpx.BaseTransport] = None):
        self.transport = transport

    def _get(self, url: str) -> httpx.Response:
        with get_client(self.transport) as client:
            r = client.get(url)
            r.raise_for_status()
            return r

    def fetch(self, source: SourceDescriptor) -> list[CandidateJob]:
        raise NotImplementedError
