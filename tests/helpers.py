from datetime import datetime, timezone
from typing import Callable, Union

import httpx
from sqlalchemy import insert

from db.schemas import Job
from jobfeed.models.source import SourceConfig, SourceDescriptor

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def make_transport(routes: dict[str, Route]) -> httpx.MockTransport:
    """Serve fixed responses by exact URL (query string included); 404 otherwise."""

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    return httpx.MockTransport(handler)


def make_source(id: str = "src", type: str = "rss", base_url: str = "https://jobs.example.gov.in/rss.xml", active: bool = True, **config) -> SourceDescriptor:
    return SourceDescriptor(
        id=id,
        name=f"Source {id}",
        type=type,
        base_url=base_url,
        active=active,
        config=SourceConfig(**config),
    )


def bulk_insert_jobs(session, n: int, title: str = "Clerk", lat: float = 28.6, lon: float = 77.2) -> None:
    """Insert n rows in one executemany; enough rows to outlast a tiny query deadline."""
    session.execute(insert(Job), [
        {
            "content_hash": f"{i:064x}",
            "title": f"{title} {i}",
            "search_vector": f" {title.lower()} {i} ",
            "state": "Delhi",
            "lat": lat + i * 1e-5,
            "lon": lon,
            "status": "open",
            "published_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        }
        for i in range(n)
    ])
    session.flush()
