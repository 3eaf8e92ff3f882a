from functools import lru_cache

from fastapi import Depends, Request

from apps.api.ratelimit import FixedWindowRateLimiter, build_rate_limiter
from jobfeed.errors import RateLimitedError
from jobfeed.geo.cache import build_geocode_cache
from jobfeed.geo.provider import build_geocoder
from jobfeed.pipeline.storage import get_session


def get_db():
    with get_session() as s:
        yield s


@lru_cache
def get_geocode_cache():
    return build_geocode_cache()


@lru_cache
def get_geocoder():
    return build_geocoder()


@lru_cache
def get_rate_limiter() -> FixedWindowRateLimiter:
    return build_rate_limiter()


def enforce_rate_limit(request: Request, limiter: FixedWindowRateLimiter = Depends(get_rate_limiter)) -> None:
    client = request.client.host if request.client else "unknown"
    retry_after = limiter.hit(client)
    if retry_after is not None:
        raise RateLimitedError("Too many requests. Please try again later.", retry_after=retry_after)
