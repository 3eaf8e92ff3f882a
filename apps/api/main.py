from contextlib import asynccontextmanager
import logging
import math
import time

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request

from apps.api.routes import geo, health, jobs
from apps.api.schemas import ErrorOut
from jobfeed.errors import (
    InvalidQueryError,
    ProviderUnavailableError,
    QueryTimeoutError,
    RateLimitedError,
    StoreUnavailableError,
)
from jobfeed.log import configure_logging
from jobfeed.pipeline.storage import ensure_engine
from jobfeed.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    ensure_engine(settings.DB_URL)
    yield


app = FastAPI(title="jobfeed", lifespan=lifespan)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    logger.info(
        "http request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


def _error(code: int, error: str, detail: str, headers: dict | None = None, **extra) -> JSONResponse:
    return JSONResponse(status_code=code, content={"error": error, "detail": detail, **extra}, headers=headers)


@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(_: Request, exc: InvalidQueryError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "invalid_request", str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error(status.HTTP_400_BAD_REQUEST, "invalid_request", detail)


@app.exception_handler(RateLimitedError)
async def rate_limited_handler(_: Request, exc: RateLimitedError) -> JSONResponse:
    return _error(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "rate_limited",
        str(exc),
        headers={"Retry-After": str(max(1, math.ceil(exc.retry_after)))},
    )


@app.exception_handler(QueryTimeoutError)
async def query_timeout_handler(_: Request, exc: QueryTimeoutError) -> JSONResponse:
    return _error(status.HTTP_504_GATEWAY_TIMEOUT, "query_timeout", str(exc))


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(_: Request, exc: StoreUnavailableError) -> JSONResponse:
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable", str(exc))


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(_: Request, exc: ProviderUnavailableError) -> JSONResponse:
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "provider_unavailable",
        str(exc),
        provider_status=exc.status_code,
    )


_ERROR_RESPONSES = {
    code: {"model": ErrorOut}
    for code in (status.HTTP_400_BAD_REQUEST, status.HTTP_503_SERVICE_UNAVAILABLE, status.HTTP_504_GATEWAY_TIMEOUT)
}

app.include_router(health.router, tags=["health"])
app.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["jobs"],
    responses={**_ERROR_RESPONSES, status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorOut}},
)
app.include_router(geo.router, prefix="/geo", tags=["geo"], responses=_ERROR_RESPONSES)
