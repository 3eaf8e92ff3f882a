"""Exceptions shared by the ingestion pipeline and the query engine.

Expected outcomes (duplicate skips, radius snapping, page-size clamping) are
plain return values; only the conditions below are raised.
"""


class JobFeedError(Exception):
    """Base class for project errors."""


class AdapterError(JobFeedError):
    """A source returned content its adapter could not turn into jobs."""


class InvalidQueryError(JobFeedError, ValueError):
    """Caller input rejected at the query boundary (bad coordinates, page, status...)."""


class StoreUnavailableError(JobFeedError):
    """The job store could not be reached or failed mid-query."""


class QueryTimeoutError(StoreUnavailableError):
    """A store query ran past its deadline and was aborted."""


class ProviderUnavailableError(JobFeedError):
    """The reverse-geocoding provider is down, misconfigured or returned an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(JobFeedError):
    """A client went over its request budget for the current window."""

    def __init__(self, message: str, retry_after: float):
        super().__init__(message)
        self.retry_after = retry_after
