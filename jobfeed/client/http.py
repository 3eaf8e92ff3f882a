from typing import Optional

import httpx
from jobfeed.settings import settings


_headers = {"User-Agent": settings.USER_AGENT}


def get_client(
    transport: Optional[httpx.BaseTransport] = None,
    timeout: Optional[float] = None,
) -> httpx.Client:
    return httpx.Client(
        headers=_headers,
        timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
        follow_redirects=True,
        transport=transport,
    )
