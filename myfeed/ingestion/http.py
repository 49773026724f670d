"""Shared HTTP client."""

from typing import Optional

import httpx

DEFAULT_USER_AGENT = "myfeed/0.1 (+feed poller)"


def create_http_client(
    connect_timeout: float = 5.0,
    request_timeout: float = 30.0,
    user_agent: str = DEFAULT_USER_AGENT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the client shared by feed and page retrieval."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(request_timeout, connect=connect_timeout),
        follow_redirects=True,
        headers={
            "User-Agent": user_agent,
            "Accept": "application/rss+xml, application/xml, text/html;q=0.9, */*;q=0.8",
        },
        transport=transport,
    )
