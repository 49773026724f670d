"""Feed fetcher and parser."""

import logging
from typing import Any, List, Optional

import feedparser
import httpx

from .errors import FeedError
from .models import Channel, FeedEntry

logger = logging.getLogger(__name__)

# bozo exceptions that do not make the document unusable
_BENIGN_BOZO = (feedparser.CharacterEncodingOverride,)


def _category_names(tags: Optional[List[Any]]) -> List[str]:
    """Extract category terms from feedparser tag dicts."""
    names = []
    for tag in tags or []:
        term = tag.get("term")
        if term is not None:
            names.append(term)
    return names


def parse_feed(data: bytes, url: str = "<feed>") -> Channel:
    """
    Parse a raw feed document.

    Raises:
        FeedError: the document is not a usable feed
    """
    feed = feedparser.parse(data)

    if feed.bozo and not isinstance(feed.bozo_exception, _BENIGN_BOZO):
        raise FeedError(url, f"Invalid feed: {feed.bozo_exception}")
    if not feed.version:
        raise FeedError(url, "Document is not a recognized feed format")

    items = []
    for entry in feed.entries:
        items.append(
            FeedEntry(
                link=entry.get("link"),
                title=entry.get("title"),
                author=entry.get("author"),
                description=entry.get("summary"),
                pub_date=entry.get("published") or entry.get("updated"),
                categories=_category_names(entry.get("tags")),
            )
        )

    return Channel(
        title=feed.feed.get("title"),
        items=items,
        pub_date=feed.feed.get("published") or feed.feed.get("updated"),
        ttl=feed.feed.get("ttl"),
        categories=_category_names(feed.feed.get("tags")),
    )


class FeedClient:
    """Fetch and parse remote feeds. Never retries."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize with the shared HTTP client."""
        self.client = client

    async def fetch_channel(self, url: str) -> Channel:
        """
        Fetch and parse the feed at ``url``.

        Raises:
            FeedError: network failure, error status or malformed document
        """
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FeedError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FeedError(url, f"HTTP error: {e}") from e

        channel = parse_feed(response.content, url)
        logger.debug("Fetched %d entries from %s", len(channel.items), url)
        return channel
