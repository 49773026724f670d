"""Tests for feed fetching and parsing."""

import asyncio

import httpx
import pytest

from myfeed.ingestion import FeedClient, FeedError, parse_feed
from tests.conftest import connect_error, make_client, rss_feed

FEED_URL = "https://example.com/feed.xml"


def test_parse_feed_reads_channel_and_entries():
    """Entries keep document order, raw dates and category names."""
    data = rss_feed(
        [
            {
                "link": "https://example.com/a",
                "title": "First",
                "description": "About A",
                "pub_date": "Tue, 02 Jan 2024 10:00:00 +0000",
                "categories": ["Tech", "Rust"],
            },
            {"link": "https://example.com/b", "title": "Second"},
        ],
        pub_date="Wed, 03 Jan 2024 08:00:00 GMT",
        ttl="30",
        categories=["Blog"],
    )

    channel = parse_feed(data)

    assert channel.title == "Test feed"
    assert channel.ttl == "30"
    assert channel.pub_date == "Wed, 03 Jan 2024 08:00:00 GMT"
    assert channel.categories == ["Blog"]
    assert [e.link for e in channel.items] == ["https://example.com/a", "https://example.com/b"]
    first = channel.items[0]
    assert first.title == "First"
    assert first.description == "About A"
    assert first.pub_date == "Tue, 02 Jan 2024 10:00:00 +0000"
    assert first.categories == ["Tech", "Rust"]
    assert channel.items[1].pub_date is None
    assert channel.items[1].categories == []


def test_parse_feed_keeps_entries_without_link():
    """Missing links are left for the enrichment step to reject."""
    channel = parse_feed(rss_feed([{"title": "No link"}]))

    assert len(channel.items) == 1
    assert channel.items[0].link is None


def test_parse_feed_rejects_non_feed_documents():
    with pytest.raises(FeedError):
        parse_feed(b"<html><body><p>Not a feed</p></body></html>")


def test_parse_feed_rejects_malformed_xml():
    with pytest.raises(FeedError):
        parse_feed(b'<?xml version="1.0"?><rss version="2.0"><channel><item><title>x</item>')


def test_fetch_channel_success():
    client = make_client({FEED_URL: httpx.Response(200, content=rss_feed([{"link": "https://example.com/a"}]))})

    channel = asyncio.run(FeedClient(client).fetch_channel(FEED_URL))

    assert [e.link for e in channel.items] == ["https://example.com/a"]


def test_fetch_channel_http_error_status():
    client = make_client({FEED_URL: httpx.Response(500, text="oops")})

    with pytest.raises(FeedError) as exc_info:
        asyncio.run(FeedClient(client).fetch_channel(FEED_URL))

    assert "500" in str(exc_info.value)
    assert exc_info.value.url == FEED_URL


def test_fetch_channel_network_error_is_wrapped():
    client = make_client({FEED_URL: connect_error(FEED_URL)})

    with pytest.raises(FeedError) as exc_info:
        asyncio.run(FeedClient(client).fetch_channel(FEED_URL))

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
