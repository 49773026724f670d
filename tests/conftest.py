"""Shared fixtures: in-memory storage, fake HTTP and document builders."""

import inspect
from datetime import datetime
from html import escape
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

import httpx
import pytest

from myfeed.db.errors import DuplicateLinkError, PersistenceError
from myfeed.db.gateway import PersistenceGateway
from myfeed.models import Item, Source, Tag


class InMemoryGateway(PersistenceGateway):
    """PersistenceGateway with unique links and idempotent tags, for tests."""

    def __init__(self) -> None:
        self.sources: Dict[int, Source] = {}
        self.items: Dict[int, Item] = {}
        self.tags: Dict[str, Tag] = {}
        self.item_tags: Set[Tuple[int, str]] = set()
        self.source_tags: Set[Tuple[int, str]] = set()
        self.calls: List[str] = []
        self.fail_list_sources = 0
        self.fail_update_source = False
        self.fail_links: Set[str] = set()
        self._next_id = 1

    def _id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def add_source(self, source: Source, tags: Iterable[str] = ()) -> Source:
        saved = source.model_copy(update={"id": self._id()})
        self.sources[saved.id] = saved
        for name in tags:
            self.tags.setdefault(name, Tag(name=name))
            self.source_tags.add((saved.id, name))
        return saved

    def tags_for(self, link: str) -> Set[str]:
        item_id = next(i for i, item in self.items.items() if item.link == link)
        return {name for (iid, name) in self.item_tags if iid == item_id}

    @property
    def links(self) -> Set[str]:
        return {item.link for item in self.items.values()}

    async def list_sources(self) -> List[Source]:
        self.calls.append("list_sources")
        if self.fail_list_sources:
            self.fail_list_sources -= 1
            raise PersistenceError("selecting rows from", "sources", "connection refused")
        return list(self.sources.values())

    async def insert_source(self, source: Source) -> Source:
        self.calls.append("insert_source")
        return self.add_source(source)

    async def update_source(self, source: Source) -> None:
        self.calls.append("update_source")
        if self.fail_update_source:
            raise PersistenceError("updating row in", "sources", "disk full")
        stored = self.sources[source.id]
        self.sources[source.id] = stored.model_copy(
            update={"last_pub": source.last_pub, "last_poll": source.last_poll, "ttl": source.ttl}
        )

    async def insert_item(self, item: Item) -> int:
        self.calls.append("insert_item")
        if item.link in self.fail_links:
            raise PersistenceError("inserting row into", "items", "constraint failed")
        if item.link in self.links:
            raise DuplicateLinkError(item.link)
        item_id = self._id()
        self.items[item_id] = item.model_copy(update={"id": item_id})
        return item_id

    async def list_source_tags(self, source_id: int) -> List[Tag]:
        self.calls.append("list_source_tags")
        return [self.tags[name] for (sid, name) in sorted(self.source_tags) if sid == source_id]

    async def insert_tags_if_absent(self, tags: Iterable[Tag]) -> None:
        self.calls.append("insert_tags_if_absent")
        for tag in tags:
            self.tags.setdefault(tag.name, tag)

    async def link_item_tags(self, item_id: int, tag_names: Iterable[str]) -> None:
        self.calls.append("link_item_tags")
        names = set(tag_names)
        missing = names - set(self.tags)
        if missing:
            raise PersistenceError("inserting rows into", "items_to_tags", f"unknown tags {sorted(missing)}")
        for name in names:
            self.item_tags.add((item_id, name))


Route = Union[httpx.Response, Exception, Callable]


def make_client(routes: Dict[str, Route]) -> httpx.AsyncClient:
    """AsyncClient answering from ``routes``; unknown URLs get a 404."""

    async def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            result = route(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        return route

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def connect_error(url: str) -> httpx.ConnectError:
    return httpx.ConnectError("connection refused", request=httpx.Request("GET", url))


def rss_feed(
    entries: Iterable[dict],
    pub_date: Optional[str] = None,
    ttl: Optional[str] = None,
    categories: Iterable[str] = (),
) -> bytes:
    """Build an RSS 2.0 document from entry dicts (link, title, pub_date, categories)."""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0"><channel>',
        "<title>Test feed</title>",
        "<link>https://example.com/</link>",
        "<description>Test feed</description>",
    ]
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    if ttl is not None:
        parts.append(f"<ttl>{ttl}</ttl>")
    for name in categories:
        parts.append(f"<category>{escape(name)}</category>")
    for entry in entries:
        parts.append("<item>")
        if entry.get("title"):
            parts.append(f"<title>{escape(entry['title'])}</title>")
        if entry.get("link"):
            parts.append(f"<link>{escape(entry['link'])}</link>")
        if entry.get("description"):
            parts.append(f"<description>{escape(entry['description'])}</description>")
        if entry.get("pub_date"):
            parts.append(f"<pubDate>{entry['pub_date']}</pubDate>")
        for name in entry.get("categories", ()):
            parts.append(f"<category>{escape(name)}</category>")
        parts.append("</item>")
    parts.append("</channel></rss>")
    return "".join(parts).encode("utf-8")


def html_page(*og_images: str) -> str:
    """Build a well-formed page with the given og:image values in its head."""
    metas = "".join(f'<meta property="og:image" content="{escape(url)}">' for url in og_images)
    return (
        "<!DOCTYPE html>"
        f"<html><head><title>Article</title>{metas}</head>"
        "<body><p>Hello</p></body></html>"
    )


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 1, 12, 0, 0)
