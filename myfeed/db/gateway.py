"""Persistence gateway used by the polling engine."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Iterable, List, Optional, Sequence

import psycopg
from psycopg_pool import AsyncConnectionPool

from ..models import Item, ItemWithTags, Source, Tag
from .errors import PersistenceError
from .items import ItemStorage
from .sources import SourceManager
from .tags import TagManager


class PersistenceGateway(ABC):
    """Storage operations the ingestion engine depends on."""

    @abstractmethod
    async def list_sources(self) -> List[Source]:
        """Get every configured source."""

    @abstractmethod
    async def insert_source(self, source: Source) -> Source:
        """Insert a source and return it with its id populated."""

    @abstractmethod
    async def update_source(self, source: Source) -> None:
        """Persist a source's bookkeeping columns."""

    @abstractmethod
    async def insert_item(self, item: Item) -> int:
        """
        Insert an item and return its id.

        Raises:
            DuplicateLinkError: an item with this link already exists
            PersistenceError: any other failure
        """

    @abstractmethod
    async def list_source_tags(self, source_id: int) -> List[Tag]:
        """Get the tags explicitly assigned to a source."""

    @abstractmethod
    async def insert_tags_if_absent(self, tags: Iterable[Tag]) -> None:
        """Create tags whose names do not exist yet."""

    @abstractmethod
    async def link_item_tags(self, item_id: int, tag_names: Iterable[str]) -> None:
        """Link existing tags to an item; existing links are kept."""


class PostgresGateway(PersistenceGateway):
    """Gateway backed by a shared psycopg connection pool."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool
        self.sources = SourceManager()
        self.items = ItemStorage()
        self.tags = TagManager()

    @asynccontextmanager
    async def _connection(self, action: str, table: str) -> AsyncIterator[psycopg.AsyncConnection]:
        """Borrow a pooled connection, wrapping driver errors."""
        try:
            async with self.pool.connection() as conn:
                yield conn
        except psycopg.Error as e:
            raise PersistenceError(action, table, e) from e

    async def list_sources(self) -> List[Source]:
        async with self._connection("selecting rows from", "sources") as conn:
            return await self.sources.get_sources(conn)

    async def insert_source(self, source: Source) -> Source:
        async with self._connection("inserting row into", "sources") as conn:
            return await self.sources.insert_source(conn, source)

    async def update_source(self, source: Source) -> None:
        async with self._connection("updating row in", "sources") as conn:
            await self.sources.update_bookkeeping(conn, source)

    async def insert_item(self, item: Item) -> int:
        async with self._connection("inserting row into", "items") as conn:
            return await self.items.insert_item(conn, item)

    async def list_source_tags(self, source_id: int) -> List[Tag]:
        async with self._connection("selecting rows from", "sources_to_tags") as conn:
            return await self.sources.get_source_tags(conn, source_id)

    async def insert_tags_if_absent(self, tags: Iterable[Tag]) -> None:
        async with self._connection("inserting rows into", "tags") as conn:
            await self.tags.insert_tags_if_absent(conn, list(tags))

    async def link_item_tags(self, item_id: int, tag_names: Iterable[str]) -> None:
        async with self._connection("inserting rows into", "items_to_tags") as conn:
            await self.items.add_tags(conn, item_id, sorted(tag_names))

    # Management operations used outside the poll loop

    async def list_sources_with_tags(self, tags: Sequence[str]) -> List[Source]:
        async with self._connection("selecting rows from", "sources") as conn:
            return await self.sources.get_sources_with_tags(conn, tags)

    async def delete_source(self, source_id: int) -> bool:
        async with self._connection("deleting rows in", "sources") as conn:
            return await self.sources.delete_source(conn, source_id)

    async def add_source_tags(self, source_id: int, tag_names: Sequence[str]) -> None:
        """Create missing tags, then link them to the source."""
        await self.insert_tags_if_absent(Tag(name=name) for name in tag_names)
        async with self._connection("inserting rows into", "sources_to_tags") as conn:
            await self.sources.add_tags(conn, source_id, tag_names)

    async def remove_source_tag(self, source_id: int, tag_name: str) -> None:
        async with self._connection("deleting rows in", "sources_to_tags") as conn:
            await self.sources.remove_tag(conn, source_id, tag_name)

    async def item_feed(self, since: datetime, include_done: bool = False) -> List[ItemWithTags]:
        async with self._connection("selecting rows from", "items") as conn:
            return await self.items.get_feed(conn, since, include_done)

    async def set_item_done(self, item_id: int, done: bool = True) -> None:
        async with self._connection("updating row in", "items") as conn:
            await self.items.set_done(conn, item_id, done)

    async def delete_item(self, item_id: int) -> bool:
        async with self._connection("deleting rows in", "items") as conn:
            return await self.items.delete_item(conn, item_id)

    async def remove_item_tag(self, item_id: int, tag_name: str) -> None:
        async with self._connection("deleting rows in", "items_to_tags") as conn:
            await self.items.remove_tag(conn, item_id, tag_name)

    async def list_tags(self) -> List[Tag]:
        async with self._connection("selecting rows from", "tags") as conn:
            return await self.tags.get_tags(conn)

    async def get_tag(self, name: str) -> Optional[Tag]:
        async with self._connection("selecting rows from", "tags") as conn:
            return await self.tags.get_tag(conn, name)

    async def insert_tag(self, tag: Tag) -> None:
        async with self._connection("inserting row into", "tags") as conn:
            await self.tags.insert_tag(conn, tag)

    async def update_tag(self, tag: Tag) -> None:
        async with self._connection("updating row in", "tags") as conn:
            await self.tags.update_tag(conn, tag)

    async def delete_tag(self, name: str) -> bool:
        async with self._connection("deleting rows in", "tags") as conn:
            return await self.tags.delete_tag(conn, name)
