"""Item storage and deduplication."""

from datetime import datetime
from typing import List, Sequence

from psycopg import AsyncConnection

from ..models import Item, ItemWithTags
from .errors import DuplicateLinkError


class ItemStorage:
    """Handle item storage, deduplicated on link."""

    async def insert_item(self, conn: AsyncConnection, item: Item) -> int:
        """
        Insert a new item.

        An existing row with the same link is never overwritten.

        Returns:
            New item ID

        Raises:
            DuplicateLinkError: the link was already ingested
        """
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO items (
                    link, title, description, author, published,
                    source_link, image, favorite, source_id
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (link) DO NOTHING
                RETURNING id
                """,
                (
                    item.link,
                    item.title,
                    item.description,
                    item.author,
                    item.published,
                    item.source_link,
                    item.image,
                    item.favorite,
                    item.source_id,
                ),
            )
            row = await cur.fetchone()
        await conn.commit()

        if row is None:
            raise DuplicateLinkError(item.link)
        return row["id"]

    async def get_feed(
        self,
        conn: AsyncConnection,
        since: datetime,
        include_done: bool = False,
    ) -> List[ItemWithTags]:
        """Get items created since ``since``, newest first, with tag names."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT
                    i.*,
                    COALESCE(
                        array_agg(it.tag_id ORDER BY it.tag_id) FILTER (WHERE it.tag_id IS NOT NULL),
                        ARRAY[]::TEXT[]
                    ) AS tags
                FROM items i
                LEFT JOIN items_to_tags it ON i.id = it.item_id
                WHERE i.created_at >= %s AND (%s OR i.done = FALSE)
                GROUP BY i.id
                ORDER BY i.created_at DESC
                """,
                (since, include_done),
            )
            return [ItemWithTags(**row) for row in await cur.fetchall()]

    async def set_done(self, conn: AsyncConnection, item_id: int, done: bool) -> None:
        """Mark an item read or unread."""
        async with conn.cursor() as cur:
            await cur.execute("UPDATE items SET done = %s WHERE id = %s", (done, item_id))
        await conn.commit()

    async def delete_item(self, conn: AsyncConnection, item_id: int) -> bool:
        """Delete an item and its tag links."""
        async with conn.cursor() as cur:
            await cur.execute("DELETE FROM items WHERE id = %s", (item_id,))
            deleted = cur.rowcount > 0
        await conn.commit()
        return deleted

    async def add_tags(self, conn: AsyncConnection, item_id: int, tags: Sequence[str]) -> None:
        """
        Link tags to an item; already linked tags are skipped.

        Every tag must exist already. An unknown name fails on the foreign key.
        """
        if not tags:
            return
        async with conn.cursor() as cur:
            await cur.executemany(
                """
                INSERT INTO items_to_tags (item_id, tag_id)
                VALUES (%s, %s)
                ON CONFLICT (item_id, tag_id) DO NOTHING
                """,
                [(item_id, tag) for tag in tags],
            )
        await conn.commit()

    async def remove_tag(self, conn: AsyncConnection, item_id: int, tag: str) -> None:
        """Unlink a tag from an item."""
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM items_to_tags WHERE item_id = %s AND tag_id = %s",
                (item_id, tag),
            )
        await conn.commit()
