"""Source management in database."""

from typing import List, Sequence

from psycopg import AsyncConnection

from ..models import Source, Tag


class SourceManager:
    """Manage sources and their tag links in database."""

    async def get_sources(self, conn: AsyncConnection) -> List[Source]:
        """Get all sources from database."""
        async with conn.cursor() as cur:
            await cur.execute("SELECT * FROM sources ORDER BY id")
            return [Source(**row) for row in await cur.fetchall()]

    async def get_sources_with_tags(self, conn: AsyncConnection, tags: Sequence[str]) -> List[Source]:
        """Get sources linked to every one of ``tags``."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT s.*
                FROM sources s
                JOIN sources_to_tags st ON s.id = st.source_id
                WHERE st.tag_id = ANY(%s)
                GROUP BY s.id
                HAVING COUNT(DISTINCT st.tag_id) = %s
                ORDER BY s.id
                """,
                (list(tags), len(set(tags))),
            )
            return [Source(**row) for row in await cur.fetchall()]

    async def insert_source(self, conn: AsyncConnection, source: Source) -> Source:
        """Insert a source and return it with id and timestamps populated."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO sources (name, url, last_pub, last_poll, ttl, favorite, min_date)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING id, created_at, updated_at
                """,
                (
                    source.name,
                    source.url,
                    source.last_pub,
                    source.last_poll,
                    source.ttl,
                    source.favorite,
                    source.min_date,
                ),
            )
            row = await cur.fetchone()
        await conn.commit()
        return source.model_copy(update=row)

    async def update_bookkeeping(self, conn: AsyncConnection, source: Source) -> None:
        """Write the poll bookkeeping columns; name, url, favorite and min_date are left untouched."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE sources
                SET
                    last_pub = %s,
                    last_poll = %s,
                    ttl = %s
                WHERE id = %s
                """,
                (source.last_pub, source.last_poll, source.ttl, source.id),
            )
        await conn.commit()

    async def delete_source(self, conn: AsyncConnection, source_id: int) -> bool:
        """Delete a source. Its items are kept with the link cleared."""
        async with conn.cursor() as cur:
            await cur.execute("DELETE FROM sources WHERE id = %s", (source_id,))
            deleted = cur.rowcount > 0
        await conn.commit()
        return deleted

    async def get_source_tags(self, conn: AsyncConnection, source_id: int) -> List[Tag]:
        """Get the tags explicitly assigned to a source."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT t.*
                FROM tags t
                JOIN sources_to_tags st ON t.name = st.tag_id
                WHERE st.source_id = %s
                ORDER BY t.name
                """,
                (source_id,),
            )
            return [Tag(**row) for row in await cur.fetchall()]

    async def add_tags(self, conn: AsyncConnection, source_id: int, tags: Sequence[str]) -> None:
        """Link existing tags to a source."""
        if not tags:
            return
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO sources_to_tags (source_id, tag_id)
                SELECT %s, name
                FROM tags
                WHERE name = ANY(%s)
                ON CONFLICT DO NOTHING
                """,
                (source_id, list(tags)),
            )
        await conn.commit()

    async def remove_tag(self, conn: AsyncConnection, source_id: int, tag: str) -> None:
        """Unlink a tag from a source."""
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM sources_to_tags WHERE source_id = %s AND tag_id = %s",
                (source_id, tag),
            )
        await conn.commit()
