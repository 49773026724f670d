"""Tag management in database."""

from typing import List, Optional, Sequence

from psycopg import AsyncConnection

from ..models import Tag


class TagManager:
    """Manage tags in database."""

    async def get_tags(self, conn: AsyncConnection) -> List[Tag]:
        """Get all tags."""
        async with conn.cursor() as cur:
            await cur.execute("SELECT * FROM tags ORDER BY name")
            return [Tag(**row) for row in await cur.fetchall()]

    async def get_tag(self, conn: AsyncConnection, name: str) -> Optional[Tag]:
        """Get a tag by name."""
        async with conn.cursor() as cur:
            await cur.execute("SELECT * FROM tags WHERE name = %s", (name,))
            row = await cur.fetchone()
            return Tag(**row) if row else None

    async def insert_tag(self, conn: AsyncConnection, tag: Tag) -> None:
        """Insert a single tag; fails if the name exists."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO tags (name, background_color, text_color, border_color)
                VALUES (%s, %s, %s, %s)
                """,
                (tag.name, tag.background_color, tag.text_color, tag.border_color),
            )
        await conn.commit()

    async def insert_tags_if_absent(self, conn: AsyncConnection, tags: Sequence[Tag]) -> None:
        """Batch insert tags, skipping names that already exist."""
        if not tags:
            return
        async with conn.cursor() as cur:
            await cur.executemany(
                """
                INSERT INTO tags (name, background_color, text_color, border_color)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (name) DO NOTHING
                """,
                [(t.name, t.background_color, t.text_color, t.border_color) for t in tags],
            )
        await conn.commit()

    async def update_tag(self, conn: AsyncConnection, tag: Tag) -> None:
        """Update a tag's colors."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE tags
                SET background_color = %s, text_color = %s, border_color = %s
                WHERE name = %s
                """,
                (tag.background_color, tag.text_color, tag.border_color, tag.name),
            )
        await conn.commit()

    async def delete_tag(self, conn: AsyncConnection, name: str) -> bool:
        """Delete a tag and all of its links."""
        async with conn.cursor() as cur:
            await cur.execute("DELETE FROM tags WHERE name = %s", (name,))
            deleted = cur.rowcount > 0
        await conn.commit()
        return deleted
