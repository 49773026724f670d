"""Persist one source's enriched batch and update its bookkeeping."""

import logging
from datetime import datetime

from ..db.errors import DuplicateLinkError, PersistenceError
from ..db.gateway import PersistenceGateway
from ..models import Source, Tag
from .dates import parse_pub_date, parse_ttl, to_naive_utc
from .enrichment import EnrichmentBatch
from .models import Channel, IngestStats, OutcomeStatus

logger = logging.getLogger(__name__)


def update_bookkeeping(source: Source, channel: Channel, now: datetime) -> Source:
    """Copy of ``source`` with last_pub, last_poll and ttl taken from this poll."""
    pub_date = parse_pub_date(channel.pub_date)
    return source.model_copy(
        update={
            "last_pub": to_naive_utc(pub_date) if pub_date is not None else now,
            "last_poll": now,
            "ttl": parse_ttl(channel.ttl),
        }
    )


class IngestionCoordinator:
    """Write a settled enrichment batch to storage, one item at a time."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        """Initialize with the persistence gateway."""
        self.gateway = gateway

    async def ingest(
        self,
        source: Source,
        channel: Channel,
        batch: EnrichmentBatch,
        now: datetime,
    ) -> IngestStats:
        """
        Create tags, update the source row, then insert items and link tags.

        Every needed tag is created before the first item insert. Failures are
        logged and skipped; nothing here is rolled back.
        """
        stats = IngestStats(
            source_id=source.id,
            source_name=source.name,
            enriched=batch.count(OutcomeStatus.ENRICHED),
            dropped=batch.count(OutcomeStatus.DROPPED),
            failed=batch.count(OutcomeStatus.FAILED),
        )

        # Create tags for each category found in the items
        category_tags = [
            Tag(name=name, created_at=now, updated_at=now) for name in sorted(batch.tag_names)
        ]
        try:
            await self.gateway.insert_tags_if_absent(category_tags)
        except PersistenceError as e:
            logger.error("Failed to create tags from categories for %s: %s", source.name, e)

        try:
            await self.gateway.update_source(update_bookkeeping(source, channel, now))
            stats.source_updated = True
        except PersistenceError as e:
            logger.error("Error updating row for %s: %s", source.name, e)

        source_tag_names = set()
        if source.id is not None:
            try:
                source_tag_names = {tag.name for tag in await self.gateway.list_source_tags(source.id)}
            except PersistenceError as e:
                logger.error("Error loading tags for %s: %s", source.name, e)

        for enriched in batch.enriched:
            item = enriched.item
            try:
                item_id = await self.gateway.insert_item(item)
            except DuplicateLinkError:
                logger.debug("Tried to insert link %s that already exists", item.link)
                stats.duplicates += 1
                continue
            except PersistenceError as e:
                logger.error("Error while adding item %s: %s", item.link, e)
                stats.insert_errors += 1
                continue

            logger.info("Inserted new item for %s", item.link)
            stats.inserted += 1

            tag_names = enriched.tags | source_tag_names
            if not tag_names:
                continue
            try:
                await self.gateway.link_item_tags(item_id, tag_names)
            except PersistenceError as e:
                logger.error("Failed to add tags to %s: %s", item.link, e)

        return stats
