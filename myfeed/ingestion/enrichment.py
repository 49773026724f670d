"""Concurrent per-item enrichment for one source's feed entries."""

import asyncio
import logging
from datetime import datetime
from typing import List, Set

from ..models import Item, Source
from .dates import parse_pub_date
from .errors import ThumbnailError
from .models import Channel, EnrichedItem, FeedEntry, ItemOutcome, OutcomeStatus
from .thumbnails import ThumbnailResolver

logger = logging.getLogger(__name__)


def category_tags(categories: List[str]) -> Set[str]:
    """Lowercased, non-empty tag names from category strings."""
    return {name.lower() for name in categories if name}


class EnrichmentBatch:
    """Outcomes collected from concurrently running enrichment tasks."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._outcomes: List[ItemOutcome] = []
        self._tag_names: Set[str] = set()

    async def add(self, outcome: ItemOutcome) -> None:
        """Record one entry's outcome."""
        async with self._lock:
            self._outcomes.append(outcome)
            if outcome.enriched is not None:
                self._tag_names.update(outcome.enriched.tags)

    @property
    def outcomes(self) -> List[ItemOutcome]:
        """All outcomes in channel order."""
        return sorted(self._outcomes, key=lambda o: o.position)

    @property
    def enriched(self) -> List[EnrichedItem]:
        """Successful entries in channel order."""
        return [o.enriched for o in self.outcomes if o.enriched is not None]

    @property
    def tag_names(self) -> Set[str]:
        """Union of every enriched entry's tags."""
        return set(self._tag_names)

    def count(self, status: OutcomeStatus) -> int:
        """Number of outcomes with ``status``."""
        return sum(1 for o in self._outcomes if o.status == status)


class ItemEnricher:
    """Filter feed entries and resolve their thumbnails concurrently."""

    def __init__(self, resolver: ThumbnailResolver) -> None:
        """Initialize with the thumbnail resolver."""
        self.resolver = resolver

    async def enrich_entry(
        self,
        source: Source,
        entry: FeedEntry,
        position: int,
        now: datetime,
    ) -> ItemOutcome:
        """Turn one feed entry into an enriched item, or say why not."""
        link = entry.link
        if not link:
            logger.error("Item %d from %s has no link", position, source.name)
            return ItemOutcome(position=position, status=OutcomeStatus.FAILED, reason="item has no link")

        published = parse_pub_date(entry.pub_date)
        if source.min_date is not None and published is not None:
            # min_date is read in the entry's own timezone
            if published < source.min_date.replace(tzinfo=published.tzinfo):
                logger.debug("Ignoring %s because it is older than min_date.", link)
                return ItemOutcome(
                    position=position,
                    link=link,
                    status=OutcomeStatus.DROPPED,
                    reason="published before min_date",
                )

        try:
            image = await self.resolver.resolve_image(link)
        except ThumbnailError as e:
            logger.error("Error getting image for %s: %s", link, e.reason)
            return ItemOutcome(position=position, link=link, status=OutcomeStatus.FAILED, reason=str(e))

        item = Item(
            link=link,
            title=entry.title,
            description=entry.description,
            author=entry.author,
            published=published.replace(tzinfo=None) if published is not None else None,
            image=image,
            source_id=source.id,
            source_link=source.url,
            created_at=now,
            updated_at=now,
        )
        return ItemOutcome(
            position=position,
            link=link,
            status=OutcomeStatus.ENRICHED,
            enriched=EnrichedItem(item=item, tags=category_tags(entry.categories)),
        )

    async def enrich_channel(self, source: Source, channel: Channel, now: datetime) -> EnrichmentBatch:
        """
        Enrich every entry of ``channel`` concurrently.

        One task runs per entry with no concurrency cap. A failing entry is
        recorded in the batch and never affects the others.
        """
        batch = EnrichmentBatch()

        async def run(position: int, entry: FeedEntry) -> None:
            try:
                outcome = await self.enrich_entry(source, entry, position, now)
            except Exception as e:
                logger.exception("Error while creating item from %s", source.name)
                outcome = ItemOutcome(
                    position=position,
                    link=entry.link,
                    status=OutcomeStatus.FAILED,
                    reason=f"Unexpected error: {e}",
                )
            await batch.add(outcome)

        await asyncio.gather(*(run(i, entry) for i, entry in enumerate(channel.items)))

        logger.debug(
            "Enriched %d/%d entries from %s (%d dropped, %d failed)",
            batch.count(OutcomeStatus.ENRICHED),
            len(channel.items),
            source.name,
            batch.count(OutcomeStatus.DROPPED),
            batch.count(OutcomeStatus.FAILED),
        )
        return batch
