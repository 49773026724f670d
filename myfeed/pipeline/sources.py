"""Registering and previewing sources."""

import logging
from typing import List, Optional

from ..db.gateway import PersistenceGateway
from ..ingestion import EnrichedItem, FeedClient, ItemEnricher
from ..ingestion.dates import parse_pub_date, parse_ttl, to_naive_utc, utcnow
from ..ingestion.enrichment import category_tags
from ..models import Source
from .poller import Poller

logger = logging.getLogger(__name__)


class SourceService:
    """Source operations that need the feed, outside the poll loop."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        feed_client: FeedClient,
        enricher: ItemEnricher,
        poller: Optional[Poller] = None,
    ) -> None:
        self.gateway = gateway
        self.feed_client = feed_client
        self.enricher = enricher
        self.poller = poller

    async def register_source(self, source: Source) -> Source:
        """
        Validate the feed, store the source and ask for an immediate poll.

        Raises:
            FeedError: the feed could not be fetched or parsed
            PersistenceError: the source could not be stored
        """
        channel = await self.feed_client.fetch_channel(source.url)
        pub_date = parse_pub_date(channel.pub_date)
        prepared = source.model_copy(
            update={
                "last_pub": to_naive_utc(pub_date) if pub_date is not None else utcnow(),
                "last_poll": None,
                "ttl": parse_ttl(channel.ttl),
            }
        )
        saved = await self.gateway.insert_source(prepared)
        logger.info("Registered source %s (%s)", saved.name, saved.url)

        if self.poller is not None:
            self.poller.request_poll()
        return saved

    async def preview_source(self, source: Source) -> List[EnrichedItem]:
        """
        Enrich a source's current entries without storing anything.

        Each item's tags also include the channel's own categories.

        Raises:
            FeedError: the feed could not be fetched or parsed
        """
        channel = await self.feed_client.fetch_channel(source.url)
        batch = await self.enricher.enrich_channel(source, channel, utcnow())
        channel_tags = category_tags(channel.categories)
        return [
            enriched.model_copy(update={"tags": enriched.tags | channel_tags})
            for enriched in batch.enriched
        ]
