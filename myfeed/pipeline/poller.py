"""Poll scheduler: decides which sources are due and ingests them."""

import asyncio
import logging
from contextlib import suppress
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..config import ConfigModel
from ..db.errors import PersistenceError
from ..db.gateway import PersistenceGateway
from ..ingestion import (
    FeedClient,
    FeedError,
    IngestionCoordinator,
    IngestStats,
    ItemEnricher,
    ThumbnailResolver,
)
from ..ingestion.dates import utcnow
from ..logging_config import TRACE
from ..models import Source
from .status import PollMessage, StatusBus

logger = logging.getLogger(__name__)

CHECK_INTERVAL = 60.0
DEFAULT_TTL_MINUTES = 60


def is_due(source: Source, now: datetime, default_ttl: int = DEFAULT_TTL_MINUTES) -> bool:
    """A source is due when never polled, or when its TTL has elapsed since the last poll."""
    if source.last_poll is None:
        return True
    elapsed_minutes = int((now - source.last_poll).total_seconds() / 60)
    ttl = source.ttl if source.ttl is not None else default_ttl
    return elapsed_minutes >= ttl


class PollReport(BaseModel):
    """Summary of one poll cycle."""

    checked: int = 0
    polled: int = 0
    skipped: int = 0
    failed: int = 0
    inserted: int = 0
    duplicates: int = 0
    aborted: bool = False

    def add(self, stats: IngestStats) -> None:
        """Fold one source's stats into the cycle totals."""
        self.polled += 1
        self.inserted += stats.inserted
        self.duplicates += stats.duplicates


class Poller:
    """
    Long-lived polling loop.

    Sleeps for ``interval`` seconds or until a poll is requested, then
    polls every due source one after the other. Requests arriving while a
    request is already pending are collapsed into it.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        feed_client: FeedClient,
        enricher: ItemEnricher,
        coordinator: IngestionCoordinator,
        status_bus: StatusBus,
        interval: float = CHECK_INTERVAL,
        default_ttl: int = DEFAULT_TTL_MINUTES,
    ) -> None:
        self.gateway = gateway
        self.feed_client = feed_client
        self.enricher = enricher
        self.coordinator = coordinator
        self.status_bus = status_bus
        self.interval = interval
        self.default_ttl = default_ttl
        self._trigger: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._task: Optional[asyncio.Task] = None

    def request_poll(self) -> bool:
        """Ask for an immediate cycle. Returns False if one is already pending."""
        try:
            self._trigger.put_nowait(None)
        except asyncio.QueueFull:
            logger.debug("Poll already requested, ignoring")
            return False
        return True

    async def poll_source(self, source: Source, now: datetime) -> IngestStats:
        """
        Fetch, enrich and ingest one source, then publish ``POLL_DONE``.

        Raises:
            FeedError: the feed could not be fetched or parsed
        """
        logger.debug("Polling %s", source.name)
        channel = await self.feed_client.fetch_channel(source.url)
        batch = await self.enricher.enrich_channel(source, channel, now)
        stats = await self.coordinator.ingest(source, channel, batch, now)
        self.status_bus.publish(PollMessage.POLL_DONE)
        return stats

    async def poll_once(self, now: Optional[datetime] = None) -> PollReport:
        """Run a single poll cycle over every due source."""
        self.status_bus.publish(PollMessage.POLLING)
        if now is None:
            now = utcnow()
        report = PollReport()

        try:
            sources = await self.gateway.list_sources()
        except PersistenceError as e:
            logger.error("Error while loading sources: %s", e)
            report.aborted = True
            return report

        for source in sources:
            report.checked += 1
            if not is_due(source, now, self.default_ttl):
                logger.log(TRACE, "Skipping poll for %s", source.name)
                report.skipped += 1
                continue

            try:
                stats = await self.poll_source(source, now)
            except FeedError as e:
                logger.error("Error while polling %s: %s", source.name, e)
                report.failed += 1
                continue
            except Exception:
                logger.exception("Unexpected error while polling %s", source.name)
                report.failed += 1
                continue

            report.add(stats)

        logger.info(
            "Poll cycle done: %d polled, %d skipped, %d failed, %d new items",
            report.polled,
            report.skipped,
            report.failed,
            report.inserted,
        )
        return report

    async def _sleep(self) -> None:
        """Wait for the interval to elapse or a poll request to arrive."""
        try:
            await asyncio.wait_for(self._trigger.get(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass

    async def run_forever(self) -> None:
        """Poll, sleep, repeat. Only cancellation ends the loop."""
        while True:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Poll cycle failed")
            await self._sleep()

    def start(self) -> asyncio.Task:
        """Start the loop as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="myfeed-poller")
        return self._task

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None


def create_poller(
    config: ConfigModel,
    gateway: PersistenceGateway,
    feed_client: FeedClient,
    resolver: ThumbnailResolver,
    status_bus: StatusBus,
) -> Poller:
    """Wire a poller from configuration."""
    return Poller(
        gateway=gateway,
        feed_client=feed_client,
        enricher=ItemEnricher(resolver),
        coordinator=IngestionCoordinator(gateway),
        status_bus=status_bus,
        interval=config.poller.interval_seconds,
        default_ttl=config.poller.default_ttl_minutes,
    )
