"""Tests for batch ingestion and source bookkeeping."""

import asyncio
from datetime import datetime

from myfeed.db.errors import PersistenceError
from myfeed.ingestion import (
    Channel,
    EnrichedItem,
    EnrichmentBatch,
    IngestionCoordinator,
    ItemOutcome,
    OutcomeStatus,
    update_bookkeeping,
)
from myfeed.models import Item, Source


def make_batch(*entries):
    """Batch from (link, tags) pairs, all enriched."""

    async def build():
        batch = EnrichmentBatch()
        for position, (link, tags) in enumerate(entries):
            await batch.add(
                ItemOutcome(
                    position=position,
                    link=link,
                    status=OutcomeStatus.ENRICHED,
                    enriched=EnrichedItem(item=Item(link=link, source_id=1), tags=set(tags)),
                )
            )
        return batch

    return asyncio.run(build())


def ingest(gateway, source, batch, now, channel=None):
    coordinator = IngestionCoordinator(gateway)
    return asyncio.run(coordinator.ingest(source, channel or Channel(), batch, now))


def test_items_get_category_and_source_tags(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"), tags=["news"])
    batch = make_batch(("https://example.com/a", {"tech"}))

    stats = ingest(gateway, source, batch, now)

    assert stats.inserted == 1
    assert gateway.tags_for("https://example.com/a") == {"tech", "news"}
    assert "tech" in gateway.tags


def test_ingesting_twice_inserts_each_link_once(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))
    batch = make_batch(("https://example.com/a", ()), ("https://example.com/b", ()))

    first = ingest(gateway, source, batch, now)
    second = ingest(gateway, source, batch, now)

    assert first.inserted == 2 and first.duplicates == 0
    assert second.inserted == 0 and second.duplicates == 2
    assert len(gateway.items) == 2


def test_tags_are_created_before_first_item_insert(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))
    batch = make_batch(("https://example.com/a", {"x"}), ("https://example.com/b", {"y"}))

    ingest(gateway, source, batch, now)

    assert gateway.calls.index("insert_tags_if_absent") < gateway.calls.index("insert_item")
    assert gateway.calls.count("insert_tags_if_absent") == 1
    assert gateway.calls.count("list_source_tags") == 1


def test_source_bookkeeping_is_updated(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))
    channel = Channel(pub_date="Fri, 01 Mar 2024 10:00:00 +0100", ttl="30")

    stats = ingest(gateway, source, make_batch(), now, channel=channel)

    saved = gateway.sources[source.id]
    assert stats.source_updated
    assert saved.last_poll == now
    assert saved.last_pub == datetime(2024, 3, 1, 9, 0)
    assert saved.ttl == 30


def test_update_failure_does_not_stop_inserts(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))
    gateway.fail_update_source = True

    stats = ingest(gateway, source, make_batch(("https://example.com/a", ())), now)

    assert not stats.source_updated
    assert stats.inserted == 1
    assert gateway.sources[source.id].last_poll is None


def test_insert_error_skips_only_that_item(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))
    gateway.fail_links = {"https://example.com/b"}
    batch = make_batch(
        ("https://example.com/a", ()),
        ("https://example.com/b", ()),
        ("https://example.com/c", ()),
    )

    stats = ingest(gateway, source, batch, now)

    assert stats.inserted == 2
    assert stats.insert_errors == 1
    assert gateway.links == {"https://example.com/a", "https://example.com/c"}


def test_stats_carry_enrichment_counts(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))

    async def build():
        batch = EnrichmentBatch()
        await batch.add(ItemOutcome(position=0, link="x", status=OutcomeStatus.DROPPED))
        await batch.add(ItemOutcome(position=1, status=OutcomeStatus.FAILED))
        return batch

    stats = ingest(gateway, source, asyncio.run(build()), now)

    assert (stats.enriched, stats.dropped, stats.failed, stats.inserted) == (0, 1, 1, 0)


def test_bookkeeping_without_channel_date_uses_now(now):
    source = Source(id=1, name="Example", url="https://example.com/feed.xml", ttl=15)

    updated = update_bookkeeping(source, Channel(ttl="soon"), now)

    assert updated.last_pub == now
    assert updated.last_poll == now
    assert updated.ttl is None
    assert source.last_poll is None


def test_bookkeeping_keeps_edits_made_during_the_poll(gateway, now):
    """Only last_pub, last_poll and ttl come from the cycle's snapshot."""
    snapshot = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))
    gateway.sources[snapshot.id] = snapshot.model_copy(update={"name": "Renamed", "favorite": True})

    ingest(gateway, snapshot, make_batch(), now, channel=Channel(ttl="30"))

    saved = gateway.sources[snapshot.id]
    assert (saved.name, saved.favorite) == ("Renamed", True)
    assert saved.last_poll == now and saved.ttl == 30


def test_link_failure_keeps_the_item(gateway, now):
    source = gateway.add_source(Source(name="Example", url="https://example.com/feed.xml"))

    async def link_fails(item_id, tag_names):
        raise PersistenceError("inserting rows into", "items_to_tags", "unknown tags")

    gateway.link_item_tags = link_fails

    stats = ingest(gateway, source, make_batch(("https://example.com/a", {"tech"})), now)

    assert stats.inserted == 1
    assert gateway.links == {"https://example.com/a"}
