"""Feed fetching, thumbnail resolution and item ingestion."""

from .coordinator import IngestionCoordinator, update_bookkeeping
from .enrichment import EnrichmentBatch, ItemEnricher
from .errors import FeedError, IngestionError, ThumbnailError
from .feed_client import FeedClient, parse_feed
from .http import create_http_client
from .models import Channel, EnrichedItem, FeedEntry, IngestStats, ItemOutcome, OutcomeStatus
from .thumbnails import ThumbnailResolver, parse_html, select_image_candidates

__all__ = [
    "Channel",
    "EnrichedItem",
    "EnrichmentBatch",
    "FeedClient",
    "FeedEntry",
    "FeedError",
    "IngestStats",
    "IngestionCoordinator",
    "IngestionError",
    "ItemEnricher",
    "ItemOutcome",
    "OutcomeStatus",
    "ThumbnailError",
    "ThumbnailResolver",
    "create_http_client",
    "parse_feed",
    "parse_html",
    "select_image_candidates",
    "update_bookkeeping",
]
