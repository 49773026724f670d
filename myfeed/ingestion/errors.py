"""Ingestion error taxonomy."""


class IngestionError(Exception):
    """Base class for feed and page retrieval failures."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class FeedError(IngestionError):
    """A feed could not be fetched or parsed."""


class ThumbnailError(IngestionError):
    """A page could not be fetched while resolving its thumbnail."""
