"""Data models for ingestion."""

from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, Field

from ..models import Item


class FeedEntry(BaseModel):
    """Parsed feed item, before enrichment."""

    link: Optional[str] = Field(None, description="Entry URL")
    title: Optional[str] = Field(None, description="Entry title")
    author: Optional[str] = Field(None, description="Entry author")
    description: Optional[str] = Field(None, description="Entry description/summary")
    pub_date: Optional[str] = Field(None, description="Raw publish date string")
    categories: List[str] = Field(default_factory=list, description="Category names")


class Channel(BaseModel):
    """Parsed feed document."""

    title: Optional[str] = Field(None, description="Channel title")
    items: List[FeedEntry] = Field(default_factory=list, description="Entries in document order")
    pub_date: Optional[str] = Field(None, description="Raw channel publish date string")
    ttl: Optional[str] = Field(None, description="Raw TTL string, in minutes")
    categories: List[str] = Field(default_factory=list, description="Channel category names")


class EnrichedItem(BaseModel):
    """Item ready for insertion, with the tags derived from its categories."""

    item: Item
    tags: Set[str] = Field(default_factory=set)


class OutcomeStatus(str, Enum):
    """Result of enriching one feed entry."""

    ENRICHED = "enriched"
    DROPPED = "dropped"
    FAILED = "failed"


class ItemOutcome(BaseModel):
    """Per-entry enrichment result."""

    position: int = Field(..., description="Index of the entry in the channel")
    link: Optional[str] = Field(None, description="Entry URL, if any")
    status: OutcomeStatus
    reason: Optional[str] = Field(None, description="Why the entry was dropped or failed")
    enriched: Optional[EnrichedItem] = None


class IngestStats(BaseModel):
    """Result of ingesting one source's batch."""

    source_id: Optional[int] = None
    source_name: str
    enriched: int = 0
    dropped: int = 0
    failed: int = 0
    inserted: int = 0
    duplicates: int = 0
    insert_errors: int = 0
    source_updated: bool = False
