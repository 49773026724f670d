"""Item model for ingested feed entries."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import DBModel


class Item(DBModel):
    """Single feed entry, unique by link."""

    link: str = Field(..., description="Entry URL, unique across all items")
    title: Optional[str] = Field(None, description="Entry title")
    description: Optional[str] = Field(None, description="Entry description/summary")
    author: Optional[str] = Field(None, description="Entry author")
    published: Optional[datetime] = Field(None, description="Publish date in the entry's own timezone")
    image: Optional[str] = Field(None, description="Resolved thumbnail URL")
    favorite: bool = Field(False, description="Whether the item is a favorite")
    done: bool = Field(False, description="Whether the item has been read")
    source_id: Optional[int] = Field(None, description="Foreign key to sources table")
    source_link: Optional[str] = Field(None, description="Feed URL of the owning source")


class ItemWithTags(Item):
    """Item joined with the names of its tags."""

    tags: List[str] = Field(default_factory=list, description="Linked tag names")
