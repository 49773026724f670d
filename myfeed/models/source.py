"""Source model for polled feeds."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import DBModel


class Source(DBModel):
    """Remote feed polled on a schedule."""

    name: str = Field(..., description="Source name")
    url: str = Field(..., description="Feed URL")
    last_pub: Optional[datetime] = Field(None, description="Publish date reported by the feed (UTC)")
    last_poll: Optional[datetime] = Field(None, description="Time of the last poll (UTC)")
    ttl: Optional[int] = Field(None, description="Minutes between polls, as reported by the feed")
    favorite: bool = Field(False, description="Whether the source is a favorite")
    min_date: Optional[datetime] = Field(None, description="Items published before this are ignored")
