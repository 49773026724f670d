"""Tag model."""

from typing import Optional

from pydantic import Field

from .base import DBModel


class Tag(DBModel):
    """Named label attachable to sources and items.

    Tags are keyed by ``name``; ``id`` is unused.
    """

    name: str = Field(..., description="Unique tag name")
    background_color: Optional[str] = Field(None, description="Background color")
    text_color: Optional[str] = Field(None, description="Text color")
    border_color: Optional[str] = Field(None, description="Border color")
