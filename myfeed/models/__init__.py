"""Data models for myfeed."""

from .item import Item, ItemWithTags
from .source import Source
from .tag import Tag

__all__ = ["Item", "ItemWithTags", "Source", "Tag"]
