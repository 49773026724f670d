"""Polling pipeline: scheduler, status broadcast and source service."""

from .poller import PollReport, Poller, create_poller, is_due
from .sources import SourceService
from .status import PollMessage, StatusBus, Subscription, SubscriptionClosed

__all__ = [
    "PollMessage",
    "PollReport",
    "Poller",
    "SourceService",
    "StatusBus",
    "Subscription",
    "SubscriptionClosed",
    "create_poller",
    "is_due",
]
