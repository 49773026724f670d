"""Broadcast of coarse poll lifecycle events."""

import asyncio
import logging
from enum import Enum
from typing import List

logger = logging.getLogger(__name__)


class PollMessage(str, Enum):
    """Lifecycle events published by the poller."""

    POLLING = "polling"
    POLL_DONE = "poll_done"


class SubscriptionClosed(Exception):
    """The subscription was closed."""


_CLOSED = object()


class Subscription:
    """
    One observer's view of the bus.

    Receives every event published after it was created. When its buffer is
    full the oldest event is discarded and counted in ``missed``; the
    publisher never waits for a subscriber.
    """

    def __init__(self, bus: "StatusBus", buffer: int) -> None:
        self._bus = bus
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=buffer)
        self.missed = 0
        self.closed = False

    def _deliver(self, event: object) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.missed += 1
        self._queue.put_nowait(event)

    async def recv(self) -> PollMessage:
        """
        Wait for the next event.

        Raises:
            SubscriptionClosed: the subscription was closed
        """
        if self.closed and self._queue.empty():
            raise SubscriptionClosed()
        event = await self._queue.get()
        if event is _CLOSED:
            raise SubscriptionClosed()
        return event

    def close(self) -> None:
        """Detach from the bus and wake a pending ``recv``."""
        if self.closed:
            return
        self.closed = True
        self._bus._unsubscribe(self)
        self._deliver(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> PollMessage:
        try:
            return await self.recv()
        except SubscriptionClosed:
            raise StopAsyncIteration from None

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class StatusBus:
    """Process-wide publish/subscribe channel for poll status."""

    def __init__(self, buffer: int = 128) -> None:
        self.buffer = buffer
        self._subscribers: List[Subscription] = []

    def subscribe(self) -> Subscription:
        """Attach a new independent subscriber."""
        subscription = Subscription(self, self.buffer)
        self._subscribers.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        """Number of attached subscribers."""
        return len(self._subscribers)

    def publish(self, event: PollMessage) -> int:
        """Deliver ``event`` to every subscriber without blocking; returns the number reached."""
        for subscription in list(self._subscribers):
            subscription._deliver(event)
        logger.debug("Published %s to %d subscribers", event.value, len(self._subscribers))
        return len(self._subscribers)
