"""Wiring shared by the CLI commands."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from ..config import Config
from ..db import PostgresGateway, close_connection_pool, get_connection_pool
from ..ingestion import FeedClient, ThumbnailResolver, create_http_client
from ..pipeline import Poller, SourceService, StatusBus, create_poller


@dataclass
class Runtime:
    """Long-lived objects for one process."""

    gateway: PostgresGateway
    client: httpx.AsyncClient
    status_bus: StatusBus
    poller: Poller
    sources: SourceService


@asynccontextmanager
async def open_runtime(config: Config) -> AsyncIterator[Runtime]:
    """Open the pool and HTTP client, build the pipeline, and close both on exit."""
    settings = config.config
    pool = await get_connection_pool(config.get_db_config())
    client = create_http_client(
        connect_timeout=settings.poller.connect_timeout,
        request_timeout=settings.poller.request_timeout,
        user_agent=settings.poller.user_agent,
    )
    try:
        gateway = PostgresGateway(pool)
        feed_client = FeedClient(client)
        resolver = ThumbnailResolver(client)
        status_bus = StatusBus(settings.poller.status_buffer)
        poller = create_poller(settings, gateway, feed_client, resolver, status_bus)
        service = SourceService(gateway, feed_client, poller.enricher, poller)
        yield Runtime(
            gateway=gateway,
            client=client,
            status_bus=status_bus,
            poller=poller,
            sources=service,
        )
    finally:
        await client.aclose()
        await close_connection_pool()
