"""Tests for item storage and the Postgres gateway, against fake connections."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime

import psycopg
import pytest

from myfeed.db import DuplicateLinkError, PersistenceError, PostgresGateway
from myfeed.db.items import ItemStorage
from myfeed.models import Item, Source


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def execute(self, query, params=None):
        self.conn.executed.append((query, params))
        if self.conn.error is not None:
            raise self.conn.error

    async def executemany(self, query, params_seq):
        self.conn.executed.append((query, list(params_seq)))
        if self.conn.error is not None:
            raise self.conn.error

    async def fetchone(self):
        return self.conn.rows.pop(0) if self.conn.rows else None

    async def fetchall(self):
        rows, self.conn.rows = self.conn.rows, []
        return rows


class FakeConnection:
    def __init__(self, rows=None, error=None):
        self.rows = list(rows or [])
        self.error = error
        self.executed = []
        self.commits = 0

    def cursor(self):
        return FakeCursor(self)

    async def commit(self):
        self.commits += 1


class FakePool:
    def __init__(self, conn=None, error=None):
        self.conn = conn
        self.error = error

    @asynccontextmanager
    async def connection(self):
        if self.error is not None:
            raise self.error
        yield self.conn


ITEM = Item(link="https://example.com/a", title="A", source_id=1)


def test_insert_item_returns_new_id():
    conn = FakeConnection(rows=[{"id": 42}])

    item_id = asyncio.run(ItemStorage().insert_item(conn, ITEM))

    assert item_id == 42
    assert conn.commits == 1
    query, params = conn.executed[0]
    assert "ON CONFLICT (link) DO NOTHING" in query
    assert params[0] == ITEM.link


def test_insert_existing_link_raises_duplicate():
    conn = FakeConnection(rows=[])

    with pytest.raises(DuplicateLinkError) as excinfo:
        asyncio.run(ItemStorage().insert_item(conn, ITEM))

    assert excinfo.value.link == ITEM.link
    assert isinstance(excinfo.value, PersistenceError)


def test_gateway_passes_duplicates_through():
    gateway = PostgresGateway(FakePool(FakeConnection(rows=[])))

    with pytest.raises(DuplicateLinkError):
        asyncio.run(gateway.insert_item(ITEM))


def test_gateway_wraps_driver_errors():
    gateway = PostgresGateway(FakePool(error=psycopg.OperationalError("server closed the connection")))

    with pytest.raises(PersistenceError) as excinfo:
        asyncio.run(gateway.list_sources())

    assert excinfo.value.table == "sources"
    assert isinstance(excinfo.value.cause, psycopg.OperationalError)


def test_gateway_wraps_query_errors():
    conn = FakeConnection(error=psycopg.errors.UndefinedTable("relation \"sources\" does not exist"))
    gateway = PostgresGateway(FakePool(conn))

    with pytest.raises(PersistenceError, match="updating"):
        asyncio.run(gateway.update_source(Source(id=1, name="Example", url="https://example.com/feed.xml")))


def test_empty_tag_insert_skips_database():
    conn = FakeConnection()

    asyncio.run(PostgresGateway(FakePool(conn)).insert_tags_if_absent([]))

    assert conn.executed == []


def test_source_update_writes_only_bookkeeping():
    conn = FakeConnection()
    source = Source(
        id=3,
        name="Stale name",
        url="https://example.com/feed.xml",
        favorite=True,
        min_date=datetime(2024, 1, 1),
        last_pub=datetime(2024, 3, 1, 9, 0),
        last_poll=datetime(2024, 3, 1, 12, 0),
        ttl=30,
    )

    asyncio.run(PostgresGateway(FakePool(conn)).update_source(source))

    query, params = conn.executed[0]
    for column in ("name", "url", "favorite", "min_date"):
        assert f"{column} =" not in query
    assert params == (source.last_pub, source.last_poll, 30, 3)
    assert conn.commits == 1


def test_item_tags_are_linked_by_name():
    conn = FakeConnection()

    asyncio.run(PostgresGateway(FakePool(conn)).link_item_tags(7, {"tech", "news"}))

    query, params = conn.executed[0]
    assert "SELECT" not in query
    assert params == [(7, "news"), (7, "tech")]


def test_linking_unknown_tag_is_an_error():
    conn = FakeConnection(error=psycopg.errors.ForeignKeyViolation("tag_id not present in table tags"))

    with pytest.raises(PersistenceError) as excinfo:
        asyncio.run(PostgresGateway(FakePool(conn)).link_item_tags(7, {"missing"}))

    assert excinfo.value.table == "items_to_tags"
