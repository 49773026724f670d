"""Database management for myfeed."""

from .connection import close_connection_pool, get_connection, get_connection_pool
from .errors import DuplicateLinkError, PersistenceError
from .gateway import PersistenceGateway, PostgresGateway
from .init import init_database, validate_connection

__all__ = [
    "DuplicateLinkError",
    "PersistenceError",
    "PersistenceGateway",
    "PostgresGateway",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
