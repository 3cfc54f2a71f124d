"""Database management for newsdesk."""

from .articles import ArticleStorage
from .checkpoints import CheckpointManager
from .connection import close_connection_pool, get_connection, get_connection_pool
from .init import init_database, validate_connection

__all__ = [
    "ArticleStorage",
    "CheckpointManager",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
