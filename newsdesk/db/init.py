"""Database initialization and schema management."""

import logging
from typing import Any, Dict

from psycopg.errors import DatabaseError

from ..models import Category
from .connection import get_connection

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Category lookup table
CREATE TABLE IF NOT EXISTS article_category (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL UNIQUE CHECK (name = lower(name))
);

-- Articles table
CREATE TABLE IF NOT EXISTS article (
    id UUID PRIMARY KEY,
    published_at TIMESTAMPTZ NOT NULL,
    title TEXT NOT NULL,
    snippet TEXT NOT NULL,
    thumbnail TEXT,
    thumbnail_proxied TEXT,
    image_url TEXT,
    source_url TEXT NOT NULL,
    publisher TEXT NOT NULL,
    category_id INTEGER NOT NULL REFERENCES article_category(id),
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    has_children BOOLEAN NOT NULL DEFAULT FALSE,
    inserted_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(source_url)
);

-- Parent -> sub-news link table
CREATE TABLE IF NOT EXISTS article_link (
    parent_id UUID NOT NULL REFERENCES article(id) ON DELETE CASCADE,
    child_id UUID NOT NULL REFERENCES article(id) ON DELETE CASCADE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (parent_id, child_id),
    CHECK (parent_id <> child_id)
);

-- Single-row checkpoint of the last successful run
CREATE TABLE IF NOT EXISTS ingestion_checkpoint (
    id SMALLINT PRIMARY KEY DEFAULT 1 CHECK (id = 1),
    last_run_at TIMESTAMPTZ NOT NULL
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_article_category_id ON article(category_id);
CREATE INDEX IF NOT EXISTS idx_article_published_at ON article(published_at);
CREATE INDEX IF NOT EXISTS idx_article_is_active ON article(is_active);
CREATE INDEX IF NOT EXISTS idx_article_link_child_id ON article_link(child_id);
"""

SEED_CATEGORIES_SQL = """
INSERT INTO article_category (name) VALUES (%s)
ON CONFLICT (name) DO NOTHING
"""


async def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        async with get_connection(config) as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1 AS ok")
                result = await cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


async def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema and seed the categories."""
    try:
        async with get_connection(config) as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(SCHEMA_SQL)
                    await cur.executemany(
                        SEED_CATEGORIES_SQL, [(category.value,) for category in Category]
                    )
        logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
