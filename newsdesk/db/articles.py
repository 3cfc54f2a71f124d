"""Article storage and deduplication."""

import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from psycopg import AsyncConnection

from ..ingestion.models import ArticleBatch, SubArticleItem
from ..models import Article, ArticleLink, Category

logger = logging.getLogger(__name__)


ARTICLE_COLUMNS = """
    a.id, a.published_at, a.title, a.snippet, a.thumbnail, a.thumbnail_proxied,
    a.image_url, a.source_url, a.publisher, a.category_id, c.name AS category,
    a.is_active, a.has_children, a.inserted_at
"""


class ArticleStorage:
    """Handle article storage and deduplication."""

    async def get_or_create_category(self, conn: AsyncConnection, category: Category) -> int:
        """Return the lookup id for a category, inserting it if absent."""
        name = Category.parse(category).value
        async with conn.cursor() as cur:
            # No-op update so RETURNING also yields the existing row
            await cur.execute(
                """
                INSERT INTO article_category (name)
                VALUES (%s)
                ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name
                RETURNING id
                """,
                (name,),
            )
            row = await cur.fetchone()
            return row["id"]

    async def find_article_id(self, conn: AsyncConnection, source_url: str) -> Optional[UUID]:
        """Look up an article id by source URL."""
        async with conn.cursor() as cur:
            await cur.execute("SELECT id FROM article WHERE source_url = %s", (source_url,))
            row = await cur.fetchone()
            return row["id"] if row else None

    async def upsert_article(
        self,
        conn: AsyncConnection,
        item: SubArticleItem,
        category_id: int,
        has_children: bool = False,
    ) -> Tuple[UUID, bool]:
        """
        Insert an article unless its source URL is already stored.

        Returns:
            Tuple of (article_id, is_new)
        """
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO article (
                    id, published_at, title, snippet, thumbnail, thumbnail_proxied,
                    image_url, source_url, publisher, category_id, has_children
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (source_url) DO NOTHING
                RETURNING id
                """,
                (
                    uuid4(),
                    item.timestamp,
                    item.title,
                    item.snippet,
                    item.thumbnail,
                    item.thumbnail_proxied,
                    item.image_url,
                    item.source_url,
                    item.publisher,
                    category_id,
                    has_children,
                ),
            )
            inserted = await cur.fetchone()
            if inserted:
                return inserted["id"], True

        # Stored earlier or by a concurrent run that has since committed
        existing_id = await self.find_article_id(conn, item.source_url)
        if existing_id is None:
            raise LookupError(f"Article vanished during upsert: {item.source_url}")
        return existing_id, False

    async def mark_has_children(self, conn: AsyncConnection, article_id: UUID) -> None:
        """Flag an existing article as a parent of sub-news."""
        async with conn.cursor() as cur:
            await cur.execute(
                "UPDATE article SET has_children = TRUE WHERE id = %s AND NOT has_children",
                (article_id,),
            )

    async def link_articles(self, conn: AsyncConnection, parent_id: UUID, child_id: UUID) -> bool:
        """
        Link a sub-news article to its parent.

        Returns:
            True if a new link row was written
        """
        if parent_id == child_id:
            return False
        link = ArticleLink(parent_id=parent_id, child_id=child_id)

        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO article_link (parent_id, child_id)
                VALUES (%s, %s)
                ON CONFLICT (parent_id, child_id) DO NOTHING
                """,
                (link.parent_id, link.child_id),
            )
            return cur.rowcount == 1

    async def ingest_batch(
        self,
        conn: AsyncConnection,
        batch: ArticleBatch,
        category: Category,
    ) -> Dict[str, int]:
        """
        Store a category batch with deduplication.

        Must run inside a transaction owned by the caller; any error
        propagates so the caller can roll the whole category back.

        has_children mirrors the provider's hasSubnews flag, even when the
        declared sub-news list is empty or only repeats the parent.

        Returns:
            Statistics dictionary
        """
        stats = {
            "items": len(batch.items),
            "new": 0,
            "duplicates": 0,
            "sub_new": 0,
            "sub_duplicates": 0,
            "links": 0,
        }

        category_id = await self.get_or_create_category(conn, category)

        for item in batch.items:
            children = [sub for sub in item.sub_items if sub.source_url != item.source_url]

            article_id, is_new = await self.upsert_article(
                conn, item, category_id, has_children=item.has_subnews
            )
            if is_new:
                stats["new"] += 1
            else:
                stats["duplicates"] += 1
                if item.has_subnews:
                    await self.mark_has_children(conn, article_id)

            for sub in children:
                child_id, child_is_new = await self.upsert_article(conn, sub, category_id)
                if child_is_new:
                    stats["sub_new"] += 1
                else:
                    stats["sub_duplicates"] += 1

                if await self.link_articles(conn, article_id, child_id):
                    stats["links"] += 1

        logger.debug("Stored batch for %s: %s", Category(category).value, stats)
        return stats

    async def get_article(self, conn: AsyncConnection, article_id: UUID) -> Optional[Article]:
        """Get article by ID."""
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {ARTICLE_COLUMNS}
                FROM article a
                JOIN article_category c ON c.id = a.category_id
                WHERE a.id = %s
                """,
                (article_id,),
            )
            row = await cur.fetchone()
            return Article.model_validate(row) if row else None

    async def get_subnews(self, conn: AsyncConnection, parent_id: UUID) -> List[Article]:
        """Get active sub-news linked under a parent article."""
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {ARTICLE_COLUMNS}
                FROM article_link l
                JOIN article a ON a.id = l.child_id
                JOIN article_category c ON c.id = a.category_id
                WHERE l.parent_id = %s AND a.is_active
                ORDER BY a.published_at DESC
                """,
                (parent_id,),
            )
            return [Article.model_validate(row) for row in await cur.fetchall()]

    async def _page(
        self, conn: AsyncConnection, where: str, params: Tuple, limit: int, offset: int
    ) -> Tuple[List[Article], int]:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM article a
                JOIN article_category c ON c.id = a.category_id
                WHERE {where}
                """,
                params,
            )
            total = (await cur.fetchone())["total"]

            await cur.execute(
                f"""
                SELECT {ARTICLE_COLUMNS}
                FROM article a
                JOIN article_category c ON c.id = a.category_id
                WHERE {where}
                ORDER BY a.published_at DESC, a.id
                LIMIT %s OFFSET %s
                """,
                (*params, limit, offset),
            )
            rows = await cur.fetchall()
        return [Article.model_validate(row) for row in rows], total

    async def list_inactive(
        self, conn: AsyncConnection, limit: int = 10, offset: int = 0
    ) -> Tuple[List[Article], int]:
        """
        Page through inactive articles, newest first.

        Returns:
            Tuple of (articles on this page, total inactive articles)
        """
        return await self._page(conn, "NOT a.is_active", (), limit, offset)

    async def list_by_category(
        self, conn: AsyncConnection, category: Category, limit: int = 10, offset: int = 0
    ) -> Tuple[List[Article], int]:
        """Page through active articles of one category, newest first."""
        name = Category.parse(category).value
        return await self._page(conn, "a.is_active AND c.name = %s", (name,), limit, offset)

    async def set_status(self, conn: AsyncConnection, article_id: UUID) -> bool:
        """
        Toggle the active flag of an article.

        Returns:
            False if no such article exists
        """
        async with conn.cursor() as cur:
            await cur.execute(
                "UPDATE article SET is_active = NOT is_active WHERE id = %s",
                (article_id,),
            )
            return cur.rowcount > 0

    async def clean_inactive(self, conn: AsyncConnection) -> int:
        """Delete inactive articles; their links go with them."""
        async with conn.cursor() as cur:
            await cur.execute("DELETE FROM article WHERE NOT is_active")
            return cur.rowcount

    async def count_articles(self, conn: AsyncConnection) -> int:
        """Count stored articles."""
        async with conn.cursor() as cur:
            await cur.execute("SELECT COUNT(*) AS total FROM article")
            row = await cur.fetchone()
            return row["total"]
