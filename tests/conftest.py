"""Shared fixtures: an in-memory database behind the real storage classes."""

import copy
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union
from uuid import uuid4

import httpx
import pytest

from newsdesk.db.articles import ArticleStorage
from newsdesk.db.checkpoints import CheckpointManager
from newsdesk.ingestion import ArticleBatch, RedirectResolver
from newsdesk.models import Category, IngestionCheckpoint
from newsdesk.pipeline import IngestionOrchestrator

NOW = datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)


class FakeDatabase:
    """Tables kept in dicts; transactions snapshot and restore them."""

    def __init__(self) -> None:
        self.categories: Dict[str, int] = {}
        self.articles: Dict = {}
        self.links = set()
        self.last_run: Optional[datetime] = None
        self.run_lock_held = False
        self.commits = 0
        self.rollbacks = 0

    def _snapshot(self):
        return copy.deepcopy((self.categories, self.articles, self.links, self.last_run))

    def _restore(self, snapshot) -> None:
        self.categories, self.articles, self.links, self.last_run = snapshot

    def connect(self):
        return _connection(self)

    def article_by_url(self, url: str) -> Optional[Dict]:
        for row in self.articles.values():
            if row["source_url"] == url:
                return row
        return None

    def links_from(self, parent_url: str) -> List[str]:
        parent = self.article_by_url(parent_url)
        return sorted(
            self.articles[child]["source_url"]
            for parent_id, child in self.links
            if parent and parent_id == parent["id"]
        )


class FakeConnection:
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db

    @asynccontextmanager
    async def transaction(self):
        snapshot = self.db._snapshot()
        try:
            yield self
        except BaseException:
            self.db._restore(snapshot)
            self.db.rollbacks += 1
            raise
        self.db.commits += 1

    async def commit(self) -> None:
        return None


@asynccontextmanager
async def _connection(db: FakeDatabase):
    yield FakeConnection(db)


class InMemoryArticleStorage(ArticleStorage):
    """ArticleStorage with its SQL primitives replaced by dict operations."""

    async def get_or_create_category(self, conn, category):
        name = Category.parse(category).value
        if name not in conn.db.categories:
            conn.db.categories[name] = len(conn.db.categories) + 1
        return conn.db.categories[name]

    async def find_article_id(self, conn, source_url):
        row = conn.db.article_by_url(source_url)
        return row["id"] if row else None

    async def upsert_article(self, conn, item, category_id, has_children=False):
        existing = await self.find_article_id(conn, item.source_url)
        if existing is not None:
            return existing, False

        article_id = uuid4()
        conn.db.articles[article_id] = {
            "id": article_id,
            "published_at": item.timestamp,
            "title": item.title,
            "snippet": item.snippet,
            "thumbnail": item.thumbnail,
            "thumbnail_proxied": item.thumbnail_proxied,
            "image_url": item.image_url,
            "source_url": item.source_url,
            "publisher": item.publisher,
            "category_id": category_id,
            "is_active": True,
            "has_children": has_children,
        }
        return article_id, True

    async def mark_has_children(self, conn, article_id):
        conn.db.articles[article_id]["has_children"] = True

    async def link_articles(self, conn, parent_id, child_id):
        if parent_id == child_id or (parent_id, child_id) in conn.db.links:
            return False
        conn.db.links.add((parent_id, child_id))
        return True


class InMemoryCheckpointManager(CheckpointManager):
    async def get_checkpoint(self, conn):
        if conn.db.last_run is None:
            return None
        return IngestionCheckpoint(last_run_at=conn.db.last_run)

    async def record_run(self, conn, at=None):
        conn.db.last_run = at or datetime.now(timezone.utc)

    async def try_acquire_run_lock(self, conn):
        if conn.db.run_lock_held:
            return False
        conn.db.run_lock_held = True
        return True

    async def release_run_lock(self, conn):
        conn.db.run_lock_held = False


class StubFetcher:
    """Serves canned payloads per category; an exception value is raised."""

    def __init__(self, payloads: Optional[Dict[str, Union[dict, Exception]]] = None) -> None:
        self.payloads = payloads or {}
        self.calls: List[str] = []

    async def fetch(self, category):
        name = Category(category).value
        self.calls.append(name)
        payload = self.payloads.get(name, {"status": "success", "items": []})
        if isinstance(payload, Exception):
            raise payload
        return ArticleBatch.model_validate(copy.deepcopy(payload))


class RecordingLimiter:
    def __init__(self) -> None:
        self.waits = 0

    async def wait(self) -> None:
        self.waits += 1


def build_item(
    url: str,
    subnews: Optional[List[dict]] = None,
    timestamp: Union[str, int] = "1718000000999",
    thumbnail: Optional[str] = None,
    title: Optional[str] = None,
) -> dict:
    item = {
        "timestamp": timestamp,
        "title": title or f"Title for {url}",
        "snippet": "Snippet",
        "images": {"thumbnail": thumbnail, "thumbnailProxied": None} if thumbnail else None,
        "newsUrl": url,
        "publisher": "Publisher",
        "hasSubnews": bool(subnews),
    }
    if subnews:
        item["subnews"] = subnews
    return item


def build_sub(url: str, thumbnail: Optional[str] = None) -> dict:
    sub = build_item(url, thumbnail=thumbnail)
    del sub["hasSubnews"]
    return sub


def build_payload(*items: dict) -> dict:
    return {"status": "success", "items": list(items)}


@pytest.fixture
def make_item():
    return build_item


@pytest.fixture
def make_sub():
    return build_sub


@pytest.fixture
def make_payload():
    return build_payload


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def conn(fake_db):
    return FakeConnection(fake_db)


@pytest.fixture
def storage():
    return InMemoryArticleStorage()


@pytest.fixture
def checkpoints():
    return InMemoryCheckpointManager()


@pytest.fixture
def resolver():
    return RedirectResolver(transport=httpx.MockTransport(lambda request: httpx.Response(200)))


@pytest.fixture
def stub_fetcher():
    return StubFetcher


@pytest.fixture
def limiter():
    return RecordingLimiter()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def build_orchestrator(fake_db, storage, checkpoints, resolver, limiter):
    def build(fetcher, **kwargs):
        kwargs.setdefault("cooldown", timedelta(days=10))
        kwargs.setdefault("clock", lambda: NOW)
        kwargs.setdefault("rate_limiter", limiter)
        return IngestionOrchestrator(
            fetcher=fetcher,
            resolver=resolver,
            storage=kwargs.pop("storage", storage),
            checkpoints=checkpoints,
            connect=fake_db.connect,
            **kwargs,
        )

    return build
