"""Ingestion orchestrator that runs every category through fetch, resolve and store."""

import asyncio
import logging
import math
import time
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import AsyncContextManager, AsyncIterator, Callable, Dict, List, Optional, Sequence

import psycopg
from psycopg import AsyncConnection

from ..config import Config
from ..db.articles import ArticleStorage
from ..db.checkpoints import CheckpointManager
from ..errors import CategoryError, CooldownActive, IngestionError, StorageFailure
from ..ingestion import CategoryFetcher, FixedDelay, NoDelay, RateLimiter, RedirectResolver
from ..models import Category

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], AsyncContextManager[AsyncConnection]]

DEFAULT_COOLDOWN = timedelta(days=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def whole_days(delta: timedelta) -> int:
    """Round a positive duration up to whole days."""
    return math.ceil(delta / timedelta(days=1))


class RunStatus(str, Enum):
    """Lifecycle of an ingestion run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class CategoryStage:
    """Progress of one category within a run."""

    def __init__(self, category: Category):
        self.category = Category(category)
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.error: Optional[CategoryError] = None
        self.stats: Dict[str, int] = {}

    @property
    def name(self) -> str:
        return self.category.value

    def start(self):
        """Mark stage as started."""
        self.start_time = time.monotonic()

    def complete(self, stats: Optional[Dict[str, int]] = None):
        """Mark stage as completed successfully."""
        self.end_time = time.monotonic()
        self.success = True
        if stats:
            self.stats.update(stats)

    def fail(self, error: CategoryError):
        """Mark stage as failed."""
        self.end_time = time.monotonic()
        self.success = False
        self.error = error

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return 0.0


class IngestionResult:
    """Outcome of a single call to IngestionOrchestrator.run."""

    def __init__(self, status: RunStatus = RunStatus.RUNNING, started_at: Optional[datetime] = None):
        self.status = status
        self.started_at = started_at
        self.finished_at: Optional[datetime] = None
        self.stages: List[CategoryStage] = []
        self.processed = 0
        self.error: Optional[IngestionError] = None

    @classmethod
    def skipped(cls) -> "IngestionResult":
        return cls(status=RunStatus.SKIPPED)

    @property
    def success(self) -> bool:
        return self.status == RunStatus.COMPLETED

    def stage(self, category: Category) -> Optional[CategoryStage]:
        """Get the stage for a category, if it was reached."""
        for stage in self.stages:
            if stage.category == Category(category):
                return stage
        return None

    def to_dict(self) -> Dict:
        return {
            "status": self.status.value,
            "processed": self.processed,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": str(self.error) if self.error else None,
            "categories": {
                stage.name: {
                    "success": stage.success,
                    "duration": stage.duration,
                    "stats": stage.stats,
                    "error": str(stage.error) if stage.error else None,
                }
                for stage in self.stages
            },
        }


class IngestionOrchestrator:
    """Runs ingestion over all categories, one transaction per category."""

    def __init__(
        self,
        fetcher: CategoryFetcher,
        resolver: RedirectResolver,
        storage: ArticleStorage,
        checkpoints: CheckpointManager,
        connect: ConnectionFactory,
        rate_limiter: Optional[RateLimiter] = None,
        categories: Optional[Sequence[Category]] = None,
        cooldown: Optional[timedelta] = DEFAULT_COOLDOWN,
        use_advisory_lock: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize ingestion orchestrator."""
        self.fetcher = fetcher
        self.resolver = resolver
        self.storage = storage
        self.checkpoints = checkpoints
        self.connect = connect
        self.rate_limiter = rate_limiter or NoDelay()
        self.categories = list(categories) if categories is not None else list(Category)
        self.cooldown = cooldown
        self.use_advisory_lock = use_advisory_lock
        self.clock = clock
        self._lock = asyncio.Lock()
        self._state = RunStatus.IDLE

    @classmethod
    def from_config(cls, config: Config, connect: ConnectionFactory) -> "IngestionOrchestrator":
        """Build an orchestrator wired to the real provider and database."""
        settings = config.config
        ingestion = settings.ingestion
        return cls(
            fetcher=CategoryFetcher(
                base_url=settings.provider.base_url,
                api_key=config.get_api_key(),
                host=settings.provider.host,
                language=settings.provider.language,
                timeout=settings.provider.timeout,
            ),
            resolver=RedirectResolver(
                timeout=settings.resolver.timeout,
                max_redirects=settings.resolver.max_redirects,
            ),
            storage=ArticleStorage(),
            checkpoints=CheckpointManager(),
            connect=connect,
            rate_limiter=FixedDelay(ingestion.category_delay),
            cooldown=timedelta(days=ingestion.cooldown_days) if ingestion.enforce_cooldown else None,
            use_advisory_lock=ingestion.advisory_lock,
        )

    @property
    def state(self) -> RunStatus:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def cooldown_remaining(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        """Time left before the next run is allowed, or None if it is allowed now."""
        if self.cooldown is None:
            return None

        async with self.connect() as conn:
            last_run = await self.checkpoints.get_last_run(conn)
        if last_run is None:
            return None
        if last_run.tzinfo is None:
            last_run = last_run.replace(tzinfo=timezone.utc)

        remaining = last_run + self.cooldown - (now or self.clock())
        return remaining if remaining > timedelta(0) else None

    async def run(self, force: bool = False) -> IngestionResult:
        """
        Run ingestion once.

        A call made while another run is in flight returns a SKIPPED
        result immediately.

        Raises:
            CooldownActive: if the last successful run is too recent
        """
        if self._lock.locked():
            logger.info("Ingestion already running, ignoring trigger")
            return IngestionResult.skipped()

        async with self._lock:
            self._state = RunStatus.RUNNING
            try:
                result = await self._run(force)
            except CooldownActive:
                self._state = RunStatus.IDLE
                raise
            except BaseException:
                self._state = RunStatus.FAILED
                raise
            self._state = result.status if result.status != RunStatus.SKIPPED else RunStatus.IDLE
            return result

    async def _run(self, force: bool) -> IngestionResult:
        started_at = self.clock()

        if not force:
            await self._check_cooldown(started_at)

        async with self._run_guard() as acquired:
            if not acquired:
                logger.info("Another process holds the ingestion lock, ignoring trigger")
                return IngestionResult.skipped()
            if self.use_advisory_lock and not force:
                # a run that held the lock may have just recorded its checkpoint
                await self._check_cooldown(self.clock())
            return await self._ingest_all(started_at)

    async def _check_cooldown(self, now: datetime) -> None:
        remaining = await self.cooldown_remaining(now)
        if remaining is not None:
            raise CooldownActive(whole_days(remaining))

    async def _ingest_all(self, started_at: datetime) -> IngestionResult:
        result = IngestionResult(started_at=started_at)

        for index, category in enumerate(self.categories):
            if index:
                await self.rate_limiter.wait()

            stage = CategoryStage(category)
            result.stages.append(stage)
            stage.start()

            try:
                stats = await self._ingest_category(stage.category)
            except CategoryError as e:
                logger.error("Ingestion failed on %s: %s", stage.name, e, exc_info=True)
                stage.fail(e)
                result.error = e
                break

            stage.complete(stats)
            result.processed += stats.get("items", 0)
            logger.info(
                "Stored %s: %d items, %d new, %d duplicates",
                stage.name,
                stats.get("items", 0),
                stats.get("new", 0),
                stats.get("duplicates", 0),
            )

        if result.error is None:
            try:
                async with self.connect() as conn:
                    async with conn.transaction():
                        await self.checkpoints.record_run(conn, self.clock())
            except psycopg.Error as e:
                logger.error("Could not record ingestion checkpoint: %s", e)
                result.error = IngestionError(f"Could not record checkpoint: {e}")

        result.status = RunStatus.COMPLETED if result.error is None else RunStatus.FAILED
        result.finished_at = self.clock()
        logger.info("Ingestion %s, %d items processed", result.status.value, result.processed)
        return result

    async def _ingest_category(self, category: Category) -> Dict[str, int]:
        batch = await self.fetcher.fetch(category)
        await self.resolver.resolve_batch(batch)

        try:
            async with self.connect() as conn:
                async with conn.transaction():
                    return await self.storage.ingest_batch(conn, batch, category)
        except (psycopg.Error, LookupError) as e:
            raise StorageFailure(category.value, cause=e) from e

    @asynccontextmanager
    async def _run_guard(self) -> AsyncIterator[bool]:
        if not self.use_advisory_lock:
            yield True
            return

        async with self.connect() as conn:
            acquired = await self.checkpoints.try_acquire_run_lock(conn)
            await conn.commit()
            try:
                yield acquired
            finally:
                if acquired:
                    await self.checkpoints.release_run_lock(conn)
                    await conn.commit()
