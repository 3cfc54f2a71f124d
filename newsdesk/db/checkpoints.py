"""Ingestion checkpoint and run lock."""

from datetime import datetime, timezone
from typing import Optional

from psycopg import AsyncConnection

from ..models import IngestionCheckpoint

# Arbitrary application-wide key for pg_try_advisory_lock
RUN_LOCK_KEY = 0x6E657773


class CheckpointManager:
    """Manage the last-successful-run checkpoint in database."""

    async def get_checkpoint(self, conn: AsyncConnection) -> Optional[IngestionCheckpoint]:
        """Get the checkpoint row, if a run ever succeeded."""
        async with conn.cursor() as cur:
            await cur.execute("SELECT id, last_run_at FROM ingestion_checkpoint WHERE id = 1")
            row = await cur.fetchone()
            return IngestionCheckpoint.model_validate(row) if row else None

    async def get_last_run(self, conn: AsyncConnection) -> Optional[datetime]:
        """Get the time of the last successful run, if any."""
        checkpoint = await self.get_checkpoint(conn)
        return checkpoint.last_run_at if checkpoint else None

    async def record_run(self, conn: AsyncConnection, at: Optional[datetime] = None) -> None:
        """Record a successful run."""
        if at is None:
            at = datetime.now(timezone.utc)

        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO ingestion_checkpoint (id, last_run_at)
                VALUES (1, %s)
                ON CONFLICT (id) DO UPDATE SET last_run_at = EXCLUDED.last_run_at
                """,
                (at,),
            )

    async def try_acquire_run_lock(self, conn: AsyncConnection) -> bool:
        """
        Take the cross-process run lock without waiting.

        The lock belongs to the connection's session, so the server drops
        it when the holder disconnects.
        """
        async with conn.cursor() as cur:
            await cur.execute("SELECT pg_try_advisory_lock(%s) AS acquired", (RUN_LOCK_KEY,))
            row = await cur.fetchone()
            return bool(row["acquired"])

    async def release_run_lock(self, conn: AsyncConnection) -> None:
        """Release the cross-process run lock."""
        async with conn.cursor() as cur:
            await cur.execute("SELECT pg_advisory_unlock(%s)", (RUN_LOCK_KEY,))
