"""Pacing policies for calls to the external provider."""

import asyncio
from typing import Protocol


class RateLimiter(Protocol):
    """Anything the orchestrator can await between categories."""

    async def wait(self) -> None:
        ...


class FixedDelay:
    """Sleep a fixed number of seconds."""

    def __init__(self, seconds: float = 1.0) -> None:
        if seconds < 0:
            raise ValueError("Delay must not be negative")
        self.seconds = seconds

    async def wait(self) -> None:
        if self.seconds:
            await asyncio.sleep(self.seconds)


class NoDelay:
    """Do not wait at all."""

    async def wait(self) -> None:
        return None
