"""Thumbnail redirect resolution."""

import logging
from typing import Optional

import httpx

from .models import ArticleBatch

logger = logging.getLogger(__name__)


class RedirectResolver:
    """Follow thumbnail redirects to the URL that actually serves the image."""

    def __init__(
        self,
        timeout: float = 10.0,
        max_redirects: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize redirect resolver."""
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.transport = transport

    async def resolve(self, url: Optional[str], context: str = "") -> Optional[str]:
        """
        Resolve a URL by following its redirects.

        Returns:
            The final URL, or None when the input is unusable or the
            request fails. Never raises for network errors.
        """
        if not isinstance(url, str) or not url.strip():
            logger.debug("No usable thumbnail for %s", context or "item")
            return None

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=self.max_redirects,
                transport=self.transport,
            ) as client:
                # Only the final URL matters, so the body is never read
                async with client.stream("GET", url.strip()) as response:
                    final_url = str(response.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Could not resolve thumbnail for %s: %s", context or url, e)
            return None

        if not final_url.strip():
            return None
        return final_url

    async def resolve_batch(self, batch: ArticleBatch) -> ArticleBatch:
        """Fill image_url for every item and sub-item, in payload order."""
        for item in batch.items:
            item.image_url = await self.resolve(item.thumbnail, item.title)
            for sub in item.sub_items:
                sub.image_url = await self.resolve(sub.thumbnail, sub.title)
        return batch
