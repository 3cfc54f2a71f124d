"""Category fetcher for the external news provider."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ..errors import ProviderUnavailable, ValidationFailed
from ..models import Category
from .models import ArticleBatch

logger = logging.getLogger(__name__)


class CategoryFetcher:
    """Fetch and validate one category of articles from the provider."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        host: Optional[str] = None,
        language: str = "es-AR",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize category fetcher."""
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.host = host
        self.language = language
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-rapidapi-key"] = self.api_key
        if self.host:
            headers["x-rapidapi-host"] = self.host
        return headers

    async def fetch(self, category: Category) -> ArticleBatch:
        """
        Fetch the current articles for a category.

        Raises:
            ProviderUnavailable: on transport errors or a non-200 status
            ValidationFailed: when the body is not the expected JSON shape
        """
        name = Category(category).value
        url = f"{self.base_url}/{name}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._headers(),
                transport=self.transport,
            ) as client:
                response = await client.get(url, params={"lr": self.language})
        except httpx.HTTPError as e:
            raise ProviderUnavailable(name, cause=e) from e

        logger.info("Provider answered %s for category %s", response.status_code, name)
        if response.status_code != 200:
            raise ProviderUnavailable(
                name, detail=f"HTTP {response.status_code} {response.reason_phrase}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ValidationFailed(name, cause=e, detail="response is not JSON") from e

        try:
            return ArticleBatch.model_validate(payload)
        except ValidationError as e:
            raise ValidationFailed(name, cause=e) from e
