"""Data models for the provider payload."""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


def _from_epoch_ms(value) -> datetime:
    try:
        return datetime.fromtimestamp(int(value) // 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"timestamp out of range: {value!r}") from e


class ArticleImages(BaseModel):
    """Thumbnail URLs attached to an item."""

    thumbnail: Optional[str] = Field(None, description="Thumbnail URL, usually a redirect")
    thumbnail_proxied: Optional[str] = Field(
        None, alias="thumbnailProxied", description="Provider-proxied thumbnail URL"
    )

    class Config:
        """Pydantic config."""

        populate_by_name = True


class SubArticleItem(BaseModel):
    """Article nested under another item (one level deep)."""

    timestamp: datetime = Field(..., description="Publication time, whole seconds, UTC")
    title: str = Field(..., description="Article title")
    snippet: str = Field(..., description="Short summary")
    images: Optional[ArticleImages] = Field(None, description="Thumbnail URLs")
    source_url: str = Field(..., alias="newsUrl", description="Canonical source URL")
    publisher: str = Field(..., description="Publisher name")
    image_url: Optional[str] = Field(None, description="Resolved thumbnail URL")

    class Config:
        """Pydantic config."""

        populate_by_name = True

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any) -> datetime:
        """Accept epoch milliseconds (number or digit string) or ISO datetimes."""
        if isinstance(value, bool):
            raise ValueError("timestamp must be epoch milliseconds or a datetime")
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, (int, float)):
            parsed = _from_epoch_ms(value)
        elif isinstance(value, str) and value.strip().isdigit():
            parsed = _from_epoch_ms(int(value.strip()))
        elif isinstance(value, str):
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        else:
            raise ValueError("timestamp must be epoch milliseconds or a datetime")

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.replace(microsecond=0)

    @property
    def thumbnail(self) -> Optional[str]:
        """Thumbnail URL, if any."""
        return self.images.thumbnail if self.images else None

    @property
    def thumbnail_proxied(self) -> Optional[str]:
        """Proxied thumbnail URL, if any."""
        return self.images.thumbnail_proxied if self.images else None


class ArticleItem(SubArticleItem):
    """Top-level article in a provider response."""

    has_subnews: bool = Field(..., alias="hasSubnews", description="Whether sub-news are attached")
    subnews: Optional[List[SubArticleItem]] = Field(None, description="Nested sub-news")

    @property
    def sub_items(self) -> List[SubArticleItem]:
        """Sub-news to link, empty unless the item declares them."""
        if not self.has_subnews or not self.subnews:
            return []
        return list(self.subnews)


class ArticleBatch(BaseModel):
    """Validated provider response for one category."""

    status: str = Field(..., description="Provider status string")
    items: List[ArticleItem] = Field(default_factory=list, description="Articles in provider order")

    @property
    def item_count(self) -> int:
        """Number of top-level items."""
        return len(self.items)
