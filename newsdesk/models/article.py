"""Stored articles and the parent/sub-news link graph."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, model_validator

from .base import DBModel


class Article(DBModel):
    """Article model."""

    id: UUID = Field(..., description="Generated primary key")
    published_at: datetime = Field(..., description="Provider timestamp, seconds precision")
    title: str = Field(..., description="Article title")
    snippet: str = Field(..., description="Short summary")
    thumbnail: Optional[str] = Field(None, description="Thumbnail URL as sent by the provider")
    thumbnail_proxied: Optional[str] = Field(None, description="Proxied thumbnail URL")
    image_url: Optional[str] = Field(None, description="Thumbnail URL after following redirects")
    source_url: str = Field(..., description="Canonical source URL, globally unique")
    publisher: str = Field(..., description="Publisher name")
    category_id: int = Field(..., description="Foreign key to article_category")
    category: Optional[str] = Field(None, description="Category name, when joined")
    is_active: bool = Field(True, description="Whether the article is visible")
    has_children: bool = Field(False, description="Whether sub-news are linked under it")
    inserted_at: Optional[datetime] = Field(None, description="When the row was written")


class ArticleLink(DBModel):
    """Parent -> sub-news relation."""

    parent_id: UUID = Field(..., description="Parent article")
    child_id: UUID = Field(..., description="Sub-news article")

    @model_validator(mode="after")
    def check_not_self(self) -> "ArticleLink":
        """An article cannot be its own sub-news."""
        if self.parent_id == self.child_id:
            raise ValueError("An article cannot link to itself")
        return self
