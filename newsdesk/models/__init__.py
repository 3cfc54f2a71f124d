"""Data models for newsdesk."""

from .article import Article, ArticleLink
from .category import Category
from .checkpoint import IngestionCheckpoint

__all__ = ["Article", "ArticleLink", "Category", "IngestionCheckpoint"]
