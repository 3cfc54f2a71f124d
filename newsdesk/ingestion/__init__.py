"""Provider fetching and thumbnail resolution."""

from .models import ArticleBatch, ArticleImages, ArticleItem, SubArticleItem
from .provider import CategoryFetcher
from .rate_limit import FixedDelay, NoDelay, RateLimiter
from .resolver import RedirectResolver

__all__ = [
    "ArticleBatch",
    "ArticleImages",
    "ArticleItem",
    "CategoryFetcher",
    "FixedDelay",
    "NoDelay",
    "RateLimiter",
    "RedirectResolver",
    "SubArticleItem",
]
