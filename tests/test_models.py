from uuid import uuid4

import pytest
from pydantic import ValidationError

from newsdesk.models import Article, ArticleLink, Category


@pytest.mark.parametrize("raw", ["science", "SCIENCE", "  Science\n", Category.SCIENCE])
def test_category_parse_ignores_case_and_whitespace(raw):
    assert Category.parse(raw) is Category.SCIENCE


def test_category_parse_rejects_unknown_names():
    with pytest.raises(ValueError):
        Category.parse("weather")


def test_categories_keep_ingestion_order():
    assert [category.value for category in Category] == [
        "entertainment",
        "world",
        "business",
        "health",
        "sport",
        "science",
        "technology",
    ]


def test_link_to_itself_is_rejected():
    article_id = uuid4()

    with pytest.raises(ValidationError):
        ArticleLink(parent_id=article_id, child_id=article_id)


def test_article_reads_joined_row(now):
    row = {
        "id": uuid4(),
        "published_at": now,
        "title": "Comet sighted",
        "snippet": "Snippet",
        "thumbnail": None,
        "thumbnail_proxied": None,
        "image_url": None,
        "source_url": "https://news.example/comet",
        "publisher": "Observatory",
        "category_id": 6,
        "category": "science",
        "is_active": True,
        "has_children": False,
        "inserted_at": now,
    }

    article = Article.model_validate(row)

    assert article.category == "science"
    assert article.is_active is True
