from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from newsdesk.ingestion import ArticleBatch, ArticleItem


def test_batch_parses_provider_field_names(make_item, make_sub, make_payload):
    payload = make_payload(
        make_item(
            "https://news.example/a",
            subnews=[make_sub("https://news.example/a-1", thumbnail="https://img.example/1")],
            thumbnail="https://img.example/a",
        )
    )

    batch = ArticleBatch.model_validate(payload)

    assert batch.item_count == 1
    item = batch.items[0]
    assert item.source_url == "https://news.example/a"
    assert item.has_subnews is True
    assert item.thumbnail == "https://img.example/a"
    assert item.thumbnail_proxied is None
    assert item.image_url is None
    assert [sub.source_url for sub in item.sub_items] == ["https://news.example/a-1"]


@pytest.mark.parametrize("timestamp", ["1718000000999", 1718000000999])
def test_epoch_milliseconds_truncate_to_seconds(make_item, timestamp):
    item = ArticleItem.model_validate(make_item("https://news.example/a", timestamp=timestamp))

    assert item.timestamp == datetime(2024, 6, 10, 6, 13, 20, tzinfo=timezone.utc)


def test_iso_timestamp_is_accepted(make_item):
    item = ArticleItem.model_validate(
        make_item("https://news.example/a", timestamp="2024-06-10T06:13:20.500Z")
    )

    assert item.timestamp == datetime(2024, 6, 10, 6, 13, 20, tzinfo=timezone.utc)


def test_sub_items_require_the_flag(make_item, make_sub):
    data = make_item("https://news.example/a", subnews=[make_sub("https://news.example/b")])
    data["hasSubnews"] = False

    assert ArticleItem.model_validate(data).sub_items == []


def test_flag_without_sub_items_yields_nothing(make_item):
    data = make_item("https://news.example/a")
    data["hasSubnews"] = True

    assert ArticleItem.model_validate(data).sub_items == []


def test_missing_source_url_is_rejected(make_item, make_payload):
    data = make_item("https://news.example/a")
    del data["newsUrl"]

    with pytest.raises(ValidationError):
        ArticleBatch.model_validate(make_payload(data))


def test_unparseable_timestamp_is_rejected(make_item):
    with pytest.raises(ValidationError):
        ArticleItem.model_validate(make_item("https://news.example/a", timestamp="yesterday"))


def test_items_must_be_a_list():
    with pytest.raises(ValidationError):
        ArticleBatch.model_validate({"status": "success", "items": {"oops": True}})
