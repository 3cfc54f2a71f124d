import httpx

from newsdesk.ingestion import ArticleBatch, RedirectResolver

REDIRECTS = {
    "/a": "https://img.example/b",
    "/b": "https://img.example/c",
    "/c": "https://cdn.example/final.jpg",
}


def redirecting_handler(request: httpx.Request) -> httpx.Response:
    target = REDIRECTS.get(request.url.path)
    if target:
        return httpx.Response(301, headers={"Location": target})
    return httpx.Response(200, content=b"image bytes")


async def test_follows_redirect_chain_to_final_url():
    resolver = RedirectResolver(transport=httpx.MockTransport(redirecting_handler))

    assert await resolver.resolve("https://img.example/a") == "https://cdn.example/final.jpg"


async def test_error_status_still_yields_final_url():
    def handler(request):
        if request.url.path == "/moved":
            return httpx.Response(302, headers={"Location": "https://img.example/gone"})
        return httpx.Response(404)

    resolver = RedirectResolver(transport=httpx.MockTransport(handler))

    assert await resolver.resolve("https://img.example/moved") == "https://img.example/gone"


async def test_unreachable_host_returns_none():
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    resolver = RedirectResolver(transport=httpx.MockTransport(handler))

    assert await resolver.resolve("https://unreachable.invalid/x.jpg") is None


async def test_redirect_loop_returns_none():
    def handler(request):
        return httpx.Response(301, headers={"Location": str(request.url)})

    resolver = RedirectResolver(max_redirects=5, transport=httpx.MockTransport(handler))

    assert await resolver.resolve("https://img.example/loop") is None


async def test_unusable_input_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    resolver = RedirectResolver(transport=httpx.MockTransport(handler))

    assert await resolver.resolve(None) is None
    assert await resolver.resolve("") is None
    assert await resolver.resolve("   ") is None
    assert await resolver.resolve(42) is None
    assert calls == []


async def test_resolve_batch_fills_items_and_sub_items(make_item, make_sub, make_payload):
    batch = ArticleBatch.model_validate(
        make_payload(
            make_item(
                "https://news.example/a",
                thumbnail="https://img.example/a",
                subnews=[
                    make_sub("https://news.example/a-1", thumbnail="https://img.example/b"),
                    make_sub("https://news.example/a-2"),
                ],
            ),
            make_item("https://news.example/z"),
        )
    )
    resolver = RedirectResolver(transport=httpx.MockTransport(redirecting_handler))

    await resolver.resolve_batch(batch)

    first, second = batch.items
    assert first.image_url == "https://cdn.example/final.jpg"
    assert [sub.image_url for sub in first.sub_items] == ["https://cdn.example/final.jpg", None]
    assert second.image_url is None
