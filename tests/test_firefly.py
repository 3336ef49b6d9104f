"""Tests for the Firefly III client using a mocked HTTP transport."""

import asyncio
import json

import httpx
import pytest

from ai_categorize.core.models import Category
from ai_categorize.services.firefly import FireflyClient, FireflyError

BASE_URL = "https://firefly.example/"
TOKEN = "secret-token"


def category_page(page: int, total_pages: int, items: list[tuple[str, str]]) -> dict:
    """Build one page of the Firefly categories listing."""
    return {
        "data": [{"id": cid, "attributes": {"name": name}} for cid, name in items],
        "meta": {"pagination": {"current_page": page, "total_pages": total_pages}},
    }


def make_client(handler, ttl: int = 300) -> FireflyClient:
    """Build a client that talks to ``handler`` instead of the network."""
    return FireflyClient(BASE_URL, TOKEN, category_cache_ttl=ttl, transport=httpx.MockTransport(handler))


def test_list_categories_follows_pages_and_caches() -> None:
    """All pages are read once, then served from memory within the TTL."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        page = int(request.url.params["page"])
        items = [("1", "Groceries")] if page == 1 else [("2", "Dining")]
        return httpx.Response(200, json=category_page(page, 2, items))

    client = make_client(handler)

    async def scenario() -> tuple[list[Category], list[Category]]:
        first = await client.list_categories()
        second = await client.list_categories()
        await client.aclose()
        return first, second

    first, second = asyncio.run(scenario())
    if [c.name for c in first] != ["Groceries", "Dining"] or second != first:
        msg = f"Unexpected categories: {first} / {second}"
        raise AssertionError(msg)
    if len(calls) != 2:  # noqa: PLR2004
        msg = f"Expected 2 page requests, got {len(calls)}"
        raise AssertionError(msg)
    if calls[0].url.path != "/api/v1/categories" or calls[0].headers["Authorization"] != f"Bearer {TOKEN}":
        msg = f"Unexpected request: {calls[0].url} {calls[0].headers}"
        raise AssertionError(msg)


def test_invalidate_category_cache_refetches() -> None:
    """Invalidation forces the next call to hit Firefly."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=category_page(1, 1, [("1", "Groceries")]))

    client = make_client(handler)

    async def scenario() -> None:
        await client.list_categories()
        client.invalidate_category_cache()
        await client.list_categories()
        await client.aclose()

    asyncio.run(scenario())
    if len(calls) != 2:  # noqa: PLR2004
        msg = f"Expected a refetch after invalidation, got {len(calls)} calls"
        raise AssertionError(msg)


def test_recent_by_merchant_maps_first_split() -> None:
    """Search results become snapshots built from each group's first split."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = request.url.params["query"]
        seen["limit"] = request.url.params["limit"]
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "id": "31",
                        "attributes": {
                            "transactions": [
                                {
                                    "description": "Lunch",
                                    "destination_name": "Bistro",
                                    "category_id": "2",
                                    "category_name": "Dining",
                                    "amount": "12.00",
                                    "date": "2025-02-01T12:00:00+00:00",
                                }
                            ]
                        },
                    },
                    {"id": "30", "attributes": {"transactions": []}},
                    {
                        "id": "29",
                        "attributes": {
                            "transactions": [{"description": "Coffee", "destination_name": "Bistro", "amount": "3.00"}]
                        },
                    },
                ]
            },
        )

    client = make_client(handler)
    snapshots = asyncio.run(client.recent_by_merchant("Bistro", 5))
    if seen != {"query": 'destination_is:"Bistro"', "limit": "5"}:
        msg = f"Unexpected search parameters: {seen}"
        raise AssertionError(msg)
    if [s.id for s in snapshots] != ["31", "29"]:
        msg = f"Unexpected snapshots: {snapshots}"
        raise AssertionError(msg)
    if snapshots[0].category_name != "Dining" or snapshots[1].category_id is not None:
        msg = f"Unexpected category mapping: {snapshots}"
        raise AssertionError(msg)


def test_apply_category_sends_update() -> None:
    """Updates set the category and tags without firing rules or webhooks."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {}})

    client = make_client(handler)
    asyncio.run(client.apply_category("77", "2", ["card", "AI categorized"]))
    expected_body = {
        "apply_rules": False,
        "fire_webhooks": False,
        "transactions": [{"category_id": "2", "tags": ["card", "AI categorized"]}],
    }
    if seen != {"method": "PUT", "path": "/api/v1/transactions/77", "body": expected_body}:
        msg = f"Unexpected update request: {seen}"
        raise AssertionError(msg)


def test_error_status_raises_firefly_error() -> None:
    """Non-2xx responses surface as FireflyError."""

    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(500, json={"message": "boom"})

    client = make_client(handler)
    with pytest.raises(FireflyError):
        asyncio.run(client.apply_category("77", "2", []))
