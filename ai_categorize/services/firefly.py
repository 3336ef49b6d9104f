"""FireflyClient provides the Firefly III API operations used by the categorizer."""

import time
from typing import Any

import httpx

from ai_categorize.core.models import Category, TransactionSnapshot
from ai_categorize.core.settings import Settings
from ai_categorize.core.utils import get_logger

logger = get_logger("ai-categorize.firefly")


class FireflyError(RuntimeError):
    """Raised when a Firefly III request fails."""


class FireflyClient:
    """Async client for categories, transaction search and transaction updates."""

    def __init__(
        self,
        base_url: str,
        token: str,
        category_cache_ttl: int = 300,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create the HTTP client; requests are unbounded unless ``timeout`` is given."""
        self.category_cache_ttl = category_cache_ttl
        self.http = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/api",
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self._categories: list[Category] | None = None
        self._categories_fetched_at = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "FireflyClient":
        """Build a client from application settings."""
        return cls(
            settings.firefly_url,
            settings.firefly_personal_token,
            category_cache_ttl=settings.firefly_category_cache_ttl,
            timeout=settings.firefly_timeout,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self.http.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            msg = f"Firefly {method} {path} returned {exc.response.status_code}"
            logger.error(f"{msg}: {exc.response.text[:300]}")
            raise FireflyError(msg) from exc
        except (httpx.HTTPError, ValueError) as exc:
            msg = f"Firefly {method} {path} failed: {exc}"
            logger.error(msg)
            raise FireflyError(msg) from exc

    async def list_categories(self) -> list[Category]:
        """Return all categories, served from memory while the cached list is younger than the TTL."""
        now = time.monotonic()
        if self._categories is not None and now - self._categories_fetched_at < self.category_cache_ttl:
            logger.debug(f"Using cached categories ({len(self._categories)})")
            return self._categories

        logger.debug("Fetching categories from Firefly")
        categories: list[Category] = []
        page = 1
        while True:
            body = await self._request("GET", "/v1/categories", params={"page": page})
            categories.extend(
                Category(id=str(item["id"]), name=(item.get("attributes") or {}).get("name") or "")
                for item in body.get("data") or []
            )
            pagination = (body.get("meta") or {}).get("pagination") or {}
            if page >= int(pagination.get("total_pages") or 1):
                break
            page += 1

        self._categories = categories
        self._categories_fetched_at = now
        logger.info(f"Fetched {len(categories)} categories (ttl={self.category_cache_ttl}s)")
        return categories

    def invalidate_category_cache(self) -> None:
        """Forget the cached category list so the next call refetches it."""
        self._categories = None
        self._categories_fetched_at = 0.0
        logger.debug("Category cache invalidated")

    async def recent_by_merchant(self, merchant_name: str, limit: int = 5) -> list[TransactionSnapshot]:
        """Search the most recent transactions paid to a merchant, newest first."""
        logger.debug(f"Searching recent transactions for '{merchant_name}' (limit={limit})")
        body = await self._request(
            "GET",
            "/v1/search/transactions",
            params={"query": f'destination_is:"{merchant_name}"', "limit": limit},
        )
        snapshots = []
        for group in body.get("data") or []:
            splits = (group.get("attributes") or {}).get("transactions") or []
            if not splits:
                continue
            split = splits[0]
            snapshots.append(
                TransactionSnapshot(
                    id=str(group["id"]),
                    description=split.get("description") or "",
                    destination_name=split.get("destination_name") or "",
                    category_id=str(split["category_id"]) if split.get("category_id") is not None else None,
                    category_name=split.get("category_name"),
                    amount=str(split.get("amount") or "0"),
                    date=split.get("date") or "",
                )
            )
        logger.info(f"Found {len(snapshots)} recent transactions for '{merchant_name}'")
        return snapshots[:limit]

    async def apply_category(self, transaction_id: str, category_id: str, tags: list[str]) -> None:
        """Set the category and tags on a transaction without re-running rules or webhooks."""
        logger.debug(f"Updating transaction {transaction_id}: category={category_id}, tags={tags}")
        await self._request(
            "PUT",
            f"/v1/transactions/{transaction_id}",
            json={
                "apply_rules": False,
                "fire_webhooks": False,
                "transactions": [{"category_id": category_id, "tags": tags}],
            },
        )
        logger.info(f"Transaction {transaction_id} updated with category {category_id}")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.http.aclose()
