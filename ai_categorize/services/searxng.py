"""SearxngClient looks up merchants on a SearXNG instance to give the classifier extra context."""

import asyncio

import httpx

from ai_categorize.core.settings import Settings
from ai_categorize.core.utils import get_logger

logger = get_logger("ai-categorize.searxng")

MAX_RESULTS = 3
MAX_SUMMARY_LEN = 500


class SearxngClient:
    """Best-effort merchant search. Every failure degrades to ``None``."""

    def __init__(
        self, base_url: str | None, timeout_ms: int = 3000, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        """Create the client; a missing ``base_url`` disables searching."""
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout_ms / 1000
        self.http = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearxngClient":
        """Build a client from application settings."""
        return cls(settings.searxng_url, timeout_ms=settings.searxng_timeout_ms)

    @property
    def enabled(self) -> bool:
        """Whether a SearXNG URL is configured."""
        return self.base_url is not None

    async def search(self, merchant_name: str) -> str | None:
        """Return a short summary of what the merchant is, or None."""
        if not self.enabled:
            logger.debug("SearXNG not configured, skipping")
            return None
        logger.debug(f"Searching for merchant context: '{merchant_name}'")
        try:
            return await asyncio.wait_for(self._search(merchant_name), timeout=self.timeout)
        except (TimeoutError, httpx.TimeoutException):
            logger.warning(f"SearXNG request timed out for '{merchant_name}'")
        except Exception as exc:  # noqa: BLE001
            logger.error(f"SearXNG request error for '{merchant_name}': {exc}")
        return None

    async def _search(self, merchant_name: str) -> str | None:
        response = await self.http.get(
            f"{self.base_url}/search",
            params={
                "q": f"{merchant_name} company business",
                "format": "json",
                "categories": "general",
                "language": "en",
            },
            headers={"Accept": "application/json"},
        )
        if not response.is_success:
            logger.warning(f"SearXNG request failed with status {response.status_code}")
            return None
        body = response.json()
        results = body.get("results") if isinstance(body, dict) else None
        results = [r for r in results or [] if isinstance(r, dict)][:MAX_RESULTS]
        if not results:
            logger.debug(f"No search results found for '{merchant_name}'")
            return None
        summary = "\n".join(f"{r.get('title', '')}: {r.get('content', '')}" for r in results)
        logger.info(f"Found merchant context for '{merchant_name}' ({len(results)} results)")
        return summary[:MAX_SUMMARY_LEN]

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.http.aclose()
