"""Collaborator interfaces consumed by the decision engine and the worker loop."""

from typing import Protocol, runtime_checkable

from ai_categorize.core.models import Category, TransactionSnapshot


@runtime_checkable
class CategoryProvider(Protocol):
    """Source of the current category list."""

    async def list_categories(self) -> list[Category]:
        """Return all categories; may be served from a short-lived cache."""
        ...


@runtime_checkable
class HistoryProvider(Protocol):
    """Source of recent transactions for a merchant, most recent first."""

    async def recent_by_merchant(self, merchant_name: str, limit: int) -> list[TransactionSnapshot]:
        """Return up to ``limit`` transactions paid to ``merchant_name``."""
        ...


@runtime_checkable
class TransactionUpdater(Protocol):
    """Sink for category updates; raises on failure."""

    async def apply_category(self, transaction_id: str, category_id: str, tags: list[str]) -> None:
        """Set the category and tags of a transaction."""
        ...


@runtime_checkable
class MerchantContextProvider(Protocol):
    """Time-bounded web context lookup that never raises."""

    async def search(self, merchant_name: str) -> str | None:
        """Return a short description of the merchant, or None."""
        ...
