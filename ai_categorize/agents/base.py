"""Base classifier abstraction for transaction categorization agents.

This module defines the abstract base class for all categorization agents, enforcing a standard interface for proposing a category name for a transaction.
"""

from abc import ABC, abstractmethod

from ai_categorize.core.models import Category, ClassificationResult, TransactionSnapshot


class BaseClassifier(ABC):
    """Abstract base class for all classifiers."""

    @abstractmethod
    async def categorize(
        self,
        categories: list[Category],
        merchant_name: str,
        description: str,
        amount: str,
        history: list[TransactionSnapshot],
        context: str | None = None,
    ) -> ClassificationResult:
        """Propose a category name for a transaction, or none."""
