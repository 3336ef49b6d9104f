"""Pydantic models for the Firefly AI categorizer.

This module defines the models passed between the queue, the cache, the decision engine and the
Firefly collaborators: queued jobs, cached merchant categories, Firefly categories and transaction
snapshots, classifier results, categorization decisions and the inbound webhook payload.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class JobState(str, Enum):
    """Lifecycle states of a queued job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Job(BaseModel):
    """A unit of categorization work as stored in the queue."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_id: str
    merchant_name: str
    description: str
    amount: str
    tags: list[str] = Field(default_factory=list)
    status: JobState
    attempts: int = 0
    error: str | None = None
    created_at: str
    updated_at: str


class CacheEntry(BaseModel):
    """Cached category for a merchant."""

    model_config = ConfigDict(from_attributes=True)

    merchant_name: str
    category_name: str
    category_id: str
    created_at: str
    updated_at: str


class Category(BaseModel):
    """A Firefly category."""

    id: str
    name: str


class TransactionSnapshot(BaseModel):
    """Read-only view of a recent Firefly transaction for a merchant."""

    id: str
    description: str = ""
    destination_name: str = ""
    category_id: str | None = None
    category_name: str | None = None
    amount: str = "0"
    date: str = ""

    @property
    def is_categorized(self) -> bool:
        """Whether the transaction carries both a category id and name."""
        return bool(self.category_id and self.category_name)


class ClassificationResult(BaseModel):
    """Category name proposed by the classifier, if any."""

    category: str | None = None
    raw_output: str = ""


class DecisionSource(str, Enum):
    """Where a categorization decision came from."""

    CACHE = "cache"
    OVERRIDE = "override"
    MODEL = "model"
    SKIP = "skip"


class CategoryDecision(BaseModel):
    """Outcome of the decision engine for one job."""

    source: DecisionSource
    category_id: str | None = None
    category_name: str | None = None
    reason: str | None = None

    @classmethod
    def skip(cls, reason: str) -> "CategoryDecision":
        """Build a skip decision with the given reason."""
        return cls(source=DecisionSource.SKIP, reason=reason)

    @classmethod
    def of(cls, source: DecisionSource, category_id: str, category_name: str) -> "CategoryDecision":
        """Build a decision that applies a category."""
        return cls(source=source, category_id=category_id, category_name=category_name)

    @property
    def is_skip(self) -> bool:
        """Whether no category should be applied."""
        return self.source is DecisionSource.SKIP


class WebhookTransaction(BaseModel):
    """A single split inside a Firefly webhook payload."""

    transaction_journal_id: str | int | None = None
    type: str = ""
    description: str = ""
    destination_name: str | None = None
    category_id: str | int | None = None
    category_name: str | None = None
    amount: str = "0"
    tags: list[str] = Field(default_factory=list)


class WebhookContent(BaseModel):
    """The transaction group carried by a Firefly webhook."""

    id: str | int | None = None
    transactions: list[WebhookTransaction] = Field(default_factory=list)


class WebhookPayload(BaseModel):
    """Firefly III webhook payload (STORE_TRANSACTION / TRANSACTIONS)."""

    trigger: str | None = None
    response: str | None = None
    content: WebhookContent | None = None


class HealthStatus(BaseModel):
    """Health check response."""

    status: str
    pending_jobs: int
