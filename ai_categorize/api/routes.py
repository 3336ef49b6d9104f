"""FastAPI endpoints for the Firefly AI categorizer.

This module defines the webhook that receives new Firefly III transactions and queues them for
categorization, and the health check that reports how many jobs are waiting.
"""

import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ai_categorize.api.dependencies import get_queue
from ai_categorize.core.models import HealthStatus, WebhookPayload
from ai_categorize.core.utils import get_logger
from ai_categorize.services.queue_store import JobQueueStore

router = APIRouter()
logger = get_logger("ai-categorize.api")


def validate_payload(payload: WebhookPayload) -> str | None:
    """Return the reason a webhook payload is rejected, or None when it should be queued."""
    if payload.trigger != "STORE_TRANSACTION":
        return "Trigger is not STORE_TRANSACTION"
    if payload.response != "TRANSACTIONS":
        return "Response is not TRANSACTIONS"
    if payload.content is None or payload.content.id in (None, ""):
        return "Missing content.id"
    if not payload.content.transactions:
        return "No transactions in payload"
    transaction = payload.content.transactions[0]
    if transaction.type != "withdrawal":
        return "Transaction type is not withdrawal"
    if "category_id" not in transaction.model_fields_set or transaction.category_id is not None:
        return "Transaction already has a category"
    if not transaction.destination_name:
        return "Missing destination_name"
    return None


@router.post(
    "/webhook",
    status_code=202,
    summary="Queue a new Firefly III transaction for categorization",
    description=(
        "Receives a Firefly III `STORE_TRANSACTION` webhook. Uncategorized withdrawals are queued for "
        "categorization; any other payload is rejected.\n\n"
        "**Response:**\n"
        "- 202 Accepted: `{ 'status': 'accepted', 'job_id': <int> }`.\n"
        "- 400 Bad Request: with the reason the payload was rejected."
    ),
    responses={
        202: {
            "description": "Transaction queued.",
            "content": {
                "application/json": {
                    "example": {
                        "status": "accepted",
                        "job_id": 42,
                        "message": "Transaction queued for categorization",
                    }
                }
            },
        },
        400: {
            "description": "Payload rejected.",
            "content": {"application/json": {"example": {"error": "Transaction already has a category"}}},
        },
    },
)
async def webhook(payload: WebhookPayload, queue: JobQueueStore = Depends(get_queue)) -> JSONResponse:
    """Validate a Firefly webhook and enqueue its transaction."""
    request_id = uuid.uuid4().hex[:8]
    reason = validate_payload(payload)
    if reason:
        logger.warning(f"[req {request_id}] Invalid webhook payload: {reason}")
        return JSONResponse({"error": reason}, status_code=400)

    transaction = payload.content.transactions[0]
    transaction_id = str(payload.content.id)
    logger.info(
        f"[req {request_id}] Received transaction {transaction_id}: merchant='{transaction.destination_name}', "
        f"description='{transaction.description}', amount={transaction.amount}"
    )
    job_id = queue.enqueue(
        transaction_id,
        transaction.destination_name,
        transaction.description,
        transaction.amount,
        transaction.tags,
    )
    return JSONResponse(
        {"status": "accepted", "job_id": job_id, "message": "Transaction queued for categorization"},
        status_code=202,
    )


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health check",
    description="Returns status ok and the number of jobs waiting in the queue.",
    responses={
        200: {
            "description": "API is healthy.",
            "content": {"application/json": {"example": {"status": "ok", "pending_jobs": 0}}},
        }
    },
)
async def health(queue: JobQueueStore = Depends(get_queue)) -> HealthStatus:
    """Health check endpoint."""
    return HealthStatus(status="ok", pending_jobs=queue.pending_count())
