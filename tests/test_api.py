"""API integration tests for the Firefly AI categorizer."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ai_categorize.core.models import JobState
from ai_categorize.core.settings import Settings
from ai_categorize.main import create_app

HTTP_200_OK = 200
HTTP_202_ACCEPTED = 202
HTTP_400_BAD_REQUEST = 400


def webhook_payload(**overrides: object) -> dict:
    """Build a valid Firefly STORE_TRANSACTION payload, with optional split overrides."""
    split = {
        "transaction_journal_id": "901",
        "type": "withdrawal",
        "description": "Weekly shop",
        "destination_name": "Corner Shop",
        "category_id": None,
        "category_name": None,
        "amount": "42.10",
        "tags": ["card"],
    }
    split.update(overrides)
    return {"trigger": "STORE_TRANSACTION", "response": "TRANSACTIONS", "content": {"id": 900, "transactions": [split]}}


def payload_without(field: str) -> dict:
    """Build a valid payload whose split omits ``field`` entirely."""
    payload = webhook_payload()
    del payload["content"]["transactions"][0][field]
    return payload


@pytest.fixture
def client(tmp_path: Path):
    """Run the app against a temporary database with the background worker disabled."""
    settings = Settings(
        firefly_url="https://firefly.example",
        firefly_personal_token="token",
        groq_api_key="key",
        database_url=f"sqlite:///{tmp_path / 'cache.db'}",
        worker_enabled=False,
    )
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    """Test the /health endpoint returns status ok and the pending count."""
    response = client.get("/health")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"status": "ok", "pending_jobs": 0}:
        msg = f"Expected response {{'status': 'ok', 'pending_jobs': 0}}, got {response.json()}"
        raise AssertionError(msg)


def test_scalar_docs(client: TestClient) -> None:
    """Test the /scalar endpoint returns the API reference page."""
    response = client.get("/scalar")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if "openapi" not in response.text:
        msg = "Expected 'openapi' in response text"
        raise AssertionError(msg)


def test_webhook_enqueues_transaction(client: TestClient) -> None:
    """A valid webhook is accepted and shows up as a pending job."""
    response = client.post("/webhook", json=webhook_payload())
    if response.status_code != HTTP_202_ACCEPTED:
        msg = f"Expected status {HTTP_202_ACCEPTED}, got {response.status_code}"
        raise AssertionError(msg)
    body = response.json()
    if body.get("status") != "accepted" or not body.get("job_id"):
        msg = f"Expected an accepted job, got {body}"
        raise AssertionError(msg)

    job = client.app.state.queue.get(body["job_id"])
    if job is None or job.status is not JobState.PENDING:
        msg = f"Expected a pending job, got {job}"
        raise AssertionError(msg)
    if (job.transaction_id, job.merchant_name, job.amount, job.tags) != ("900", "Corner Shop", "42.10", ["card"]):
        msg = f"Unexpected job fields: {job}"
        raise AssertionError(msg)
    if client.get("/health").json()["pending_jobs"] != 1:
        msg = "Expected the health check to report 1 pending job"
        raise AssertionError(msg)


@pytest.mark.parametrize(
    ("payload", "reason"),
    [
        ({**webhook_payload(), "trigger": "UPDATE_TRANSACTION"}, "Trigger is not STORE_TRANSACTION"),
        ({**webhook_payload(), "response": "ACCOUNTS"}, "Response is not TRANSACTIONS"),
        ({**webhook_payload(), "content": {"transactions": []}}, "Missing content.id"),
        ({**webhook_payload(), "content": {"id": 900, "transactions": []}}, "No transactions in payload"),
        (webhook_payload(type="deposit"), "Transaction type is not withdrawal"),
        (webhook_payload(category_id="4"), "Transaction already has a category"),
        (payload_without("category_id"), "Transaction already has a category"),
        (webhook_payload(destination_name=""), "Missing destination_name"),
    ],
)
def test_webhook_rejects_invalid_payloads(client: TestClient, payload: dict, reason: str) -> None:
    """Invalid payloads are rejected with their reason and nothing is queued."""
    response = client.post("/webhook", json=payload)
    if response.status_code != HTTP_400_BAD_REQUEST:
        msg = f"Expected status {HTTP_400_BAD_REQUEST}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"error": reason}:
        msg = f"Expected reason {reason!r}, got {response.json()}"
        raise AssertionError(msg)
    if client.app.state.queue.pending_count() != 0:
        msg = "Rejected payloads must not be queued"
        raise AssertionError(msg)
