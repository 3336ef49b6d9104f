"""FastAPI dependencies for DI.

The stores and clients are built once by the application lifespan and kept on ``app.state``; these helpers
hand them to the endpoints, which keeps routes testable with a dedicated app instance.
"""

from fastapi import Request

from ai_categorize.services.queue_store import JobQueueStore


def get_queue(request: Request) -> JobQueueStore:
    """Provide the job queue store for dependency injection."""
    return request.app.state.queue
