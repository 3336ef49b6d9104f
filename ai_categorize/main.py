"""Application factory for the Firefly AI categorizer API.

The lifespan builds the database engine, the job queue and merchant cache stores, the Firefly, SearXNG
and Groq collaborators, the decision engine and the background worker exactly once, keeps them on
``app.state`` and runs the worker as an asyncio task until shutdown.
"""

import asyncio
import signal
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from scalar_fastapi import get_scalar_api_reference

from ai_categorize.agents.category_agent import CategoryAgent
from ai_categorize.api.routes import router
from ai_categorize.core.db import get_engine, get_session_factory, init_db
from ai_categorize.core.settings import Settings, get_settings
from ai_categorize.core.utils import get_logger, setup_logging
from ai_categorize.services.cache_store import CacheStore
from ai_categorize.services.firefly import FireflyClient
from ai_categorize.services.queue_store import JobQueueStore
from ai_categorize.services.searxng import SearxngClient
from ai_categorize.workers.decision import DecisionEngine
from ai_categorize.workers.job_runner import WorkerLoop

logger = get_logger()


def _on_worker_exit(task: asyncio.Task) -> None:
    """Shut the process down when the worker dies on a storage error."""
    if task.cancelled() or task.exception() is None:
        return
    logger.critical("Background worker stopped on an unrecoverable error", exc_info=task.exception())
    signal.raise_signal(signal.SIGTERM)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application; settings are read from the environment at startup when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the stores, clients and worker, and stop them again on shutdown."""
        app_settings = settings or get_settings()
        setup_logging(app_settings.log_level, app_settings.log_file)
        engine = get_engine(app_settings.database_url)
        init_db(engine)
        session_factory = get_session_factory(engine)

        queue = JobQueueStore(session_factory)
        cache = CacheStore(session_factory)
        firefly = FireflyClient.from_settings(app_settings)
        searxng = SearxngClient.from_settings(app_settings)
        agent = CategoryAgent.from_settings(app_settings)
        decision_engine = DecisionEngine(
            cache, firefly, firefly, agent, searxng, history_limit=app_settings.firefly_history_limit
        )
        worker = WorkerLoop(
            queue,
            decision_engine,
            firefly,
            completion_tag=app_settings.firefly_tag,
            max_retries=app_settings.max_retries,
            poll_interval=app_settings.worker_poll_interval,
            drain_delay=app_settings.worker_drain_delay,
        )
        app.state.settings = app_settings
        app.state.queue = queue
        app.state.cache = cache
        app.state.worker = worker

        stop = asyncio.Event()
        task = None
        if app_settings.worker_enabled:
            task = asyncio.create_task(worker.run(stop), name="categorize-worker")
            task.add_done_callback(_on_worker_exit)
        logger.info(
            f"Firefly AI categorizer started: firefly={app_settings.firefly_url}, model={app_settings.llm_model}, "
            f"searxng={'enabled' if searxng.enabled else 'disabled'}, worker={'on' if task else 'off'}"
        )
        try:
            yield
        finally:
            stop.set()
            if task is not None:
                await asyncio.gather(task, return_exceptions=True)
            await firefly.aclose()
            await searxng.aclose()
            await agent.aclose()
            engine.dispose()

    app = FastAPI(
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        title="Firefly AI Categorize API",
        description="""
    Categorizes new Firefly III transactions in the background using a merchant cache, recent history and an LLM.

    **Endpoints:**
    - `POST /webhook`: Firefly III `STORE_TRANSACTION` webhook. Queues the transaction and returns a `job_id`.
    - `GET /health`: Health check with the number of pending jobs.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
        version="1.0.0",
    )
    app.include_router(router)

    @app.get("/scalar", include_in_schema=False)
    async def scalar_docs() -> HTMLResponse:
        """Return Scalar API reference."""
        return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)

    return app


app = create_app()
