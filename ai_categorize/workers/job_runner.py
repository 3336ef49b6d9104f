"""Background worker that drains the categorization queue."""

import asyncio

from sqlalchemy.exc import SQLAlchemyError

from ai_categorize.core.models import CategoryDecision, Job
from ai_categorize.core.protocols import TransactionUpdater
from ai_categorize.core.utils import get_logger, with_tag
from ai_categorize.services.queue_store import JobQueueStore
from ai_categorize.workers.decision import DecisionEngine

logger = get_logger("ai-categorize.worker")


class WorkerLoop:
    """Claims one job at a time, decides its category and records the outcome.

    ``tick`` processes at most one job and returns how long to wait before the next tick: the drain
    delay after a claimed job so a backlog empties quickly, the poll interval after an empty claim.
    Storage errors are not turned into job failures; they propagate and stop the loop.
    """

    def __init__(
        self,
        queue: JobQueueStore,
        engine: DecisionEngine,
        updater: TransactionUpdater,
        completion_tag: str = "AI categorized",
        max_retries: int = 3,
        poll_interval: float = 1.0,
        drain_delay: float = 0.0,
    ) -> None:
        """Wire the loop to the queue, the decision engine and the transaction updater."""
        self.queue = queue
        self.engine = engine
        self.updater = updater
        self.completion_tag = completion_tag
        self.max_retries = max_retries
        self.poll_interval = poll_interval
        self.drain_delay = drain_delay
        self.busy = False

    async def process_job(self, job: Job) -> CategoryDecision:
        """Decide the category for a claimed job and apply it unless the decision is a skip."""
        logger.info(f"[job {job.id}] Processing transaction {job.transaction_id} for '{job.merchant_name}'")
        decision = await self.engine.decide(job.merchant_name, job.description, job.amount)
        if decision.is_skip:
            logger.info(f"[job {job.id}] Skipping categorization: {decision.reason}")
            return decision

        tags = with_tag(job.tags, self.completion_tag)
        await self.updater.apply_category(job.transaction_id, decision.category_id, tags)
        logger.info(f"[job {job.id}] Transaction categorized as '{decision.category_name}' ({decision.source.value})")
        return decision

    async def tick(self) -> float:
        """Process at most one job and return the delay before the next tick."""
        job = self.queue.claim_next()
        if job is None:
            return self.poll_interval

        self.busy = True
        try:
            await self.process_job(job)
        except SQLAlchemyError:
            logger.critical(f"[job {job.id}] Storage failure while processing job")
            raise
        except Exception as exc:
            logger.exception(f"[job {job.id}] Error processing job")
            self.queue.fail(job.id, str(exc) or type(exc).__name__, self.max_retries)
        else:
            self.queue.complete(job.id)
        finally:
            self.busy = False
        return self.drain_delay

    async def run(self, stop: asyncio.Event) -> None:
        """Tick until ``stop`` is set."""
        logger.info(f"Starting background worker (poll interval {self.poll_interval}s)")
        while not stop.is_set():
            delay = await self.tick()
            if delay <= 0:
                await asyncio.sleep(0)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except TimeoutError:
                pass
        logger.info("Background worker stopped")
