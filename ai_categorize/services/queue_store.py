"""Durable FIFO job queue persisted with SQLAlchemy.

Jobs move pending -> processing -> completed, or back to pending / failed when processing raises.
A claim is a conditional update on the job's status, so two claimers can never both win the same
job, and jobs left in processing by a crashed process are returned to pending when the store starts.
"""

import threading

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, sessionmaker

from ai_categorize.core.db import JobRecord
from ai_categorize.core.models import Job, JobState
from ai_categorize.core.utils import get_logger, unique_tags, utcnow_iso

logger = get_logger("ai-categorize.queue")


class JobQueueStore:
    """Persistent queue of categorization jobs with retry bookkeeping."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        """Bind the store to a session factory and recover jobs stuck in processing."""
        self.Session = session_factory
        self._claim_lock = threading.Lock()
        logger.info("Initializing job queue")
        self.recovered = self.recover_stuck_jobs()
        logger.info(f"Queue initialized: {self.pending_count()} pending jobs")

    def recover_stuck_jobs(self) -> int:
        """Reset every job left in processing back to pending and return how many were reset."""
        with self.Session() as session:
            result = session.execute(
                update(JobRecord)
                .where(JobRecord.status == JobState.PROCESSING.value)
                .values(status=JobState.PENDING.value, updated_at=utcnow_iso())
                .execution_options(synchronize_session=False)
            )
            session.commit()
            count = result.rowcount
        if count > 0:
            logger.warning(f"Reset {count} stuck jobs to pending")
        return count

    def enqueue(
        self, transaction_id: str, merchant_name: str, description: str, amount: str, tags: list[str]
    ) -> int:
        """Persist a new pending job and return its id."""
        now = utcnow_iso()
        record = JobRecord(
            transaction_id=transaction_id,
            merchant_name=merchant_name,
            description=description,
            amount=amount,
            tags=unique_tags(tags),
            status=JobState.PENDING.value,
            attempts=0,
            created_at=now,
            updated_at=now,
        )
        with self.Session() as session:
            session.add(record)
            session.commit()
            job_id = record.id
        logger.info(f"[job {job_id}] Job enqueued: transaction={transaction_id}, merchant='{merchant_name}'")
        return job_id

    def claim_next(self) -> Job | None:
        """Claim the oldest pending job, marking it processing and counting the attempt."""
        with self._claim_lock, self.Session() as session:
            while True:
                job_id = session.execute(
                    select(JobRecord.id)
                    .where(JobRecord.status == JobState.PENDING.value)
                    .order_by(JobRecord.id)
                    .limit(1)
                ).scalar_one_or_none()
                if job_id is None:
                    return None
                result = session.execute(
                    update(JobRecord)
                    .where(JobRecord.id == job_id, JobRecord.status == JobState.PENDING.value)
                    .values(
                        status=JobState.PROCESSING.value,
                        attempts=JobRecord.attempts + 1,
                        updated_at=utcnow_iso(),
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    job = Job.model_validate(session.get(JobRecord, job_id, populate_existing=True))
                    session.commit()
                    logger.debug(f"[job {job.id}] Job claimed (attempt {job.attempts})")
                    return job
                # Another consumer claimed it between the select and the update.
                session.rollback()

    def complete(self, job_id: int) -> None:
        """Mark a processing job as completed; unknown or terminal jobs are left untouched."""
        with self.Session() as session:
            result = session.execute(
                update(JobRecord)
                .where(JobRecord.id == job_id, JobRecord.status == JobState.PROCESSING.value)
                .values(status=JobState.COMPLETED.value, updated_at=utcnow_iso())
                .execution_options(synchronize_session=False)
            )
            session.commit()
            changed = result.rowcount
        if changed:
            logger.info(f"[job {job_id}] Job completed")
        else:
            logger.debug(f"[job {job_id}] Complete ignored: job is missing or not processing")

    def fail(self, job_id: int, error: str, max_retries: int = 3) -> JobState | None:
        """Record a failed attempt, re-queueing the job until ``max_retries`` attempts are used up.

        Only processing jobs are touched; unknown or terminal jobs return None.
        """
        with self.Session() as session:
            record = session.get(JobRecord, job_id)
            if record is None:
                logger.warning(f"[job {job_id}] Fail ignored: job not found")
                return None
            if record.status != JobState.PROCESSING.value:
                logger.warning(f"[job {job_id}] Fail ignored: job is {record.status}, not processing")
                return None
            attempts = record.attempts
            state = JobState.PENDING if attempts < max_retries else JobState.FAILED
            record.status = state.value
            record.error = error
            record.updated_at = utcnow_iso()
            session.commit()
        if state is JobState.PENDING:
            logger.warning(f"[job {job_id}] Job failed, will retry ({attempts}/{max_retries}): {error}")
        else:
            logger.error(f"[job {job_id}] Job failed permanently after {attempts} attempts: {error}")
        return state

    def get(self, job_id: int) -> Job | None:
        """Return a job by id, or None."""
        with self.Session() as session:
            record = session.get(JobRecord, job_id)
            return Job.model_validate(record) if record else None

    def pending_count(self) -> int:
        """Count jobs waiting to be claimed."""
        with self.Session() as session:
            return session.execute(
                select(func.count()).select_from(JobRecord).where(JobRecord.status == JobState.PENDING.value)
            ).scalar_one()
