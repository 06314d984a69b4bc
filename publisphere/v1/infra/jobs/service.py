"""
Job service for enqueueing and administering background jobs.

Scheduling transitions belong to the JobStore; this service only creates
jobs, reads them and removes finished ones.
"""

import hashlib
import logging
import uuid
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import and_, delete, func, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from publisphere.config.settings import Settings
from publisphere.v1.core.clock import Clock, SystemClock
from publisphere.v1.core.exceptions import (
    ConflictStateError,
    NotFoundError,
    ValidationError,
)
from publisphere.v1.infra.jobs.models import TERMINAL_STATUSES, Job, JobStatus, JobType
from publisphere.v1.infra.jobs.schemas import (
    JobCreate,
    JobEnqueueResponse,
    JobRetryResponse,
    JobStatsResponse,
)

logger = logging.getLogger(__name__)

# Jobs that make a new enqueue with the same dedupe key redundant
DEDUPE_STATUSES = (
    JobStatus.PENDING.value,
    JobStatus.RUNNING.value,
    JobStatus.COMPLETED.value,
)


class JobService:
    """Service for managing background jobs."""

    def __init__(self, settings: Settings, clock: Clock | None = None):
        self.settings = settings
        self.clock = clock or SystemClock()

    async def enqueue_job(
        self,
        session: AsyncSession,
        job_create: JobCreate,
        request_id: str | None = None,
    ) -> JobEnqueueResponse:
        """
        Enqueue a new job with deduplication support.

        Args:
            session: Database session
            job_create: Job creation parameters
            request_id: Request ID for tracing

        Returns:
            Job enqueue response with job_id and deduplication info
        """
        if job_create.job_type not in {t.value for t in JobType}:
            raise ValidationError(
                f"Unknown job type: {job_create.job_type}",
                details={"allowed": [t.value for t in JobType]},
            )

        if job_create.dedupe_key:
            existing_job = await self._find_existing_job(session, job_create.dedupe_key)
            if existing_job:
                logger.info(
                    "Job deduplicated",
                    extra={
                        "job_id": str(existing_job.id),
                        "dedupe_key": job_create.dedupe_key,
                        "job_type": job_create.job_type,
                    },
                )
                return JobEnqueueResponse(
                    job_id=existing_job.id,
                    status=existing_job.status,
                    scheduled_for=existing_job.scheduled_for,
                    deduplicated=True,
                )

        now = self.clock.now()
        job = Job(
            id=uuid.uuid4(),
            job_type=job_create.job_type,
            status=JobStatus.PENDING.value,
            job_data=job_create.job_data,
            scheduled_for=job_create.scheduled_for or now,
            attempts=0,
            max_attempts=job_create.max_attempts
            or self.settings.job_default_max_attempts,
            content_item_id=job_create.content_item_id,
            dedupe_key=job_create.dedupe_key,
            created_at=now,
            updated_at=now,
        )
        session.add(job)
        await session.commit()

        logger.info(
            "Job enqueued",
            extra={
                "job_id": str(job.id),
                "job_type": job.job_type,
                "scheduled_for": job.scheduled_for.isoformat(),
                "dedupe_key": job_create.dedupe_key,
                "request_id": request_id,
            },
        )

        return JobEnqueueResponse(
            job_id=job.id, status=job.status, scheduled_for=job.scheduled_for
        )

    async def _find_existing_job(
        self, session: AsyncSession, dedupe_key: str
    ) -> Job | None:
        """Find an active or completed job with the same dedupe key."""
        result = await session.execute(
            select(Job)
            .where(and_(Job.dedupe_key == dedupe_key, Job.status.in_(DEDUPE_STATUSES)))
            .order_by(Job.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_job(self, session: AsyncSession, job_id: UUID) -> Job:
        job = await session.get(Job, job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    async def list_jobs(
        self,
        session: AsyncSession,
        status: list[str] | None = None,
        job_type: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Job], int]:
        """Job log view: newest first, optionally filtered by status and type."""
        conditions = []
        if status:
            conditions.append(Job.status.in_(status))
        if job_type:
            conditions.append(Job.job_type == job_type)
        where = and_(true(), *conditions)

        total = (
            await session.execute(select(func.count(Job.id)).where(where))
        ).scalar() or 0
        result = await session.execute(
            select(Job)
            .where(where)
            .order_by(Job.created_at.desc(), Job.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def get_job_stats(self, session: AsyncSession) -> JobStatsResponse:
        """Get job statistics across the whole queue."""
        now = self.clock.now()

        total_jobs = (await session.execute(select(func.count(Job.id)))).scalar() or 0

        status_result = await session.execute(
            select(Job.status, func.count(Job.id)).group_by(Job.status)
        )
        by_status = dict(status_result.all())

        type_result = await session.execute(
            select(Job.job_type, func.count(Job.id)).group_by(Job.job_type)
        )
        by_type = dict(type_result.all())

        queue_depth = by_status.get(JobStatus.PENDING.value, 0) + by_status.get(
            JobStatus.RUNNING.value, 0
        )

        due_now = (
            await session.execute(
                select(func.count(Job.id)).where(
                    and_(
                        Job.status == JobStatus.PENDING.value,
                        Job.scheduled_for <= now,
                        Job.attempts < Job.max_attempts,
                    )
                )
            )
        ).scalar() or 0

        failed_last_hour = (
            await session.execute(
                select(func.count(Job.id)).where(
                    and_(
                        Job.status == JobStatus.FAILED.value,
                        Job.updated_at >= now - timedelta(hours=1),
                    )
                )
            )
        ).scalar() or 0

        return JobStatsResponse(
            total_jobs=total_jobs,
            by_status=by_status,
            by_type=by_type,
            queue_depth=queue_depth,
            due_now=due_now,
            failed_last_hour=failed_last_hour,
        )

    async def retry_job(self, session: AsyncSession, job_id: UUID) -> JobRetryResponse:
        """
        Re-run a failed job as a new pending job.

        The failed record stays as it is for the job log; the copy points
        back at it through ``retry_of_id`` and starts with zero attempts.
        """
        failed_job = await self.get_job(session, job_id)
        if failed_job.status != JobStatus.FAILED.value:
            raise ConflictStateError(
                f"Only failed jobs can be retried; job {job_id} is {failed_job.status}",
                details={"status": failed_job.status},
            )

        now = self.clock.now()
        job = Job(
            id=uuid.uuid4(),
            job_type=failed_job.job_type,
            status=JobStatus.PENDING.value,
            job_data=dict(failed_job.job_data or {}),
            scheduled_for=now,
            attempts=0,
            max_attempts=failed_job.max_attempts,
            content_item_id=failed_job.content_item_id,
            retry_of_id=failed_job.id,
            created_at=now,
            updated_at=now,
        )
        session.add(job)
        await session.commit()

        logger.info(
            "Job retried",
            extra={"job_id": str(job.id), "retry_of_id": str(failed_job.id)},
        )
        return JobRetryResponse(job_id=job.id, retry_of_id=failed_job.id, status=job.status)

    async def delete_job(self, session: AsyncSession, job_id: UUID) -> None:
        """Delete a finished job. Pending and running jobs belong to the poller."""
        job = await self.get_job(session, job_id)
        if not job.is_terminal():
            raise ConflictStateError(
                f"Cannot delete job {job_id} while it is {job.status}",
                details={"status": job.status},
            )

        result = await session.execute(
            delete(Job).where(and_(Job.id == job_id, Job.status.in_(TERMINAL_STATUSES))).execution_options(
                synchronize_session=False
            )
        )
        await session.commit()

        if result.rowcount == 0:
            raise ConflictStateError(f"Job {job_id} changed state before deletion")

        logger.info("Job deleted", extra={"job_id": str(job_id)})

    async def cleanup_old_jobs(self, session: AsyncSession) -> int:
        """Clean up finished jobs older than the retention window."""
        retention_days = self.settings.job_cleanup_after_days
        cutoff = self.clock.now() - timedelta(days=retention_days)

        result = await session.execute(
            delete(Job).where(
                and_(Job.status.in_(TERMINAL_STATUSES), Job.updated_at < cutoff)
            ).execution_options(synchronize_session=False)
        )
        deleted_count = result.rowcount
        await session.commit()

        if deleted_count > 0:
            logger.info(
                "Cleaned up old jobs",
                extra={
                    "deleted_count": deleted_count,
                    "retention_days": retention_days,
                },
            )

        return deleted_count

    def generate_dedupe_key(self, job_type: str, **params: Any) -> str:
        """Generate a deterministic deduplication key for a job."""
        key_data = f"{job_type}:{sorted(params.items())}"
        return hashlib.sha256(key_data.encode()).hexdigest()[:32]
