"""
SQL job store: the only component that writes scheduling state.

Every transition is a single conditional UPDATE guarded on the job's current
status (compare-and-swap). Pollers in different processes coordinate through
these guards alone; a guard that matches no row raises ConflictError and
leaves the record untouched.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from publisphere.v1.core.clock import Clock
from publisphere.v1.infra.jobs.errors import ConflictError
from publisphere.v1.infra.jobs.models import Job, JobStatus

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 2000


@dataclass
class ReclaimResult:
    """Stale running jobs handed back to the queue or given up on."""

    rescheduled: list[UUID] = field(default_factory=list)
    failed: list[UUID] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.rescheduled) + len(self.failed)


def _truncate(message: str | None) -> str:
    message = (message or "").strip() or "unknown error"
    return message[:MAX_ERROR_LENGTH]


class JobStore:
    """Durable job persistence with atomic, conflict-checked transitions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock):
        self.session_factory = session_factory
        self.clock = clock

    async def fetch_due(self, limit: int) -> list[Job]:
        """
        Snapshot of up to ``limit`` claimable jobs, oldest-due first.

        Does not claim anything; callers must still win ``mark_running``.
        """
        now = self.clock.now()
        async with self.session_factory() as session:
            result = await session.execute(
                select(Job)
                .where(
                    and_(
                        Job.status == JobStatus.PENDING.value,
                        Job.scheduled_for <= now,
                        Job.attempts < Job.max_attempts,
                    )
                )
                .order_by(Job.scheduled_for, Job.id)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def get(self, job_id: UUID) -> Job | None:
        async with self.session_factory() as session:
            return await session.get(Job, job_id)

    async def mark_running(self, job_id: UUID, attempts: int) -> Job:
        """
        Claim a pending job: ``pending -> running`` and ``attempts + 1``.

        ``attempts`` is the value the caller observed; a job that has moved
        on since (claimed, retried, reclaimed) no longer matches and the
        claim is rejected. Returns the job as claimed.
        """
        now = self.clock.now()
        async with self.session_factory() as session:
            result = await session.execute(
                update(Job)
                .where(
                    and_(
                        Job.id == job_id,
                        Job.status == JobStatus.PENDING.value,
                        Job.attempts == attempts,
                        Job.attempts < Job.max_attempts,
                    )
                )
                .values(
                    status=JobStatus.RUNNING.value,
                    started_at=now,
                    attempts=attempts + 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                raise ConflictError(job_id, JobStatus.PENDING.value, "mark_running")

            claimed = (
                await session.execute(select(Job).where(Job.id == job_id))
            ).scalar_one()
            await session.commit()
            return claimed

    async def mark_completed(self, job_id: UUID) -> None:
        now = self.clock.now()
        await self._transition(
            job_id,
            "mark_completed",
            status=JobStatus.COMPLETED.value,
            completed_at=now,
            error_message=None,
            updated_at=now,
        )

    async def mark_failed_permanently(self, job_id: UUID, error_message: str) -> None:
        now = self.clock.now()
        await self._transition(
            job_id,
            "mark_failed_permanently",
            status=JobStatus.FAILED.value,
            completed_at=now,
            error_message=_truncate(error_message),
            updated_at=now,
        )

    async def reschedule(
        self, job_id: UUID, next_time: datetime, error_message: str
    ) -> None:
        """Hand a running job back to the queue; attempts stay as claimed."""
        await self._transition(
            job_id,
            "reschedule",
            status=JobStatus.PENDING.value,
            scheduled_for=next_time,
            error_message=_truncate(error_message),
            updated_at=self.clock.now(),
        )

    async def reclaim_stale(self, stale_before: datetime) -> ReclaimResult:
        """
        Recover jobs left ``running`` by a poller that died mid-cycle.

        Jobs with attempts left become due immediately; exhausted ones fail.
        Two set-based UPDATEs, each carrying the staleness condition, so a
        job its owner finishes concurrently is not touched.
        """
        now = self.clock.now()
        reclaimed = ReclaimResult()
        stale = and_(
            Job.status == JobStatus.RUNNING.value,
            Job.started_at < stale_before,
        )

        async with self.session_factory() as session:
            failed = await session.execute(
                update(Job)
                .where(and_(stale, Job.attempts >= Job.max_attempts))
                .values(
                    status=JobStatus.FAILED.value,
                    completed_at=now,
                    error_message="stale: worker did not finish the final attempt",
                    updated_at=now,
                )
                .returning(Job.id)
                .execution_options(synchronize_session=False)
            )
            reclaimed.failed = sorted(failed.scalars().all())

            rescheduled = await session.execute(
                update(Job)
                .where(and_(stale, Job.attempts < Job.max_attempts))
                .values(
                    status=JobStatus.PENDING.value,
                    scheduled_for=now,
                    error_message="stale: reclaimed after worker stopped responding",
                    updated_at=now,
                )
                .returning(Job.id)
                .execution_options(synchronize_session=False)
            )
            reclaimed.rescheduled = sorted(rescheduled.scalars().all())

            await session.commit()

        if reclaimed.total:
            logger.warning(
                "Reclaimed stale running jobs",
                extra={
                    "rescheduled": [str(i) for i in reclaimed.rescheduled],
                    "failed": [str(i) for i in reclaimed.failed],
                    "stale_before": stale_before.isoformat(),
                },
            )
        return reclaimed

    async def _transition(self, job_id: UUID, operation: str, **values: Any) -> None:
        """Apply ``running -> *`` atomically or raise ConflictError."""
        async with self.session_factory() as session:
            result = await session.execute(
                update(Job)
                .where(and_(Job.id == job_id, Job.status == JobStatus.RUNNING.value))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                raise ConflictError(job_id, JobStatus.RUNNING.value, operation)
            await session.commit()
