from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import and_, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from publisphere.config.logging import get_logger
from publisphere.config.settings import Settings, SettingsDep
from publisphere.infra.database import get_session
from publisphere.v1.core.exceptions import create_success_response
from publisphere.v1.infra.jobs.models import Job, JobStatus

logger = get_logger(__name__)
router = APIRouter()


class DatabaseHealth(BaseModel):
    """Database health status."""

    connected: bool
    response_time_ms: float | None = None
    error: str | None = None


class QueueHealth(BaseModel):
    """Job queue health status."""

    pending: int = 0
    running: int = 0
    stale_running: int = 0
    failed_last_hour: int = 0


class HealthResponse(BaseModel):
    """Health response with database and queue status."""

    ok: bool
    version: str
    environment: str
    timestamp: str
    database: DatabaseHealth
    queue: QueueHealth | None = None


@router.get("/healthz", response_model=dict)
async def health_check(
    settings: Settings = SettingsDep, session: AsyncSession = Depends(get_session)
):
    """Health check endpoint with database and job queue status."""

    timestamp = datetime.now(UTC).isoformat()

    db_health = await _check_database_health(session)

    # Queue health is informational; only the database decides overall health
    queue_health = None
    if db_health.connected:
        try:
            queue_health = await _check_queue_health(session, settings)
        except Exception as e:
            logger.warning("Queue health check failed", error=str(e))

    health = HealthResponse(
        ok=db_health.connected,
        version=settings.version,
        environment=settings.environment,
        timestamp=timestamp,
        database=db_health,
        queue=queue_health,
    )

    return create_success_response(data=health.model_dump())


async def _check_database_health(session: AsyncSession) -> DatabaseHealth:
    """Check database connectivity and response time."""
    start_time = datetime.now(UTC)

    try:
        await session.execute(text("SELECT 1"))

        end_time = datetime.now(UTC)
        response_time_ms = (end_time - start_time).total_seconds() * 1000

        return DatabaseHealth(
            connected=True, response_time_ms=round(response_time_ms, 2)
        )

    except Exception as e:
        await session.rollback()
        return DatabaseHealth(connected=False, error=str(e))


async def _check_queue_health(session: AsyncSession, settings: Settings) -> QueueHealth:
    """Count pending, running, stale and recently failed jobs."""
    now = datetime.now(UTC)

    status_result = await session.execute(
        select(Job.status, func.count(Job.id))
        .where(Job.status.in_([JobStatus.PENDING.value, JobStatus.RUNNING.value]))
        .group_by(Job.status)
    )
    by_status = dict(status_result.all())

    stale_cutoff = now - timedelta(seconds=settings.job_stale_after_s)
    stale_running = (
        await session.execute(
            select(func.count(Job.id)).where(
                and_(
                    Job.status == JobStatus.RUNNING.value,
                    Job.started_at < stale_cutoff,
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

    return QueueHealth(
        pending=by_status.get(JobStatus.PENDING.value, 0),
        running=by_status.get(JobStatus.RUNNING.value, 0),
        stale_running=stale_running,
        failed_last_hour=failed_last_hour,
    )
