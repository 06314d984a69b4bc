"""
Job queue API endpoints.

``POST /jobs/process`` is the cron trigger: it runs one poller cycle and
returns its summary. The remaining endpoints back the job log and admin
tooling.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from publisphere.config.settings import Settings, SettingsDep
from publisphere.infra.database import get_session
from publisphere.v1.core.exceptions import create_success_response
from publisphere.v1.core.security import ServiceTokenDep
from publisphere.v1.infra.jobs.models import JobStatus
from publisphere.v1.infra.jobs.poller import JobPoller
from publisphere.v1.infra.jobs.runtime import get_poller
from publisphere.v1.infra.jobs.schemas import JobCreate, JobListResponse, JobResponse
from publisphere.v1.infra.jobs.service import JobService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[ServiceTokenDep])


@router.post("/process", response_model=dict)
async def process_jobs(
    request: Request,
    poller: JobPoller = Depends(get_poller),
) -> dict[str, Any]:
    """Run one poller cycle over the due jobs."""

    summary = await poller.run_cycle()

    return create_success_response(
        data=summary.model_dump(),
        message=f"Processed {summary.processed_count} jobs",
        request_id=getattr(request.state, "request_id", None),
    )


@router.post("", response_model=dict)
async def enqueue_job(
    job_create: JobCreate,
    request: Request,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Enqueue a new background job."""

    request_id = getattr(request.state, "request_id", None)
    job_service = JobService(settings)
    result = await job_service.enqueue_job(session, job_create, request_id=request_id)

    logger.info(
        "Job enqueued via API",
        extra={
            "job_id": str(result.job_id),
            "job_type": job_create.job_type,
            "deduplicated": result.deduplicated,
        },
    )

    return create_success_response(data=result.model_dump(), request_id=request_id)


@router.get("", response_model=dict)
async def list_jobs(
    status: list[JobStatus] | None = Query(
        default=None, description="Filter by status"
    ),
    job_type: str | None = Query(default=None, description="Filter by job type"),
    limit: int = Query(default=50, ge=1, le=1000, description="Maximum results"),
    offset: int = Query(default=0, ge=0, description="Results offset"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """List jobs with filtering and pagination, newest first."""

    job_service = JobService(settings)
    jobs, total = await job_service.list_jobs(
        session,
        status=[s.value for s in status] if status else None,
        job_type=job_type,
        limit=limit,
        offset=offset,
    )

    response_data = JobListResponse(
        jobs=[JobResponse.model_validate(job) for job in jobs],
        total=total,
        limit=limit,
        offset=offset,
    )

    return create_success_response(data=response_data.model_dump())


@router.get("/stats/overview", response_model=dict)
async def get_job_stats(
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Get queue statistics."""

    job_service = JobService(settings)
    stats = await job_service.get_job_stats(session)

    return create_success_response(data=stats.model_dump())


@router.post("/maintenance/cleanup", response_model=dict)
async def cleanup_jobs(
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Delete finished jobs older than the retention window."""

    job_service = JobService(settings)
    deleted_count = await job_service.cleanup_old_jobs(session)

    return create_success_response(
        data={
            "deleted_count": deleted_count,
            "retention_days": settings.job_cleanup_after_days,
        }
    )


@router.get("/{job_id}", response_model=dict)
async def get_job(
    job_id: UUID,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Get a specific job by ID."""

    job_service = JobService(settings)
    job = await job_service.get_job(session, job_id)

    return create_success_response(data=JobResponse.model_validate(job).model_dump())


@router.post("/{job_id}/retry", response_model=dict)
async def retry_job(
    job_id: UUID,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Retry a failed job by enqueueing a fresh copy of it."""

    job_service = JobService(settings)
    result = await job_service.retry_job(session, job_id)

    logger.info(
        "Job retried via API",
        extra={"job_id": str(result.job_id), "retry_of_id": str(job_id)},
    )

    return create_success_response(data=result.model_dump())


@router.delete("/{job_id}", response_model=dict)
async def delete_job(
    job_id: UUID,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Delete a completed or failed job from the job log."""

    job_service = JobService(settings)
    await job_service.delete_job(session, job_id)

    logger.info("Job deleted via API", extra={"job_id": str(job_id)})

    return create_success_response(data={"success": True, "job_id": str(job_id)})
