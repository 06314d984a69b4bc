"""
Job queue Pydantic schemas.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field


class JobCreate(BaseModel):
    """Schema for creating a new job."""

    job_type: str = Field(..., description="Job type identifier")
    job_data: dict[str, Any] = Field(default_factory=dict, description="Job payload")
    scheduled_for: datetime | None = Field(
        default=None, description="Earliest time to run job (default: now)"
    )
    max_attempts: int | None = Field(
        default=None, ge=1, le=25, description="Attempts before permanent failure"
    )
    content_item_id: UUID | None = Field(
        default=None, description="Content item for publishing jobs"
    )
    dedupe_key: str | None = Field(default=None, description="Deduplication key")


class JobResponse(BaseModel):
    """Schema for job API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_type: str
    status: str
    scheduled_for: datetime
    attempts: int
    max_attempts: int
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    job_data: dict[str, Any]
    content_item_id: UUID | None = None
    dedupe_key: str | None = None
    retry_of_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class JobListResponse(BaseModel):
    """Schema for job list API response."""

    jobs: list[JobResponse]
    total: int
    limit: int
    offset: int


class JobStatsResponse(BaseModel):
    """Schema for job statistics."""

    total_jobs: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    queue_depth: int  # pending + running
    due_now: int
    failed_last_hour: int


class JobEnqueueResponse(BaseModel):
    """Schema for job enqueue response."""

    job_id: UUID
    status: str
    scheduled_for: datetime
    deduplicated: bool = Field(
        default=False, description="Whether an existing job was returned"
    )


class JobRetryResponse(BaseModel):
    """A failed job is never revived; retrying enqueues a fresh copy."""

    job_id: UUID
    retry_of_id: UUID
    status: str


JobRunOutcome = Literal["completed", "retrying", "failed"]


class JobRunResult(BaseModel):
    """What one poller cycle did with one claimed job."""

    id: UUID
    job_type: str
    outcome: JobRunOutcome
    attempts: int
    error: str | None = None
    next_run_at: datetime | None = None


class CycleSummary(BaseModel):
    """Structured report of a single poller cycle."""

    processed_count: int
    skipped_count: int = 0
    reclaimed_count: int = 0
    results: list[JobRunResult] = Field(default_factory=list)

    @computed_field
    @property
    def completed_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == "completed")

    @computed_field
    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == "failed")

