"""
Job queue models.
"""

from datetime import UTC, datetime
from enum import Enum, StrEnum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from publisphere.infra.database import Base, UTCDateTime
from publisphere.v1.content import models as content_models  # noqa: F401


class JobStatus(str, Enum):
    """Job status enumeration."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (JobStatus.COMPLETED.value, JobStatus.FAILED.value)


class JobType(StrEnum):
    """Closed set of job types; each member must have a registered handler."""

    PUBLISH_ARTICLE = "publish_article"
    PUBLISH_GMB = "publish_gmb"
    SEND_EMAIL = "send_email"
    GENERATE_CONTENT = "generate_content"
    PROCESS_EMBEDDINGS = "process_embeddings"


class Job(Base):
    """
    One deferred unit of work with its scheduling and retry metadata.

    Only the job store changes status, attempts and timestamps; handlers
    read job_data and report an outcome.
    """

    __tablename__ = "jobs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    job_type: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Job type identifier"
    )
    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=JobStatus.PENDING.value,
        comment="Job status: pending|running|completed|failed",
    )
    scheduled_for: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Earliest instant the job may be claimed",
    )
    attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Claim attempts so far"
    )
    max_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=3, comment="Attempts before permanent failure"
    )
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    error_message: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Last failure reason"
    )
    job_data: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict, comment="Handler-specific payload"
    )
    content_item_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("content_items.id", ondelete="SET NULL"),
        nullable=True,
        comment="Content item for publishing job types",
    )

    # Enqueue bookkeeping
    dedupe_key: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Deduplication key for idempotent enqueue"
    )
    retry_of_id: Mapped[UUID | None] = mapped_column(
        Uuid, nullable=True, comment="Failed job this job re-runs"
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="jobs_status_check",
        ),
        CheckConstraint("attempts <= max_attempts", name="jobs_attempts_check"),
        CheckConstraint("max_attempts >= 1", name="jobs_max_attempts_check"),
        Index("ix_jobs_status_scheduled_for", "status", "scheduled_for"),
        Index("ix_jobs_dedupe_key", "dedupe_key"),
    )

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Job {self.id} {self.job_type} {self.status} "
            f"{self.attempts}/{self.max_attempts}>"
        )
