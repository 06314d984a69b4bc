"""create clients, content_items and jobs tables

Revision ID: 3b7c1e9a4d20
Revises:
Create Date: 2026-10-18 09:12:40.118532

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b7c1e9a4d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "clients",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=True),
    )

    op.create_table(
        "content_items",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "client_id",
            sa.UUID(as_uuid=True),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "content_type",
            sa.Text,
            nullable=False,
            server_default="article",
            comment="article | gmb_post",
        ),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("status", sa.Text, nullable=False, server_default="draft"),
        sa.Column("published_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "external_post_id",
            sa.Text,
            nullable=True,
            comment="Post id assigned by the publishing target",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_content_items_client_id", "content_items", ["client_id"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("job_type", sa.Text, nullable=False, comment="Job type identifier"),
        sa.Column(
            "status",
            sa.Text,
            nullable=False,
            server_default="pending",
            comment="Job status: pending|running|completed|failed",
        ),
        sa.Column(
            "scheduled_for",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            comment="Earliest instant the job may be claimed",
        ),
        sa.Column(
            "attempts",
            sa.Integer,
            nullable=False,
            server_default="0",
            comment="Claim attempts so far",
        ),
        sa.Column(
            "max_attempts",
            sa.Integer,
            nullable=False,
            server_default="3",
            comment="Attempts before permanent failure",
        ),
        sa.Column("started_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True, comment="Last failure reason"),
        sa.Column(
            "job_data",
            sa.JSON,
            nullable=False,
            server_default=sa.text("'{}'"),
            comment="Handler-specific payload",
        ),
        sa.Column(
            "content_item_id",
            sa.UUID(as_uuid=True),
            sa.ForeignKey("content_items.id", ondelete="SET NULL"),
            nullable=True,
            comment="Content item for publishing job types",
        ),
        # Enqueue bookkeeping
        sa.Column(
            "dedupe_key",
            sa.Text,
            nullable=True,
            comment="Deduplication key for idempotent enqueue",
        ),
        sa.Column(
            "retry_of_id",
            sa.UUID(as_uuid=True),
            nullable=True,
            comment="Failed job this job re-runs",
        ),
        # Timestamps
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        # Constraints
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="jobs_status_check",
        ),
        sa.CheckConstraint("attempts <= max_attempts", name="jobs_attempts_check"),
        sa.CheckConstraint("max_attempts >= 1", name="jobs_max_attempts_check"),
    )

    op.create_index("ix_jobs_status_scheduled_for", "jobs", ["status", "scheduled_for"])
    op.create_index("ix_jobs_dedupe_key", "jobs", ["dedupe_key"])
    op.create_index("ix_jobs_created_at", "jobs", ["created_at"])

    # Poller hot path: due pending jobs ordered by scheduled_for
    op.create_index(
        "ix_jobs_pending_scheduled_for",
        "jobs",
        ["scheduled_for"],
        postgresql_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("jobs")
    op.drop_index("ix_content_items_client_id", table_name="content_items")
    op.drop_table("content_items")
    op.drop_table("clients")
