"""
Minimal client and content tables read and written by the publishing jobs.

The full content schema belongs to the dashboard; only the columns the job
handlers touch are mapped here.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from publisphere.infra.database import Base, UTCDateTime


class ContentStatus(str, Enum):
    """Content item status enumeration."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class Client(Base):
    """An agency's client; owner of content and recipient of reminders."""

    __tablename__ = "clients"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)


class ContentItem(Base):
    """An article or Google Business Profile post awaiting publication."""

    __tablename__ = "content_items"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    client_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    content_type: Mapped[str] = mapped_column(
        Text, nullable=False, default="article", comment="article | gmb_post"
    )
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=ContentStatus.DRAFT.value
    )
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    external_post_id: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Post id assigned by the publishing target"
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)
    )

    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED.value
