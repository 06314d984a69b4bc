"""
Content repository used by the publishing job handlers.
"""

import logging
from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from publisphere.v1.content.models import Client, ContentItem, ContentStatus

logger = logging.getLogger(__name__)


class ContentRepository(Protocol):
    """Read and publish-marking access to content items."""

    async def get_content(self, content_id: UUID) -> ContentItem | None: ...

    async def mark_published(
        self,
        content_id: UUID,
        timestamp: datetime,
        external_post_id: str | None = None,
    ) -> bool: ...

    async def get_client_email(self, client_id: UUID) -> str | None: ...


class SqlContentRepository:
    """ContentRepository backed by the content_items and clients tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_content(self, content_id: UUID) -> ContentItem | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ContentItem).where(ContentItem.id == content_id)
            )
            return result.scalar_one_or_none()

    async def mark_published(
        self,
        content_id: UUID,
        timestamp: datetime,
        external_post_id: str | None = None,
    ) -> bool:
        """
        Mark a content item published.

        Conditional on the item not already being published, so a repeated
        call keeps the first published_at. Returns True if this call made
        the change.
        """
        async with self.session_factory() as session:
            result = await session.execute(
                update(ContentItem)
                .where(
                    ContentItem.id == content_id,
                    ContentItem.status != ContentStatus.PUBLISHED.value,
                )
                .values(
                    status=ContentStatus.PUBLISHED.value,
                    published_at=timestamp,
                    external_post_id=external_post_id,
                    updated_at=timestamp,
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        changed = result.rowcount == 1
        if not changed:
            logger.info(
                "Content already published, keeping original timestamp",
                extra={"content_item_id": str(content_id)},
            )
        return changed

    async def get_client_email(self, client_id: UUID) -> str | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Client.email).where(Client.id == client_id)
            )
            return result.scalar_one_or_none()
