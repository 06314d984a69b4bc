"""
Job registry initialization.

Registers a handler for every job type against the given collaborators.
"""

import logging

from publisphere.v1.content.repository import ContentRepository
from publisphere.v1.core.clock import Clock
from publisphere.v1.core.registries import JobRegistry
from publisphere.v1.infra.jobs.handlers import (
    GenerateContentHandler,
    ProcessEmbeddingsHandler,
    PublishArticleHandler,
    PublishGmbHandler,
    SendEmailHandler,
)
from publisphere.v1.infra.jobs.models import JobType
from publisphere.v1.integrations.services import (
    ArticlePublisher,
    EmbeddingProcessor,
    GenerationService,
)
from publisphere.v1.notifications.sender import NotificationSender

logger = logging.getLogger(__name__)


def register_job_handlers(
    registry: JobRegistry,
    *,
    content_repository: ContentRepository,
    notification_sender: NotificationSender,
    generation_service: GenerationService,
    article_publisher: ArticlePublisher,
    embedding_processor: EmbeddingProcessor,
    clock: Clock,
) -> JobRegistry:
    """Register all job handlers with the job registry."""

    logger.info("Registering job handlers")

    # Publishing
    registry.register(
        JobType.PUBLISH_ARTICLE.value,
        PublishArticleHandler(content_repository, article_publisher, clock),
    )
    registry.register(
        JobType.PUBLISH_GMB.value,
        PublishGmbHandler(content_repository, notification_sender),
    )

    # Notifications
    registry.register(JobType.SEND_EMAIL.value, SendEmailHandler(notification_sender))

    # AI pipelines
    registry.register(
        JobType.GENERATE_CONTENT.value, GenerateContentHandler(generation_service)
    )
    registry.register(
        JobType.PROCESS_EMBEDDINGS.value, ProcessEmbeddingsHandler(embedding_processor)
    )

    logger.info(
        "Job handlers registered", extra={"registered_handlers": registry.list()}
    )
    return registry
