"""
Wiring for the job runtime: collaborators, registry, dispatcher and poller.

The API builds one runtime at startup and keeps it on ``app.state``; the
in-process worker builds its own.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from publisphere.config.settings import Settings
from publisphere.infra.database import Database
from publisphere.v1.content.repository import SqlContentRepository
from publisphere.v1.core.clock import Clock, SystemClock
from publisphere.v1.core.registries import JobRegistry
from publisphere.v1.infra.jobs.dispatcher import Dispatcher
from publisphere.v1.infra.jobs.poller import JobPoller
from publisphere.v1.infra.jobs.registry_init import register_job_handlers
from publisphere.v1.infra.jobs.store import JobStore
from publisphere.v1.integrations.functions import FunctionsClient
from publisphere.v1.integrations.services import (
    HttpArticlePublisher,
    HttpEmbeddingProcessor,
    HttpGenerationService,
)
from publisphere.v1.notifications.sender import EmailNotificationSender, ResendChannel

logger = logging.getLogger(__name__)


@dataclass
class JobRuntime:
    poller: JobPoller
    functions: FunctionsClient
    resend: ResendChannel

    async def aclose(self) -> None:
        await self.functions.aclose()
        await self.resend.aclose()


def build_job_runtime(
    settings: Settings, database: Database, clock: Clock | None = None
) -> JobRuntime:
    """Build a poller bound to the production collaborators."""
    clock = clock or SystemClock()
    functions = FunctionsClient.from_settings(settings)
    resend = ResendChannel.from_settings(settings)

    registry = register_job_handlers(
        JobRegistry(),
        content_repository=SqlContentRepository(database.SessionLocal),
        notification_sender=EmailNotificationSender(resend),
        generation_service=HttpGenerationService(functions),
        article_publisher=HttpArticlePublisher(functions),
        embedding_processor=HttpEmbeddingProcessor(functions),
        clock=clock,
    )
    poller = JobPoller(
        store=JobStore(database.SessionLocal, clock),
        dispatcher=Dispatcher(registry),
        settings=settings,
        clock=clock,
    )

    logger.info(
        "Job runtime ready",
        extra={
            "batch_size": settings.job_batch_size,
            "concurrency": settings.job_concurrency,
            "timeout_s": settings.job_timeout_s,
        },
    )
    return JobRuntime(poller=poller, functions=functions, resend=resend)


def get_poller(request: Request) -> JobPoller:
    """Dependency injection for the application's job poller."""
    return request.app.state.job_runtime.poller
