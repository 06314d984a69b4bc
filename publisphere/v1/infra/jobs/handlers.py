"""
Job handlers.

Each handler performs one job type's external work and reports an Outcome.
Expected failures (missing content, a collaborator refusing the request) are
returned as ``Failure``; anything raised is treated by the poller as an
unexpected fault. Handlers never write the job store, and every downstream
call carries the job's idempotency key so a retried job does not repeat an
effect that already happened.
"""

import logging
from typing import Any
from uuid import UUID

from publisphere.v1.content.repository import ContentRepository
from publisphere.v1.core.clock import Clock
from publisphere.v1.infra.jobs.models import Job
from publisphere.v1.infra.jobs.outcomes import Failure, Outcome, Success
from publisphere.v1.integrations.errors import CollaboratorError
from publisphere.v1.integrations.services import (
    ArticlePublisher,
    EmbeddingProcessor,
    GenerationService,
)
from publisphere.v1.notifications.sender import NotificationSender
from publisphere.v1.notifications.templates import NotificationType

logger = logging.getLogger(__name__)

CONTENT_NOT_FOUND = "content not found"


def idempotency_key(job: Job) -> str:
    return f"job:{job.id}"


def _content_item_id(job: Job) -> UUID | None:
    if job.content_item_id:
        return job.content_item_id
    raw = (job.job_data or {}).get("content_item_id")
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None


class PublishArticleHandler:
    """
    Publishes an article and marks the content item published.

    Payload: none required; the content item comes from the job's
    ``content_item_id`` (or ``job_data["content_item_id"]``).
    """

    def __init__(
        self,
        content_repository: ContentRepository,
        publisher: ArticlePublisher,
        clock: Clock,
    ):
        self.content_repository = content_repository
        self.publisher = publisher
        self.clock = clock

    async def execute(self, job: Job) -> Outcome:
        content_id = _content_item_id(job)
        if content_id is None:
            return Failure(CONTENT_NOT_FOUND)

        content = await self.content_repository.get_content(content_id)
        if content is None:
            logger.warning(
                "Content item not found for publishing",
                extra={"job_id": str(job.id), "content_item_id": str(content_id)},
            )
            return Failure(CONTENT_NOT_FOUND)

        if content.is_published():
            logger.info(
                "Content already published, nothing to do",
                extra={"job_id": str(job.id), "content_item_id": str(content_id)},
            )
            return Success({"already_published": True})

        try:
            receipt = await self.publisher.publish(
                content, idempotency_key=idempotency_key(job)
            )
        except CollaboratorError as e:
            return Failure(str(e))

        await self.content_repository.mark_published(
            content_id, self.clock.now(), receipt.external_post_id
        )

        logger.info(
            "Article published",
            extra={
                "job_id": str(job.id),
                "content_item_id": str(content_id),
                "external_post_id": receipt.external_post_id,
            },
        )
        return Success({"external_post_id": receipt.external_post_id, "url": receipt.url})


class PublishGmbHandler:
    """
    Google Business Profile posts are published by the client by hand; this
    job emails them a reminder with the post text.

    Payload: optional ``recipient`` overriding the client's email.
    Success means the reminder was accepted for delivery, not delivered.
    """

    def __init__(
        self,
        content_repository: ContentRepository,
        notification_sender: NotificationSender,
    ):
        self.content_repository = content_repository
        self.notification_sender = notification_sender

    async def execute(self, job: Job) -> Outcome:
        content_id = _content_item_id(job)
        content = (
            await self.content_repository.get_content(content_id) if content_id else None
        )
        if content is None:
            return Failure(CONTENT_NOT_FOUND)

        recipient = (job.job_data or {}).get("recipient") or (
            await self.content_repository.get_client_email(content.client_id)
        )
        if not recipient:
            return Failure("no recipient for GMB reminder")

        try:
            await self.notification_sender.send(
                NotificationType.GMB_REMINDER.value,
                recipient,
                {
                    "title": content.title,
                    "content": content.content,
                    "url": (job.job_data or {}).get("url"),
                },
                idempotency_key=idempotency_key(job),
            )
        except CollaboratorError as e:
            return Failure(str(e))

        return Success({"recipient": recipient})


class SendEmailHandler:
    """
    Forwards the payload to the notification sender.

    Payload expected:
    {
        "type": "publish_success",
        "recipient": "client@example.com",
        "data": {"title": "...", "url": "..."}
    }
    """

    def __init__(self, notification_sender: NotificationSender):
        self.notification_sender = notification_sender

    async def execute(self, job: Job) -> Outcome:
        payload: dict[str, Any] = job.job_data or {}
        missing = [key for key in ("type", "recipient") if not payload.get(key)]
        if missing:
            return Failure(f"invalid email payload: missing {', '.join(missing)}")

        data = payload.get("data") or {}
        if not isinstance(data, dict):
            return Failure("invalid email payload: data must be an object")

        try:
            accepted = await self.notification_sender.send(
                payload["type"],
                payload["recipient"],
                data,
                idempotency_key=idempotency_key(job),
            )
        except CollaboratorError as e:
            return Failure(str(e))

        return Success({"reference": accepted.reference})


class GenerateContentHandler:
    """Forwards the payload to the generation service."""

    def __init__(self, generation_service: GenerationService):
        self.generation_service = generation_service

    async def execute(self, job: Job) -> Outcome:
        try:
            accepted = await self.generation_service.generate(
                job.job_data or {}, idempotency_key=idempotency_key(job)
            )
        except CollaboratorError as e:
            return Failure(str(e))
        return Success({"reference": accepted.reference})


class ProcessEmbeddingsHandler:
    """
    Triggers embedding generation for an uploaded knowledge-base file.

    Enqueued by the upload flow instead of calling the embedding function
    without awaiting it, so failures are retried and visible in job logs.
    """

    def __init__(self, embedding_processor: EmbeddingProcessor):
        self.embedding_processor = embedding_processor

    async def execute(self, job: Job) -> Outcome:
        try:
            accepted = await self.embedding_processor.process(
                job.job_data or {}, idempotency_key=idempotency_key(job)
            )
        except CollaboratorError as e:
            return Failure(str(e))
        return Success({"reference": accepted.reference})
