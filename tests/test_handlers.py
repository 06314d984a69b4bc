"""Tests for the job handlers against fake collaborators."""

from uuid import uuid4

import httpx
import pytest

from publisphere.v1.content.models import ContentStatus
from publisphere.v1.infra.jobs.handlers import (
    GenerateContentHandler,
    ProcessEmbeddingsHandler,
    PublishArticleHandler,
    PublishGmbHandler,
    SendEmailHandler,
)
from publisphere.v1.infra.jobs.models import Job, JobType
from publisphere.v1.infra.jobs.outcomes import Failure, Success
from publisphere.v1.integrations.errors import (
    NotificationRejectedError,
    ServiceRejectedError,
)


def make_job(job_type: JobType, job_data=None, content_item_id=None) -> Job:
    return Job(
        id=uuid4(),
        job_type=job_type.value,
        job_data=job_data or {},
        content_item_id=content_item_id,
        attempts=1,
        max_attempts=3,
    )


class TestPublishArticleHandler:
    @pytest.fixture
    def handler(self, content_repository, publisher, clock):
        return PublishArticleHandler(content_repository, publisher, clock)

    async def test_publishes_and_marks_content(
        self, handler, sample_content, content_repository, publisher, clock
    ):
        job = make_job(JobType.PUBLISH_ARTICLE, content_item_id=sample_content.id)

        outcome = await handler.execute(job)

        assert outcome == Success(
            {"external_post_id": "wp-42", "url": "https://blog.example.com/p/42"}
        )
        assert publisher.calls == [(sample_content.id, f"job:{job.id}")]
        content = await content_repository.get_content(sample_content.id)
        assert content.status == ContentStatus.PUBLISHED.value
        assert content.published_at == clock.now()

    async def test_content_id_from_payload(self, handler, sample_content, publisher):
        job = make_job(
            JobType.PUBLISH_ARTICLE, {"content_item_id": str(sample_content.id)}
        )

        outcome = await handler.execute(job)

        assert isinstance(outcome, Success)
        assert publisher.calls[0][0] == sample_content.id

    async def test_missing_content(self, handler, publisher, test_engine):
        job = make_job(JobType.PUBLISH_ARTICLE, content_item_id=uuid4())

        outcome = await handler.execute(job)

        assert outcome == Failure("content not found")
        assert publisher.calls == []

    @pytest.mark.parametrize("payload", [{}, {"content_item_id": "not-a-uuid"}])
    async def test_no_usable_content_id(self, handler, payload):
        outcome = await handler.execute(make_job(JobType.PUBLISH_ARTICLE, payload))

        assert outcome == Failure("content not found")

    async def test_is_idempotent(
        self, handler, sample_content, content_repository, publisher, clock
    ):
        job = make_job(JobType.PUBLISH_ARTICLE, content_item_id=sample_content.id)

        await handler.execute(job)
        first_published_at = clock.now()
        clock.advance(600)
        outcome = await handler.execute(job)

        assert isinstance(outcome, Success)
        assert len(publisher.calls) == 1
        content = await content_repository.get_content(sample_content.id)
        assert content.published_at == first_published_at

    async def test_rejection_is_a_failure(self, handler, sample_content, publisher):
        publisher.error = ServiceRejectedError("wordpress-publish", 401, "bad credentials")
        job = make_job(JobType.PUBLISH_ARTICLE, content_item_id=sample_content.id)

        outcome = await handler.execute(job)

        assert isinstance(outcome, Failure)
        assert "bad credentials" in outcome.reason

    async def test_transport_error_propagates(self, handler, sample_content, publisher):
        publisher.error = httpx.ReadTimeout("read timed out")
        job = make_job(JobType.PUBLISH_ARTICLE, content_item_id=sample_content.id)

        with pytest.raises(httpx.ReadTimeout):
            await handler.execute(job)


class TestPublishGmbHandler:
    @pytest.fixture
    def handler(self, content_repository, notifications):
        return PublishGmbHandler(content_repository, notifications)

    async def test_reminds_client_by_email(self, handler, sample_content, notifications):
        job = make_job(JobType.PUBLISH_GMB, content_item_id=sample_content.id)

        outcome = await handler.execute(job)

        assert outcome == Success({"recipient": "owner@harbordental.com"})
        sent = notifications.sent[0]
        assert sent["type"] == "gmb_reminder"
        assert sent["recipient"] == "owner@harbordental.com"
        assert sent["data"]["title"] == "Five Tips for Healthy Gums"
        assert sent["idempotency_key"] == f"job:{job.id}"

    async def test_recipient_override(self, handler, sample_content, notifications):
        job = make_job(
            JobType.PUBLISH_GMB,
            {"recipient": "marketing@harbordental.com"},
            content_item_id=sample_content.id,
        )

        await handler.execute(job)

        assert notifications.sent[0]["recipient"] == "marketing@harbordental.com"

    async def test_missing_content(self, handler, notifications, test_engine):
        outcome = await handler.execute(
            make_job(JobType.PUBLISH_GMB, content_item_id=uuid4())
        )

        assert outcome == Failure("content not found")
        assert notifications.sent == []

    async def test_client_without_email(
        self, handler, sample_content, sample_client, session_factory
    ):
        from publisphere.v1.content.models import Client

        async with session_factory() as session:
            client = await session.get(Client, sample_client.id)
            client.email = None
            await session.commit()

        outcome = await handler.execute(
            make_job(JobType.PUBLISH_GMB, content_item_id=sample_content.id)
        )

        assert isinstance(outcome, Failure)


class TestSendEmailHandler:
    async def test_forwards_payload(self, notifications):
        handler = SendEmailHandler(notifications)
        job = make_job(
            JobType.SEND_EMAIL,
            {
                "type": "publish_failure",
                "recipient": "owner@harbordental.com",
                "data": {"title": "Five Tips", "error": "timeout"},
            },
        )

        outcome = await handler.execute(job)

        assert outcome == Success({"reference": "email-1"})
        assert notifications.sent == [
            {
                "type": "publish_failure",
                "recipient": "owner@harbordental.com",
                "data": {"title": "Five Tips", "error": "timeout"},
                "idempotency_key": f"job:{job.id}",
            }
        ]

    @pytest.mark.parametrize(
        "payload,missing",
        [
            ({"recipient": "a@b.com"}, "type"),
            ({"type": "publish_success"}, "recipient"),
            ({}, "type, recipient"),
        ],
    )
    async def test_malformed_payload(self, notifications, payload, missing):
        outcome = await SendEmailHandler(notifications).execute(
            make_job(JobType.SEND_EMAIL, payload)
        )

        assert outcome == Failure(f"invalid email payload: missing {missing}")
        assert notifications.sent == []

    @pytest.mark.parametrize("data", ["Five Tips", ["title", "url"]])
    async def test_data_must_be_an_object(self, notifications, data):
        outcome = await SendEmailHandler(notifications).execute(
            make_job(
                JobType.SEND_EMAIL,
                {"type": "publish_success", "recipient": "a@b.com", "data": data},
            )
        )

        assert outcome == Failure("invalid email payload: data must be an object")
        assert notifications.sent == []

    async def test_rejected_notification(self, notifications):
        notifications.error = NotificationRejectedError("Unknown notification type: fax")
        outcome = await SendEmailHandler(notifications).execute(
            make_job(JobType.SEND_EMAIL, {"type": "fax", "recipient": "a@b.com"})
        )

        assert outcome == Failure("Unknown notification type: fax")


class TestForwardingHandlers:
    async def test_generate_content(self, generation):
        job = make_job(JobType.GENERATE_CONTENT, {"client_id": "c1", "count": 4})

        outcome = await GenerateContentHandler(generation).execute(job)

        assert outcome == Success({"reference": "gen-1"})
        assert generation.requests == [({"client_id": "c1", "count": 4}, f"job:{job.id}")]

    async def test_generate_content_rejected(self, generation):
        generation.error = ServiceRejectedError("generate-content", 422, "missing topic")

        outcome = await GenerateContentHandler(generation).execute(
            make_job(JobType.GENERATE_CONTENT)
        )

        assert isinstance(outcome, Failure)
        assert "missing topic" in outcome.reason

    async def test_process_embeddings(self, embeddings):
        job = make_job(JobType.PROCESS_EMBEDDINGS, {"document_id": "doc-9"})

        outcome = await ProcessEmbeddingsHandler(embeddings).execute(job)

        assert outcome == Success({"reference": "emb-1"})
        assert embeddings.requests == [({"document_id": "doc-9"}, f"job:{job.id}")]
