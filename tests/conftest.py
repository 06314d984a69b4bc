from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from publisphere.config.settings import Settings, get_settings
from publisphere.infra.database import Base, get_session
from publisphere.main import create_app
from publisphere.v1.content.models import Client, ContentItem, ContentStatus
from publisphere.v1.content.repository import SqlContentRepository
from publisphere.v1.core.registries import JobRegistry
from publisphere.v1.infra.jobs.dispatcher import Dispatcher
from publisphere.v1.infra.jobs.models import Job, JobStatus
from publisphere.v1.infra.jobs.poller import JobPoller
from publisphere.v1.infra.jobs.registry_init import register_job_handlers
from publisphere.v1.infra.jobs.runtime import get_poller
from publisphere.v1.infra.jobs.store import JobStore
from publisphere.v1.integrations.services import Accepted, PublishReceipt

FROZEN_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current


class FakePublisher:
    def __init__(self):
        self.calls: list[tuple[UUID, str | None]] = []
        self.error: Exception | None = None

    async def publish(self, content, idempotency_key=None) -> PublishReceipt:
        self.calls.append((content.id, idempotency_key))
        if self.error:
            raise self.error
        return PublishReceipt(external_post_id="wp-42", url="https://blog.example.com/p/42")


class FakeNotificationSender:
    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.error: Exception | None = None

    async def send(self, notification_type, recipient, data, idempotency_key=None):
        if self.error:
            raise self.error
        self.sent.append(
            {
                "type": notification_type,
                "recipient": recipient,
                "data": data,
                "idempotency_key": idempotency_key,
            }
        )
        return Accepted(reference=f"email-{len(self.sent)}")


class FakeGenerationService:
    def __init__(self):
        self.requests: list[tuple[dict[str, Any], str | None]] = []
        self.error: Exception | None = None

    async def generate(self, job_data, idempotency_key=None):
        self.requests.append((job_data, idempotency_key))
        if self.error:
            raise self.error
        return Accepted(reference="gen-1")


class FakeEmbeddingProcessor:
    def __init__(self):
        self.requests: list[tuple[dict[str, Any], str | None]] = []
        self.error: Exception | None = None

    async def process(self, job_data, idempotency_key=None):
        self.requests.append((job_data, idempotency_key))
        if self.error:
            raise self.error
        return Accepted(reference="emb-1")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}",
        cron_secret=None,
        job_timeout_s=2,
        job_stale_after_s=900,
    )


@pytest.fixture
async def test_engine(settings):
    """Create a file-backed SQLite engine with all tables."""
    engine = create_async_engine(settings.database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def sample_client(session_factory) -> Client:
    async with session_factory() as session:
        client = Client(id=uuid4(), name="Harbor Dental", email="owner@harbordental.com")
        session.add(client)
        await session.commit()
        return client


@pytest.fixture
async def sample_content(session_factory, sample_client) -> ContentItem:
    async with session_factory() as session:
        content = ContentItem(
            id=uuid4(),
            client_id=sample_client.id,
            content_type="article",
            title="Five Tips for Healthy Gums",
            content="<p>Brush twice a day.</p>",
            status=ContentStatus.SCHEDULED.value,
        )
        session.add(content)
        await session.commit()
        return content


@pytest.fixture
def create_job(session_factory, clock):
    """Insert a job row directly, bypassing the service."""

    async def _create(
        job_type: str = "send_email",
        job_data: dict[str, Any] | None = None,
        **fields: Any,
    ) -> Job:
        values: dict[str, Any] = {
            "id": uuid4(),
            "job_type": job_type,
            "status": JobStatus.PENDING.value,
            "scheduled_for": clock.now(),
            "attempts": 0,
            "max_attempts": 3,
            "job_data": job_data if job_data is not None else {},
            "created_at": clock.now(),
            "updated_at": clock.now(),
        }
        values.update(fields)
        async with session_factory() as session:
            job = Job(**values)
            session.add(job)
            await session.commit()
            return job

    return _create


@pytest.fixture
def store(session_factory, clock) -> JobStore:
    return JobStore(session_factory, clock)


@pytest.fixture
def content_repository(session_factory) -> SqlContentRepository:
    return SqlContentRepository(session_factory)


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def notifications() -> FakeNotificationSender:
    return FakeNotificationSender()


@pytest.fixture
def generation() -> FakeGenerationService:
    return FakeGenerationService()


@pytest.fixture
def embeddings() -> FakeEmbeddingProcessor:
    return FakeEmbeddingProcessor()


@pytest.fixture
def registry(
    content_repository, publisher, notifications, generation, embeddings, clock
) -> JobRegistry:
    return register_job_handlers(
        JobRegistry(),
        content_repository=content_repository,
        notification_sender=notifications,
        generation_service=generation,
        article_publisher=publisher,
        embedding_processor=embeddings,
        clock=clock,
    )


@pytest.fixture
def poller(store, registry, settings, clock) -> JobPoller:
    return JobPoller(store, Dispatcher(registry), settings, clock)


@pytest.fixture
def app(settings, session_factory, poller):
    """FastAPI app wired to the test database and fake collaborators."""
    app = create_app()

    async def get_test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_session] = get_test_session
    app.dependency_overrides[get_poller] = lambda: poller
    return app


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
