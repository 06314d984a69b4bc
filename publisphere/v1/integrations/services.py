"""
Downstream services the job handlers delegate to, and their edge-function
bindings.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from publisphere.v1.content.models import ContentItem
from publisphere.v1.integrations.functions import FunctionsClient


@dataclass(frozen=True)
class Accepted:
    """The collaborator took the request; completion is its own business."""

    reference: str | None = None


@dataclass(frozen=True)
class PublishReceipt:
    external_post_id: str | None
    url: str | None = None


class GenerationService(Protocol):
    async def generate(
        self, job_data: dict[str, Any], idempotency_key: str | None = None
    ) -> Accepted: ...


class ArticlePublisher(Protocol):
    async def publish(
        self, content: ContentItem, idempotency_key: str | None = None
    ) -> PublishReceipt: ...


class EmbeddingProcessor(Protocol):
    async def process(
        self, job_data: dict[str, Any], idempotency_key: str | None = None
    ) -> Accepted: ...


class HttpGenerationService:
    """Forwards generation requests to the ``generate-content`` function."""

    function_name = "generate-content"

    def __init__(self, functions: FunctionsClient):
        self.functions = functions

    async def generate(
        self, job_data: dict[str, Any], idempotency_key: str | None = None
    ) -> Accepted:
        body = await self.functions.invoke(
            self.function_name, job_data, idempotency_key=idempotency_key
        )
        return Accepted(reference=_reference(body))


class HttpArticlePublisher:
    """Publishes a content item through the ``wordpress-publish`` function."""

    function_name = "wordpress-publish"

    def __init__(self, functions: FunctionsClient):
        self.functions = functions

    async def publish(
        self, content: ContentItem, idempotency_key: str | None = None
    ) -> PublishReceipt:
        payload = {
            "content_item_id": str(content.id),
            "title": content.title or "Untitled",
            "content": content.content,
            "status": "publish",
        }
        body = await self.functions.invoke(
            self.function_name, payload, idempotency_key=idempotency_key
        )

        post = body.get("post") if isinstance(body.get("post"), dict) else body
        post_id = post.get("id")
        return PublishReceipt(
            external_post_id=str(post_id) if post_id is not None else None,
            url=post.get("link"),
        )


class HttpEmbeddingProcessor:
    """Triggers knowledge-base embedding generation."""

    function_name = "process-knowledge-embeddings"

    def __init__(self, functions: FunctionsClient):
        self.functions = functions

    async def process(
        self, job_data: dict[str, Any], idempotency_key: str | None = None
    ) -> Accepted:
        body = await self.functions.invoke(
            self.function_name, job_data, idempotency_key=idempotency_key
        )
        return Accepted(reference=_reference(body))


def _reference(body: dict[str, Any]) -> str | None:
    for key in ("id", "job_id", "request_id"):
        if body.get(key) is not None:
            return str(body[key])
    return None
