"""Async HTTP client for the platform's edge functions."""

import logging
from typing import Any

import httpx

from publisphere.config.settings import Settings
from publisphere.v1.integrations.errors import ServiceRejectedError

logger = logging.getLogger(__name__)


class FunctionsClient:
    """
    Invokes edge functions (``POST {base_url}/{name}``) with the service key.

    4xx answers raise ServiceRejectedError: the function understood the call
    and refused it. Transport errors and 5xx answers propagate as httpx
    errors since they say nothing about the request itself.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if service_key:
            headers["Authorization"] = f"Bearer {service_key}"
            headers["apikey"] = service_key

        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "FunctionsClient":
        return cls(
            base_url=settings.functions_base_url,
            service_key=settings.functions_service_key,
            timeout=settings.http_timeout_s,
        )

    async def invoke(
        self,
        name: str,
        payload: dict[str, Any],
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Call a function and return its decoded JSON body."""
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else {}
        response = await self.client.post(f"/{name}", json=payload, headers=headers)

        if 400 <= response.status_code < 500:
            raise ServiceRejectedError(name, response.status_code, _error_detail(response))
        response.raise_for_status()

        logger.debug(
            "Edge function invoked",
            extra={"function": name, "status_code": response.status_code},
        )

        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"result": body}

    async def aclose(self) -> None:
        await self.client.aclose()


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)[:500]
    return str(body)[:500]
