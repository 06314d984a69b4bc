"""Base HTTP Client for the Publisphere Jobs API"""

from typing import Any

import httpx
from rich.console import Console
from rich.panel import Panel

console = Console()


class PublisphereError(Exception):
    """Base exception for Publisphere API errors"""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class APIClient:
    """HTTP client for the Publisphere Jobs API"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: int = 30,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers=self.default_headers,
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.client.close()

    def _handle_response(self, response: httpx.Response) -> Any:
        """Handle API response and extract data"""
        try:
            data = response.json()
        except ValueError:
            console.print(f"[red]Failed to parse response: {response.text}[/red]")
            raise PublisphereError(
                f"Invalid JSON response: {response.status_code}", response.status_code
            ) from None

        if response.status_code >= 400:
            error = data.get("error") or {}
            error_msg = error.get("message") or data.get("detail") or "Unknown error"
            console.print(Panel(f"[red]{error_msg}[/red]", title="API Error"))
            raise PublisphereError(
                f"API Error {response.status_code}: {error_msg}", response.status_code
            )

        # Envelope format (with "ok" field)
        if "ok" in data:
            if not data.get("ok", False):
                error_msg = data.get("error", {}).get("message", "Request failed")
                raise PublisphereError(error_msg, response.status_code)
            return data.get("data", {})

        return data

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request to ``/v1{path}``"""
        try:
            response = self.client.request(method, f"/v1{path}", params=params, json=json)
        except httpx.RequestError as e:
            console.print(f"[red]Connection error: {e}[/red]")
            raise PublisphereError(f"Connection failed: {e}") from None
        return self._handle_response(response)

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request"""
        return self.request("GET", path, params=params)

    def post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        """Make POST request"""
        return self.request("POST", path, json=json)

    def delete(self, path: str) -> Any:
        """Make DELETE request"""
        return self.request("DELETE", path)
