"""API Endpoint Wrappers - Typed API calls"""

from typing import Any

from ..utils.config_manager import config
from .base import APIClient, PublisphereError

__all__ = ["PublisphereClient", "PublisphereError"]


class PublisphereClient:
    """High-level client with typed endpoint methods"""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        transport=None,
    ):
        # Use config values if not provided
        api_config = config.load_config().get("api", {})
        self.api = APIClient(
            base_url=base_url or api_config.get("base_url", "http://localhost:8000"),
            timeout=int(api_config.get("timeout", 30)),
            token=token or api_config.get("token") or None,
            transport=transport,
        )

    def __enter__(self):
        self.api.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.api.__exit__(exc_type, exc_val, exc_tb)

    # Health Check
    def health_check(self) -> dict[str, Any]:
        """Check API health status"""
        return self.api.get("/healthz")

    # Jobs Endpoints
    def list_jobs(
        self,
        status: list[str] | None = None,
        job_type: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        """List jobs, newest first"""
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if status:
            params["status"] = status
        if job_type:
            params["job_type"] = job_type
        return self.api.get("/jobs", params)

    def get_job(self, job_id: str) -> dict[str, Any]:
        """Get specific job by ID"""
        return self.api.get(f"/jobs/{job_id}")

    def get_job_stats(self) -> dict[str, Any]:
        """Get queue statistics"""
        return self.api.get("/jobs/stats/overview")

    def enqueue_job(
        self,
        job_type: str,
        job_data: dict[str, Any] | None = None,
        scheduled_for: str | None = None,
        max_attempts: int | None = None,
        content_item_id: str | None = None,
        dedupe_key: str | None = None,
    ) -> dict[str, Any]:
        """Enqueue a job"""
        data: dict[str, Any] = {"job_type": job_type, "job_data": job_data or {}}
        if scheduled_for:
            data["scheduled_for"] = scheduled_for
        if max_attempts:
            data["max_attempts"] = max_attempts
        if content_item_id:
            data["content_item_id"] = content_item_id
        if dedupe_key:
            data["dedupe_key"] = dedupe_key
        return self.api.post("/jobs", data)

    def retry_job(self, job_id: str) -> dict[str, Any]:
        """Re-run a failed job as a new job"""
        return self.api.post(f"/jobs/{job_id}/retry")

    def delete_job(self, job_id: str) -> dict[str, Any]:
        """Delete a finished job"""
        return self.api.delete(f"/jobs/{job_id}")

    def process_jobs(self) -> dict[str, Any]:
        """Run one poller cycle on the server"""
        return self.api.post("/jobs/process")

    def cleanup_jobs(self) -> dict[str, Any]:
        """Delete finished jobs past the retention window"""
        return self.api.post("/jobs/maintenance/cleanup")
