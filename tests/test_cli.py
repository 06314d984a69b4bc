"""Tests for CLI commands"""

from unittest.mock import Mock, patch

import httpx
import pytest
from typer.testing import CliRunner

from publisphere_cli.client.base import PublisphereError
from publisphere_cli.client.endpoints import PublisphereClient
from publisphere_cli.main import app
from publisphere_cli.utils.config_manager import ConfigManager


@pytest.fixture
def runner():
    """CLI test runner"""
    return CliRunner()


@pytest.fixture
def mock_client():
    """Mock API client usable as a context manager"""
    client = Mock()
    client.__enter__ = Mock(return_value=client)
    client.__exit__ = Mock(return_value=None)
    return client


class TestMainCommands:
    """Test main CLI commands"""

    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "Publisphere Jobs CLI" in result.stdout

    @patch("publisphere_cli.main.PublisphereClient")
    def test_status_success(self, mock_client_class, mock_client, runner):
        mock_client.health_check.return_value = {
            "ok": True,
            "version": "1.0.0",
            "environment": "development",
            "database": {"connected": True},
            "queue": {"pending": 4, "running": 1},
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Healthy" in result.stdout

    @patch("publisphere_cli.main.PublisphereClient")
    def test_status_degraded(self, mock_client_class, mock_client, runner):
        mock_client.health_check.return_value = {
            "ok": False,
            "database": {"connected": False},
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "Degraded" in result.stdout

    @patch("publisphere_cli.main.PublisphereClient")
    def test_status_failure(self, mock_client_class, mock_client, runner):
        mock_client.health_check.side_effect = PublisphereError("Connection failed")
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "Connection Failed" in result.stdout


class TestJobsCommands:
    """Test jobs commands"""

    @patch("publisphere_cli.commands.jobs.PublisphereClient")
    def test_list_empty(self, mock_client_class, mock_client, runner):
        mock_client.list_jobs.return_value = {"jobs": [], "total": 0}
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "list", "--status", "failed"])
        assert result.exit_code == 0
        assert "No jobs found" in result.stdout
        mock_client.list_jobs.assert_called_once_with(
            status=["failed"], job_type=None, limit=20, offset=0
        )

    @patch("publisphere_cli.commands.jobs.PublisphereClient")
    def test_list_with_jobs(self, mock_client_class, mock_client, runner):
        mock_client.list_jobs.return_value = {
            "jobs": [
                {
                    "id": "5f0c1d2e-0000-4000-8000-000000000001",
                    "job_type": "send_email",
                    "status": "failed",
                    "attempts": 3,
                    "max_attempts": 3,
                    "scheduled_for": "2026-03-02T09:00:00+00:00",
                }
            ],
            "total": 1,
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "list"])
        assert result.exit_code == 0
        assert "5f0c1d2e" in result.stdout
        assert "3/3" in result.stdout

    @patch("publisphere_cli.commands.jobs.PublisphereClient")
    def test_enqueue(self, mock_client_class, mock_client, runner):
        mock_client.enqueue_job.return_value = {
            "job_id": "job-1",
            "status": "pending",
            "scheduled_for": "2026-03-02T09:00:00+00:00",
            "deduplicated": False,
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(
            app,
            ["jobs", "enqueue", "publish_article", "--data", '{"site": "blog"}', "-c", "c-1"],
        )
        assert result.exit_code == 0
        assert "job-1" in result.stdout
        mock_client.enqueue_job.assert_called_once_with(
            "publish_article",
            {"site": "blog"},
            scheduled_for=None,
            max_attempts=None,
            content_item_id="c-1",
            dedupe_key=None,
        )

    def test_enqueue_rejects_bad_json(self, runner):
        result = runner.invoke(app, ["jobs", "enqueue", "send_email", "--data", "{nope"])
        assert result.exit_code == 1
        assert "not valid JSON" in result.stdout

    @patch("publisphere_cli.commands.jobs.PublisphereClient")
    def test_retry_conflict(self, mock_client_class, mock_client, runner):
        mock_client.retry_job.side_effect = PublisphereError(
            "API Error 409: Only failed jobs can be retried", 409
        )
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "retry", "job-1"])
        assert result.exit_code == 1
        assert "Failed to retry job" in result.stdout

    @patch("publisphere_cli.commands.jobs.PublisphereClient")
    def test_delete_requires_confirmation(self, mock_client_class, mock_client, runner):
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "delete", "job-1"], input="n\n")
        assert result.exit_code == 0
        assert "Deletion cancelled" in result.stdout
        mock_client.delete_job.assert_not_called()

        result = runner.invoke(app, ["jobs", "delete", "job-1", "--yes"])
        assert result.exit_code == 0
        mock_client.delete_job.assert_called_once_with("job-1")

    @patch("publisphere_cli.commands.jobs.PublisphereClient")
    def test_process(self, mock_client_class, mock_client, runner):
        mock_client.process_jobs.return_value = {
            "processed_count": 2,
            "completed_count": 1,
            "failed_count": 0,
            "skipped_count": 0,
            "reclaimed_count": 0,
            "results": [
                {"id": "a1b2c3d4-x", "job_type": "send_email", "outcome": "completed", "attempts": 1},
                {
                    "id": "e5f6a7b8-x",
                    "job_type": "publish_article",
                    "outcome": "retrying",
                    "attempts": 1,
                    "error": "timeout",
                    "next_run_at": "2026-03-02T09:05:00+00:00",
                },
            ],
        }
        mock_client_class.return_value = mock_client

        result = runner.invoke(app, ["jobs", "process"])
        assert result.exit_code == 0
        assert "Poller Cycle" in result.stdout
        assert "retrying" in result.stdout


class TestConfigCommands:
    """Test config commands"""

    @pytest.fixture
    def config_manager(self, tmp_path):
        manager = ConfigManager(tmp_path / ".publisphere")
        with patch("publisphere_cli.commands.config.config", manager):
            yield manager

    def test_set_and_get(self, runner, config_manager):
        result = runner.invoke(app, ["config", "set", "api.base_url", "https://jobs.example.com"])
        assert result.exit_code == 0
        assert config_manager.get("api.base_url") == "https://jobs.example.com"

        result = runner.invoke(app, ["config", "get", "api.base_url"])
        assert "https://jobs.example.com" in result.stdout

    def test_rejects_invalid_url(self, runner, config_manager):
        result = runner.invoke(app, ["config", "set", "api.base_url", "jobs.example.com"])
        assert result.exit_code == 1
        assert not config_manager.config_file.exists()

    def test_token_is_masked(self, runner, config_manager):
        runner.invoke(app, ["config", "set", "api.token", "s3cret"])

        result = runner.invoke(app, ["config", "get", "api.token"])
        assert "s3cret" not in result.stdout
        assert "********" in result.stdout
        assert config_manager.get("api.token") == "s3cret"

    def test_missing_key(self, runner, config_manager):
        result = runner.invoke(app, ["config", "get", "api.nothing"])
        assert result.exit_code == 1


class TestAPIClient:
    """Test the HTTP client against a mock transport"""

    def client(self, handler) -> PublisphereClient:
        return PublisphereClient(
            "http://jobs.test", token="s3cret", transport=httpx.MockTransport(handler)
        )

    def test_unwraps_envelope_and_sends_token(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True, "data": {"total_jobs": 3}})

        with self.client(handler) as client:
            stats = client.get_job_stats()

        assert stats == {"total_jobs": 3}
        assert seen[0].url.path == "/v1/jobs/stats/overview"
        assert seen[0].headers["Authorization"] == "Bearer s3cret"

    def test_error_envelope_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404, json={"ok": False, "error": {"message": "Job x not found"}}
            )

        with self.client(handler) as client:
            with pytest.raises(PublisphereError) as exc_info:
                client.get_job("x")

        assert exc_info.value.status_code == 404
        assert "Job x not found" in str(exc_info.value)

    def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        with self.client(handler) as client:
            with pytest.raises(PublisphereError, match="Connection failed"):
                client.health_check()
