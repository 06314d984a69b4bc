from unittest.mock import patch

import pytest

from publisphere.config.settings import Settings, get_settings


def test_default_settings():
    """Test default settings values."""
    settings = Settings()

    assert settings.app_name == "Publisphere Jobs"
    assert settings.version == "1.0.0"
    assert settings.environment == "development"
    assert settings.cron_secret is None
    assert settings.job_batch_size == 10
    assert settings.job_default_max_attempts == 3
    assert settings.job_backoff_base_s == 300
    assert settings.job_stale_after_s > settings.job_timeout_s


def test_production_requires_cron_secret():
    """Test that production environment refuses to run without CRON_SECRET."""
    with pytest.raises(ValueError, match="CRON_SECRET must be set in production"):
        Settings(environment="production")


def test_production_with_cron_secret():
    settings = Settings(environment="production", cron_secret="s3cret")
    assert settings.environment == "production"


def test_stale_window_must_exceed_timeout():
    """Test that a stale window shorter than the job timeout is rejected."""
    with pytest.raises(ValueError, match="JOB_STALE_AFTER_S must be greater"):
        Settings(job_timeout_s=600, job_stale_after_s=300)


def test_batch_size_bounds():
    with pytest.raises(ValueError):
        Settings(job_batch_size=0)


def test_settings_dependency_injection():
    """Test the get_settings dependency function."""
    settings = get_settings()
    assert isinstance(settings, Settings)
    assert settings.app_name == "Publisphere Jobs"


@patch.dict(
    "os.environ",
    {"CRON_SECRET": "from-env", "ENVIRONMENT": "production", "JOB_BATCH_SIZE": "25"},
)
def test_env_var_loading():
    """Test that environment variables are loaded correctly."""
    settings = Settings()
    assert settings.cron_secret == "from-env"
    assert settings.environment == "production"
    assert settings.job_batch_size == 25
