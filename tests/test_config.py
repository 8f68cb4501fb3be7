"""Unit tests for panel configuration"""

import os

from bucket_panel.config import ONE_MB, Settings


def test_defaults():
    """Test the documented defaults"""
    os.environ.pop("TOKEN_TTL_SECONDS", None)
    settings = Settings()

    assert settings.token_ttl_seconds == 8 * 60 * 60
    assert settings.upload_url_ttl_seconds == 600
    assert settings.max_upload_size_bytes == 5 * 1024 * ONE_MB
    assert settings.activity_default_limit == 200
    assert settings.activity_max_limit == 500
    assert settings.recent_uploads_limit == 5
    assert settings.session_cookie_name == "panel_session"


def test_upload_thresholds_in_bytes():
    """Test that thresholds are converted from MB to bytes"""
    settings = Settings()
    thresholds = settings.upload_thresholds()

    assert thresholds == {
        "image": 3 * ONE_MB,
        "video": 200 * ONE_MB,
        "audio": 120 * ONE_MB,
        "pdf": 60 * ONE_MB,
        "text": 30 * ONE_MB,
        "other": 80 * ONE_MB,
    }


def test_threshold_override_from_env():
    """Test that a threshold can be changed through the environment"""
    os.environ["UPLOAD_THRESHOLD_TEXT_MB"] = "10"

    settings = Settings()

    assert settings.upload_thresholds()["text"] == 10 * ONE_MB


def test_node_env_is_accepted_as_environment():
    """Test that NODE_ENV is used when ENVIRONMENT is not set"""
    os.environ.pop("ENVIRONMENT", None)
    os.environ["NODE_ENV"] = "development"

    settings = Settings()

    assert settings.environment == "development"
    assert settings.is_production is False


def test_production_forces_error_log_level():
    """Test that production defaults to error logging unless LOG_LEVEL is set"""
    os.environ["ENVIRONMENT"] = "production"
    os.environ.pop("LOG_LEVEL", None)

    settings = Settings(_env_file=None)

    assert settings.is_production is True
    assert settings.log_level == "error"


def test_explicit_log_level_is_kept_in_production():
    os.environ["ENVIRONMENT"] = "production"
    os.environ["LOG_LEVEL"] = "info"

    settings = Settings(_env_file=None)

    assert settings.log_level == "info"
