"""Unit tests for secure storage logging"""

from unittest.mock import Mock

from bucket_panel.services.credential_service import StorageCredentials
from bucket_panel.utils.logger import log_storage_config, mask_secret


def test_log_storage_config_not_configured():
    """Test logging when credentials are missing"""
    mock_logger = Mock()
    log_storage_config(mock_logger, None)

    mock_logger.info.assert_called_once_with("storage_config_loaded", configured=False)


def test_log_storage_config_redacts_secret():
    """Test that the secret key is redacted and the access key masked"""
    credentials = StorageCredentials(
        bucket_name="media-bucket",
        region="sa-east-1",
        access_key="AKIAEXAMPLEKEY1234",
        secret_key="super/secret/value",
        cdn_host="cdn.example.com",
    )

    mock_logger = Mock()
    log_storage_config(mock_logger, credentials)

    call_args = mock_logger.info.call_args
    assert call_args[0][0] == "storage_config_loaded"
    assert call_args[1]["secret_key"] == "[REDACTED]"
    assert call_args[1]["access_key"].endswith("1234")
    assert "AKIAEXAMPLE" not in call_args[1]["access_key"]
    assert call_args[1]["bucket"] == "media-bucket"
    assert call_args[1]["cdn_host"] == "cdn.example.com"

    # The raw secret never reaches the logger
    assert "super/secret/value" not in str(call_args)


def test_log_storage_config_without_cdn():
    credentials = StorageCredentials(
        bucket_name="media-bucket",
        region="us-east-1",
        access_key="AKIA1234",
        secret_key="secret",
    )

    mock_logger = Mock()
    log_storage_config(mock_logger, credentials)

    assert mock_logger.info.call_args[1]["cdn_host"] == "[NOT_SET]"


def test_mask_secret():
    assert mask_secret("") == "[NOT_SET]"
    assert mask_secret("abc") == "***"
    assert mask_secret("ABCDEFGH") == "****EFGH"
