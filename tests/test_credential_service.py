"""Unit tests for the storage credential store"""

import pytest

from bucket_panel.services.credential_service import CredentialService


@pytest.fixture
def service(db):
    return CredentialService()


@pytest.mark.asyncio
async def test_no_credentials_until_configured(service):
    assert await service.get_storage_credentials() is None

    settings = await service.get_client_settings()
    assert settings["bucketName"] == ""
    assert settings["hasSecretKey"] is False


@pytest.mark.asyncio
async def test_upsert_and_read(service):
    await service.upsert_storage_credentials(
        bucket_name="media",
        region="sa-east-1",
        access_key="AKIA1234",
        secret_key="s3cr3t",
        cdn_host="cdn.example.com",
    )

    credentials = await service.get_storage_credentials()

    assert credentials.bucket_name == "media"
    assert credentials.region == "sa-east-1"
    assert credentials.secret_key == "s3cr3t"
    assert credentials.cdn_host == "cdn.example.com"


@pytest.mark.asyncio
async def test_blank_secret_keeps_stored_secret(service):
    await service.upsert_storage_credentials("media", "sa-east-1", "AKIA1234", "s3cr3t")
    await service.upsert_storage_credentials("media-2", "us-east-1", "AKIA5678", "  ")

    credentials = await service.get_storage_credentials()

    assert credentials.bucket_name == "media-2"
    assert credentials.access_key == "AKIA5678"
    assert credentials.secret_key == "s3cr3t"


@pytest.mark.asyncio
async def test_incomplete_record_is_not_usable(service):
    """Test that credentials without a secret are treated as missing"""
    await service.upsert_storage_credentials("media", "sa-east-1", "AKIA1234", None)

    assert await service.get_storage_credentials() is None


@pytest.mark.asyncio
async def test_client_settings_never_include_secret(service):
    await service.upsert_storage_credentials("media", "sa-east-1", "AKIA1234", "s3cr3t")

    settings = await service.get_client_settings()

    assert settings == {
        "bucketName": "media",
        "region": "sa-east-1",
        "cdnHost": "",
        "accessKey": "AKIA1234",
        "hasSecretKey": True,
    }
    assert "s3cr3t" not in str(settings)


@pytest.mark.asyncio
async def test_app_host(service):
    await service.set_app_host("https://panel.example.com")

    assert await service.get_app_host() == "https://panel.example.com"
