"""Storage credential store backed by the singleton app_settings row"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from bucket_panel.config import settings
from bucket_panel.database import database
from bucket_panel.models.app_settings import AppSettings
from bucket_panel.models.base import utc_now
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class StorageCredentials:
    """Complete bucket credentials (all required fields present)"""
    bucket_name: str
    region: str
    access_key: str
    secret_key: str
    cdn_host: str = ""


class CredentialService:
    """
    Reads and replaces the storage credentials.

    Updates are whole-record replacements; concurrent admin edits follow
    last-writer-wins.
    """

    def _get_row(self, session) -> Optional[AppSettings]:
        return session.get(AppSettings, AppSettings.SINGLETON_ID)

    async def get_storage_credentials(self) -> Optional[StorageCredentials]:
        """Credentials, or None while setup is pending"""
        with database.get_session() as session:
            row = self._get_row(session)

            if row and row.bucket_name and row.region and row.access_key and row.secret_key:
                return StorageCredentials(
                    bucket_name=row.bucket_name,
                    region=row.region,
                    access_key=row.access_key,
                    secret_key=row.secret_key,
                    cdn_host=row.cdn_host or "",
                )

        return None

    async def upsert_storage_credentials(
        self,
        bucket_name: str,
        region: str,
        access_key: str,
        secret_key: Optional[str] = None,
        cdn_host: Optional[str] = None,
    ) -> AppSettings:
        """
        Replace the credentials record.

        A blank ``secret_key`` keeps the stored secret so the settings form can
        be saved without re-typing it.
        """
        with database.get_session() as session:
            row = self._get_row(session)
            new_secret = secret_key.strip() if secret_key and secret_key.strip() else None

            if row is None:
                row = AppSettings(id=AppSettings.SINGLETON_ID)

            row.bucket_name = bucket_name
            row.region = region
            row.access_key = access_key
            row.secret_key = new_secret or row.secret_key
            row.cdn_host = cdn_host or ""
            row.updated_at = utc_now()

            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info("storage_credentials_updated", bucket=bucket_name, region=region)
            return row

    async def get_app_host(self) -> str:
        with database.get_session() as session:
            row = self._get_row(session)
            if row and row.app_host:
                return row.app_host
        return settings.public_app_url or ""

    async def set_app_host(self, app_host: str):
        with database.get_session() as session:
            row = self._get_row(session) or AppSettings(id=AppSettings.SINGLETON_ID)
            row.app_host = app_host
            row.updated_at = utc_now()
            session.add(row)
            session.commit()

    def sanitize_for_client(self, row: Any) -> Dict[str, Any]:
        """
        Client-safe view of the credentials; the secret becomes a flag.

        Args:
            row: AppSettings, StorageCredentials or None
        """
        if row is None:
            return {
                "bucketName": "",
                "region": "",
                "cdnHost": "",
                "accessKey": "",
                "hasSecretKey": False,
            }

        return {
            "bucketName": row.bucket_name or "",
            "region": row.region or "",
            "cdnHost": row.cdn_host or "",
            "accessKey": row.access_key or "",
            "hasSecretKey": bool(row.secret_key),
        }

    async def get_client_settings(self) -> Dict[str, Any]:
        """Stored record (even if incomplete) in its client-safe form"""
        with database.get_session() as session:
            return self.sanitize_for_client(self._get_row(session))


# Global credential service instance
credential_service = CredentialService()
