"""S3 storage service - thin wrapper over boto3 for the panel's bucket operations"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse, urlunparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from bucket_panel.config import settings
from bucket_panel.errors import UpstreamError
from bucket_panel.services.credential_service import StorageCredentials
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)

FOLDER_PLACEHOLDER_METADATA = {"panel-folder-placeholder": "true"}


def encode_key(key: str) -> str:
    """URL-encode each key segment, keeping the slashes"""
    return "/".join(quote(segment, safe="") for segment in key.split("/"))


def build_public_url(bucket_name: str, region: str, key: str) -> str:
    return f"https://{bucket_name}.s3.{region}.amazonaws.com/{encode_key(key)}"


def to_cdn_url(url: str, cdn_host: Optional[str]) -> str:
    """
    Swap the storage host of a public URL for the CDN host.

    Example:
        >>> to_cdn_url("https://b.s3.us-east-1.amazonaws.com/a.png", "cdn.example.com")
        'https://cdn.example.com/a.png'
    """
    if not cdn_host:
        return url
    try:
        parsed = urlparse(url)
        host = cdn_host.split("://", 1)[-1].rstrip("/")
        scheme = "https" if cdn_host.startswith("https") else parsed.scheme
        return urlunparse(parsed._replace(scheme=scheme, netloc=host))
    except ValueError:
        return url


class StorageService:
    """
    Bucket operations for one set of credentials.

    boto3 is synchronous; every call runs in a worker thread so request
    handlers stay non-blocking. botocore failures are logged with their
    details and re-raised as ``UpstreamError`` carrying a generic message.
    """

    def __init__(self, credentials: StorageCredentials, client: Any = None):
        self.credentials = credentials
        self.client = client or boto3.client(
            "s3",
            region_name=credentials.region,
            aws_access_key_id=credentials.access_key,
            aws_secret_access_key=credentials.secret_key,
            config=Config(signature_version="s3v4"),
        )

    @property
    def bucket(self) -> str:
        return self.credentials.bucket_name

    async def _call(self, operation: str, user_message: str, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(getattr(self.client, operation), **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "storage_operation_failed",
                operation=operation,
                bucket=self.bucket,
                error=str(e),
            )
            raise UpstreamError(user_message) from e

    def public_url(self, key: str) -> str:
        return build_public_url(self.bucket, self.credentials.region, key)

    def cdn_url(self, key: str) -> str:
        return to_cdn_url(self.public_url(key), self.credentials.cdn_host)

    async def list_objects(self, max_keys: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        List bucket objects, following continuation tokens up to ``max_keys``.

        Returns:
            Raw ``Contents`` entries from ListObjectsV2
        """
        limit = max_keys or settings.listing_max_keys
        objects: List[Dict[str, Any]] = []
        token: Optional[str] = None

        while len(objects) < limit:
            params: Dict[str, Any] = {
                "Bucket": self.bucket,
                "MaxKeys": min(1000, limit - len(objects)),
                "FetchOwner": True,
            }
            if token:
                params["ContinuationToken"] = token

            response = await self._call(
                "list_objects_v2", "Falha ao consultar objetos no S3.", **params
            )
            objects.extend(item for item in response.get("Contents", []) if item.get("Key"))

            if not response.get("IsTruncated"):
                break
            token = response.get("NextContinuationToken")
            if not token:
                break

        return objects[:limit]

    async def presign_upload(
        self,
        key: str,
        content_type: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Generate a presigned PUT URL for ``key``.

        Returns:
            Dict with uploadUrl, key, expiresAt, headers, publicUrl, cdnUrl
        """
        expires_in = expires_in or settings.upload_url_ttl_seconds
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        headers: Dict[str, str] = {}
        if content_type:
            params["ContentType"] = content_type
            headers["Content-Type"] = content_type

        upload_url = await self._call(
            "generate_presigned_url",
            "Não foi possível preparar o upload.",
            ClientMethod="put_object",
            Params=params,
            ExpiresIn=expires_in,
            HttpMethod="PUT",
        )
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)

        return {
            "uploadUrl": upload_url,
            "key": key,
            "expiresAt": expires_at.isoformat().replace("+00:00", "Z"),
            "headers": headers,
            "publicUrl": self.public_url(key),
            "cdnUrl": self.cdn_url(key),
        }

    async def delete_object(self, key: str):
        await self._call(
            "delete_object",
            "Não foi possível remover o arquivo.",
            Bucket=self.bucket,
            Key=key,
        )
        logger.info("object_deleted", bucket=self.bucket, key=key)

    async def prefix_exists(self, prefix: str) -> bool:
        response = await self._call(
            "list_objects_v2",
            "Não foi possível criar a pasta no bucket.",
            Bucket=self.bucket,
            Prefix=prefix,
            MaxKeys=1,
        )
        return (response.get("KeyCount") or 0) > 0

    async def create_folder_placeholder(self, folder_key: str):
        """Store an empty ``prefix/name/`` object marking an explicit folder"""
        await self._call(
            "put_object",
            "Não foi possível criar a pasta no bucket.",
            Bucket=self.bucket,
            Key=folder_key,
            Body=b"",
            Metadata=FOLDER_PLACEHOLDER_METADATA,
        )
        logger.info("folder_placeholder_created", bucket=self.bucket, key=folder_key)


def create_storage_service(credentials: StorageCredentials) -> StorageService:
    """Factory used by the HTTP handlers (patched in tests)"""
    return StorageService(credentials)
