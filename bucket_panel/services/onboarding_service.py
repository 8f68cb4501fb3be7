"""First-run onboarding: admin account, storage credentials and completion state"""

import asyncio
import time
from typing import Any, Dict, Optional

from bucket_panel.config import settings
from bucket_panel.database import database
from bucket_panel.errors import ValidationError
from bucket_panel.models.app_settings import OnboardingState
from bucket_panel.models.base import utc_now
from bucket_panel.services.credential_service import credential_service
from bucket_panel.services.user_service import user_service
from bucket_panel.utils.logger import get_logger
from bucket_panel.utils.passwords import MAX_PASSWORD_BYTES

logger = get_logger(__name__)


class OnboardingStatusCache:
    """
    Cached onboarding completion flag.

    One instance lives on the application state. Entries expire after
    ``ttl_seconds``; ``invalidate()`` drops the value so the next read hits
    the database.
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        self._ttl = settings.onboarding_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._value: Optional[bool] = None
        self._timestamp = 0.0
        self._lock = asyncio.Lock()

    def _is_valid(self) -> bool:
        return self._value is not None and (time.monotonic() - self._timestamp) < self._ttl

    async def get(self) -> Optional[bool]:
        """Cached value, or None when missing or expired"""
        async with self._lock:
            if self._is_valid():
                return self._value
            self._value = None
        return None

    async def set(self, completed: bool):
        async with self._lock:
            self._value = completed
            self._timestamp = time.monotonic()

    async def invalidate(self):
        async with self._lock:
            self._value = None
            self._timestamp = 0.0


class OnboardingService:
    """Reads and completes the first-run setup"""

    async def _read_completed(self) -> bool:
        with database.get_session() as session:
            state = session.get(OnboardingState, OnboardingState.SINGLETON_ID)
            return bool(state and state.completed_at)

    async def is_completed(self, cache: Optional[OnboardingStatusCache] = None) -> bool:
        """Completion flag, served from ``cache`` while it is fresh"""
        if cache is not None:
            cached = await cache.get()
            if cached is not None:
                logger.debug("Onboarding status cache hit")
                return cached

        completed = await self._read_completed()

        if cache is not None:
            await cache.set(completed)
        return completed

    async def complete(
        self,
        payload: Dict[str, Any],
        cache: Optional[OnboardingStatusCache] = None,
    ) -> Dict[str, Any]:
        """
        Run (or re-run) onboarding. Every write is an upsert, so repeating the
        same payload leaves a single admin and a single settings record.

        Args:
            payload: appHost, adminName, adminEmail, adminPassword, bucketName,
                region, accessKey, secretKey and optional cdnHost
            cache: Status cache to invalidate once the state changes

        Returns:
            Client-safe storage settings
        """
        values = {key: str(value or "").strip() for key, value in payload.items()}
        # Passwords are taken verbatim
        admin_password = str(payload.get("adminPassword") or "")

        if not (values.get("appHost") and values.get("adminName") and values.get("adminEmail") and admin_password):
            raise ValidationError("Informe host do app e credenciais do administrador.")

        if not (values.get("bucketName") and values.get("region") and values.get("accessKey") and values.get("secretKey")):
            raise ValidationError("Informe bucket, região e chaves da AWS.")

        if len(admin_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"A senha do administrador deve ter no máximo {MAX_PASSWORD_BYTES} bytes.")

        await user_service.upsert_admin(values["adminName"], values["adminEmail"], admin_password)

        row = await credential_service.upsert_storage_credentials(
            bucket_name=values["bucketName"],
            region=values["region"],
            access_key=values["accessKey"],
            secret_key=values["secretKey"],
            cdn_host=values.get("cdnHost") or "",
        )
        await credential_service.set_app_host(values["appHost"])

        with database.get_session() as session:
            state = session.get(OnboardingState, OnboardingState.SINGLETON_ID)
            if state is None:
                state = OnboardingState(id=OnboardingState.SINGLETON_ID)
            state.completed_at = utc_now()
            session.add(state)
            session.commit()

        if cache is not None:
            await cache.invalidate()

        logger.info("onboarding_completed", bucket=values["bucketName"], region=values["region"])
        return credential_service.sanitize_for_client(row)


# Global onboarding service instance
onboarding_service = OnboardingService()
