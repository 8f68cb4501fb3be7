"""Storage settings endpoints (admin only)"""

from fastapi import APIRouter, Depends

from bucket_panel.errors import ValidationError
from bucket_panel.middleware.session import require_admin
from bucket_panel.schemas import StorageSettingsRequest
from bucket_panel.services.credential_service import credential_service
from bucket_panel.services.token_service import AuthSession
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
async def get_settings(session: AuthSession = Depends(require_admin)):
    return {"settings": await credential_service.get_client_settings()}


@router.put("")
async def update_settings(body: StorageSettingsRequest, session: AuthSession = Depends(require_admin)):
    bucket_name = (body.bucket_name or "").strip()
    region = (body.region or "").strip()
    access_key = (body.access_key or "").strip()

    if not bucket_name or not region or not access_key:
        raise ValidationError(
            "Bucket, região e access key são obrigatórios para configurar o storage."
        )

    row = await credential_service.upsert_storage_credentials(
        bucket_name=bucket_name,
        region=region,
        access_key=access_key,
        secret_key=body.secret_key,
        cdn_host=(body.cdn_host or "").strip(),
    )
    logger.info("settings_updated", user_id=session.id)

    return {
        "message": "Configurações salvas com sucesso.",
        "settings": credential_service.sanitize_for_client(row),
    }
