"""Activity log endpoint"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from bucket_panel.errors import ForbiddenError
from bucket_panel.middleware.session import require_session
from bucket_panel.services.activity_service import activity_service
from bucket_panel.services.permission_service import Role
from bucket_panel.services.token_service import AuthSession

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("")
async def list_activity(
    search: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    session: AuthSession = Depends(require_session),
):
    if session.role != Role.ADMIN.value:
        raise ForbiddenError("Apenas administradores podem visualizar as atividades.")

    return {"logs": await activity_service.query(search=search, limit=limit)}
