"""User directory endpoints (admin only)"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from bucket_panel.middleware.session import require_admin
from bucket_panel.schemas import CreateUserRequest, UpdateUserRequest
from bucket_panel.services.token_service import AuthSession
from bucket_panel.services.user_service import UNSET, user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
async def list_users(session: AuthSession = Depends(require_admin)):
    return await user_service.list_users()


@router.post("")
async def create_user(body: CreateUserRequest, session: AuthSession = Depends(require_admin)):
    """Create an invited user; the temporary password is only returned here"""
    user, password = await user_service.create_user(
        name=body.name or "",
        email=body.email or "",
        role=body.role or "editor",
        permissions=body.permissions,
    )
    return JSONResponse(status_code=201, content={"user": user, "password": password})


@router.patch("/{user_id}")
async def update_user(user_id: str, body: UpdateUserRequest, session: AuthSession = Depends(require_admin)):
    present = body.model_fields_set
    fields = {
        name: getattr(body, name) if name in present else UNSET
        for name in ("name", "email", "role", "status", "permissions")
    }

    user, password = await user_service.update_user(
        user_id,
        regenerate_password=body.regenerate_password,
        **fields,
    )

    content = {"user": user}
    if password:
        content["password"] = password
    return content
