"""First-run onboarding endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from bucket_panel.config import settings
from bucket_panel.errors import ForbiddenError
from bucket_panel.middleware.session import clear_auth_cookie, get_optional_session
from bucket_panel.schemas import OnboardingRequest
from bucket_panel.services.onboarding_service import OnboardingStatusCache, onboarding_service
from bucket_panel.services.permission_service import Role
from bucket_panel.services.token_service import AuthSession

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])

ONBOARDING_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def get_onboarding_cache(request: Request) -> OnboardingStatusCache:
    return request.app.state.onboarding_cache


@router.get("")
async def onboarding_status(cache: OnboardingStatusCache = Depends(get_onboarding_cache)):
    return {"completed": await onboarding_service.is_completed(cache)}


@router.post("")
async def complete_onboarding(
    body: OnboardingRequest,
    cache: OnboardingStatusCache = Depends(get_onboarding_cache),
    session: Optional[AuthSession] = Depends(get_optional_session),
):
    """
    Store the admin account, storage credentials and app host.

    Open while setup is pending; afterwards only an admin may re-run it.
    """
    if await onboarding_service.is_completed(cache):
        if session is None or session.role != Role.ADMIN.value:
            raise ForbiddenError("Onboarding já concluído. Apenas administradores podem refazê-lo.")

    storage_settings = await onboarding_service.complete(body.model_dump(by_alias=True), cache)

    response = JSONResponse(content={"message": "Onboarding concluído.", "settings": storage_settings})
    clear_auth_cookie(response)
    response.set_cookie(
        key=settings.onboarding_cookie_name,
        value="1",
        max_age=ONBOARDING_COOKIE_MAX_AGE,
        path="/",
        httponly=False,
        secure=settings.is_production,
        samesite="lax",
    )
    return response
