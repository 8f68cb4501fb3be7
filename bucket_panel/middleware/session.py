"""Session cookie helpers and FastAPI dependencies for access control"""

from typing import Callable, Optional

from fastapi import Depends, Request, Response

from bucket_panel.config import settings
from bucket_panel.errors import ForbiddenError, UnauthenticatedError
from bucket_panel.services.permission_service import Role, evaluate
from bucket_panel.services.token_service import AuthSession, token_service
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)


def set_auth_cookie(response: Response, token: str):
    """Attach the session token; replaces any previous session cookie"""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.token_ttl_seconds,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_auth_cookie(response: Response):
    response.set_cookie(
        key=settings.session_cookie_name,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def get_optional_session(request: Request) -> Optional[AuthSession]:
    """Session from the cookie, or None when missing/invalid/expired"""
    token = request.cookies.get(settings.session_cookie_name)
    return token_service.verify_or_none(token)


def require_session(session: Optional[AuthSession] = Depends(get_optional_session)) -> AuthSession:
    if session is None:
        raise UnauthenticatedError()
    return session


def require_admin(session: AuthSession = Depends(require_session)) -> AuthSession:
    if session.role != Role.ADMIN.value:
        raise ForbiddenError("Acesso restrito a administradores.")
    return session


def require_editor(session: AuthSession = Depends(require_session)) -> AuthSession:
    if session.role == Role.VIEWER.value:
        raise ForbiddenError("Seu perfil não possui permissão para esta ação.")
    return session


def require_permissions(*permissions: str, mode: str = "all") -> Callable[..., AuthSession]:
    """
    Build a dependency that checks the session's permissions.

    Example:
        @router.delete("", dependencies=[Depends(require_permissions("delete"))])
    """
    required = list(permissions)

    def dependency(session: AuthSession = Depends(require_session)) -> AuthSession:
        result = evaluate(session.permissions, required, mode)
        if not result.allowed:
            logger.info(
                "permission_denied",
                user_id=session.id,
                required=required,
                missing=result.missing,
            )
            raise ForbiddenError(
                f"Permissões insuficientes: requer {', '.join(result.missing)}."
            )
        return session

    return dependency
