"""Authentication endpoints: login, logout, session and terms acceptance"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from bucket_panel.errors import BadRequestError, UnauthenticatedError, ValidationError
from bucket_panel.middleware.session import clear_auth_cookie, require_session, set_auth_cookie
from bucket_panel.schemas import LoginRequest, TermsRequest
from bucket_panel.services.permission_service import describe_capabilities
from bucket_panel.services.token_service import AuthSession, token_service
from bucket_panel.services.user_service import user_service
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

TERMS_CONFIRMATION = "entendido"


@router.post("/auth/login")
async def login(body: LoginRequest):
    email = (body.email or "").strip()
    password = body.password or ""

    if not email or not password:
        raise BadRequestError("Informe e-mail e senha.")

    session = await user_service.authenticate(email, password)
    if session is None:
        logger.info("login_failed")
        raise UnauthenticatedError("Credenciais inválidas ou usuário bloqueado.")

    response = JSONResponse(content={"user": session.to_public_dict()})
    set_auth_cookie(response, token_service.issue_for_session(session))
    logger.info("login_succeeded", user_id=session.id)
    return response


@router.post("/auth/logout")
async def logout():
    response = JSONResponse(content={"message": "Sessão encerrada."})
    clear_auth_cookie(response)
    return response


@router.get("/auth/session")
async def current_session(session: AuthSession = Depends(require_session)):
    """Session user plus the capability map used to render gated controls"""
    return {
        "user": session.to_public_dict(),
        "capabilities": describe_capabilities(session.role, session.permissions),
    }


@router.post("/users/terms")
async def accept_terms(body: TermsRequest, session: AuthSession = Depends(require_session)):
    confirmation = (body.confirmation or "").strip().lower()

    if confirmation != TERMS_CONFIRMATION:
        raise ValidationError(
            'Para prosseguir, digite exatamente "entendido" no campo de confirmação.'
        )

    if session.terms_accepted_at:
        return {"message": "Termos já aceitos anteriormente.", "user": session.to_public_dict()}

    updated = await user_service.accept_terms(session.id)

    response = JSONResponse(
        content={"message": "Termos aceitos com sucesso.", "user": updated.to_public_dict()}
    )
    set_auth_cookie(response, token_service.issue_for_session(updated))
    return response
