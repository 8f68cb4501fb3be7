"""Error taxonomy shared by services and HTTP handlers.

Every error carries the HTTP status it maps to and a short, user-facing
message. Upstream details never go into ``message``; they are logged where
the error is raised.
"""

from typing import Optional


class PanelError(Exception):
    """Base error converted into a JSON ``{"message": ...}`` response"""

    status_code = 500
    default_message = "Ocorreu um erro inesperado."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(PanelError):
    """No session, or the session token failed verification"""

    status_code = 401
    default_message = "Não autorizado."


class ForbiddenError(PanelError):
    """Valid session without the required role or permission"""

    status_code = 403
    default_message = "Seu perfil não possui permissão para esta ação."


class BadRequestError(PanelError):
    status_code = 400
    default_message = "Requisição inválida."


class ValidationError(PanelError):
    status_code = 422
    default_message = "Dados inválidos."


class NotFoundError(PanelError):
    status_code = 404
    default_message = "Recurso não encontrado."


class ConflictError(PanelError):
    status_code = 409
    default_message = "O recurso já existe."


class SetupRequiredError(PanelError):
    """Storage credentials have not been configured yet"""

    status_code = 400
    default_message = (
        "Credenciais do S3 não configuradas. Acesse o painel de configurações "
        "para informar bucket e chaves."
    )


class UpstreamError(PanelError):
    """The object store (or another external collaborator) failed"""

    status_code = 500
    default_message = "Falha ao comunicar com o storage."
