"""
Session token generation and validation.

Sessions are signed (not encrypted) JWTs carried in an HTTP-only cookie.
Verification fails closed: a bad signature, an expired token or a payload
outside the role/permission vocabulary never yields a session.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt

from bucket_panel.config import settings
from bucket_panel.services.permission_service import (
    AVAILABLE_PERMISSIONS,
    is_valid_role,
    normalize_permissions,
)
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)

ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for token verification failures"""
    pass


class InvalidTokenError(TokenError):
    """Signature mismatch or malformed payload"""
    pass


class TokenExpiredError(TokenError):
    """Token signature is valid but its lifetime is over"""
    pass


class TokenConfigurationError(RuntimeError):
    """AUTH_SECRET is missing"""
    pass


@dataclass
class AuthSession:
    """
    Decoded session.

    Attributes:
        id: User id
        email: User email
        name: Display name
        role: admin, editor or viewer
        permissions: Granted permission strings
        terms_accepted_at: ISO timestamp or None
    """
    id: str
    email: str
    name: str
    role: str
    permissions: List[str] = field(default_factory=list)
    terms_accepted_at: Optional[str] = None

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "permissions": list(self.permissions),
            "termsAcceptedAt": self.terms_accepted_at,
        }


class TokenService:
    """Issues and verifies session tokens"""

    def __init__(self, secret_key: Optional[str] = None, ttl_seconds: Optional[int] = None):
        """
        Args:
            secret_key: Signing secret (defaults to AUTH_SECRET)
            ttl_seconds: Token lifetime (defaults to 8 hours)
        """
        self._secret_key = secret_key
        self._ttl_seconds = ttl_seconds

    @property
    def secret_key(self) -> str:
        secret = self._secret_key or settings.auth_secret
        if not secret:
            raise TokenConfigurationError("AUTH_SECRET não configurado. Defina no .env.")
        return secret

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds or settings.token_ttl_seconds

    def issue(
        self,
        user_id: str,
        email: str,
        name: str,
        role: str,
        permissions: List[str],
        terms_accepted_at: Optional[str] = None,
    ) -> str:
        """
        Create a signed session token.

        Returns:
            JWT string expiring ``ttl_seconds`` after issuance
        """
        if not is_valid_role(role):
            raise ValueError(f"Invalid role: {role}")

        now = datetime.now(timezone.utc)
        payload = {
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.ttl_seconds)).timestamp()),
            "sub": user_id,
            "id": user_id,
            "email": email,
            "name": name,
            "role": role,
            "permissions": normalize_permissions(permissions),
            "termsAcceptedAt": terms_accepted_at,
        }

        token = jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)
        logger.debug(f"Session token issued for {email}")
        return token

    def issue_for_session(self, session: AuthSession) -> str:
        return self.issue(
            user_id=session.id,
            email=session.email,
            name=session.name,
            role=session.role,
            permissions=session.permissions,
            terms_accepted_at=session.terms_accepted_at,
        )

    def verify(self, token: str) -> AuthSession:
        """
        Verify and decode a session token.

        Raises:
            TokenExpiredError: Lifetime is over
            InvalidTokenError: Bad signature or payload
        """
        if not token:
            raise InvalidTokenError("Empty token")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        try:
            role = payload["role"]
            permissions = payload.get("permissions") or []
            session = AuthSession(
                id=str(payload["id"]),
                email=str(payload["email"]),
                name=str(payload["name"]),
                role=role,
                permissions=list(permissions),
                terms_accepted_at=payload.get("termsAcceptedAt"),
            )
        except (KeyError, TypeError) as e:
            raise InvalidTokenError(f"Malformed payload: {e}") from e

        if not is_valid_role(role):
            raise InvalidTokenError(f"Unknown role: {role}")
        if any(permission not in AVAILABLE_PERMISSIONS for permission in session.permissions):
            raise InvalidTokenError("Unknown permission in token")

        return session

    def verify_or_none(self, token: Optional[str]) -> Optional[AuthSession]:
        """Verify a token, returning None on any verification failure"""
        if not token:
            return None
        try:
            return self.verify(token)
        except TokenExpiredError:
            logger.debug("Session token expired")
            return None
        except InvalidTokenError as e:
            logger.warning(f"Rejected session token: {e}")
            return None


# Global token service instance
token_service = TokenService()
