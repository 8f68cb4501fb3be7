"""User directory service - accounts, credentials and terms acceptance"""

from typing import Any, Dict, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from bucket_panel.database import database
from bucket_panel.errors import ConflictError, NotFoundError, ValidationError
from bucket_panel.models.base import to_iso, utc_now
from bucket_panel.models.user import User
from bucket_panel.services.permission_service import (
    AVAILABLE_PERMISSIONS,
    AVAILABLE_STATUSES,
    PermissionInput,
    Role,
    UserStatus,
    is_valid_role,
    normalize_permissions,
)
from bucket_panel.services.token_service import AuthSession
from bucket_panel.utils.logger import get_logger
from bucket_panel.utils.passwords import generate_secure_password, hash_password, verify_password

logger = get_logger(__name__)

DUPLICATE_EMAIL_MESSAGE = "Já existe um usuário cadastrado com este e-mail."

# Sentinel for "field not present in the patch"
UNSET: Any = object()


def to_public_dict(user: User) -> Dict[str, Any]:
    """User without its password hash"""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "status": user.status,
        "permissions": list(user.permissions or []),
        "termsAcceptedAt": to_iso(user.terms_accepted_at),
        "createdAt": to_iso(user.created_at),
        "lastAccessAt": to_iso(user.last_access_at),
    }


def to_session(user: User) -> AuthSession:
    return AuthSession(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        permissions=normalize_permissions(user.permissions),
        terms_accepted_at=to_iso(user.terms_accepted_at),
    )


class UserService:
    """Service for managing panel accounts"""

    def _find_by_email(self, session, email: str) -> Optional[User]:
        statement = select(User).where(User.email == email.strip().lower())
        return session.exec(statement).first()

    async def list_users(self) -> Dict[str, Any]:
        """All users (newest first) and the permission vocabulary"""
        with database.get_session() as session:
            users = session.exec(select(User).order_by(col(User.created_at).desc())).all()
            return {
                "users": [to_public_dict(user) for user in users],
                "availablePermissions": list(AVAILABLE_PERMISSIONS),
            }

    async def create_user(
        self,
        name: str,
        email: str,
        role: str = Role.EDITOR.value,
        permissions: PermissionInput = None,
    ) -> Tuple[Dict[str, Any], str]:
        """
        Create an invited account with a generated temporary password.

        Returns:
            Tuple of (public user dict, plaintext temporary password). The
            password is returned once and only its hash is stored.

        Raises:
            ValidationError: Missing name/email or unknown role
            ConflictError: Email already registered
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()

        if not name or not email:
            raise ValidationError("Informe nome e e-mail para criar um usuário.")
        if not is_valid_role(role):
            raise ValidationError("Perfil inválido.")

        password = generate_secure_password()

        with database.get_session() as session:
            if self._find_by_email(session, email):
                raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

            user = User(
                name=name,
                email=email,
                role=role,
                status=UserStatus.INVITED.value,
                permissions=normalize_permissions(permissions),
                password_hash=hash_password(password),
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from e
            session.refresh(user)

            logger.info("user_created", user_id=user.id, role=role)
            return to_public_dict(user), password

    async def update_user(
        self,
        user_id: str,
        name: Any = UNSET,
        email: Any = UNSET,
        role: Any = UNSET,
        status: Any = UNSET,
        permissions: Any = UNSET,
        regenerate_password: bool = False,
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Apply a partial update. Only fields passed explicitly are touched.

        Returns:
            Tuple of (public user dict, new temporary password or None)

        Raises:
            ValidationError: Invalid field value or empty patch
            NotFoundError: Unknown user id
            ConflictError: Email taken by another account
        """
        updates: Dict[str, Any] = {}

        if name is not UNSET:
            value = str(name or "").strip()
            if not value:
                raise ValidationError("Informe um nome válido.")
            updates["name"] = value

        if email is not UNSET:
            value = str(email or "").strip().lower()
            if not value:
                raise ValidationError("Informe um e-mail válido.")
            updates["email"] = value

        if role is not UNSET:
            if not is_valid_role(role):
                raise ValidationError("Perfil inválido.")
            updates["role"] = role

        if status is not UNSET:
            if status not in AVAILABLE_STATUSES:
                raise ValidationError("Status inválido.")
            updates["status"] = status

        if permissions is not UNSET:
            updates["permissions"] = normalize_permissions(permissions)

        new_password = None
        if regenerate_password:
            new_password = generate_secure_password()
            updates["password_hash"] = hash_password(new_password)

        if not updates:
            raise ValidationError("Informe ao menos um campo para atualizar.")

        with database.get_session() as session:
            user = session.get(User, user_id)
            if not user:
                raise NotFoundError("Usuário não encontrado.")

            if "email" in updates and updates["email"] != user.email:
                if self._find_by_email(session, updates["email"]):
                    raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

            for field_name, value in updates.items():
                setattr(user, field_name, value)

            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from e
            session.refresh(user)

            logger.info(
                "user_updated",
                user_id=user.id,
                fields=sorted(k for k in updates if k != "password_hash"),
                password_regenerated=bool(new_password),
            )
            return to_public_dict(user), new_password

    async def authenticate(self, email: str, password: str) -> Optional[AuthSession]:
        """
        Check credentials.

        Returns:
            AuthSession on success, None for unknown, blocked or wrong password
        """
        if not email or not password:
            return None

        with database.get_session() as session:
            user = self._find_by_email(session, email)

            if not user:
                return None
            if user.status == UserStatus.BLOCKED.value:
                logger.info("login_rejected_blocked", user_id=user.id)
                return None
            if not verify_password(password, user.password_hash):
                return None

            user.status = UserStatus.ACTIVE.value
            user.last_access_at = utc_now()
            session.add(user)
            session.commit()
            session.refresh(user)

            return to_session(user)

    async def accept_terms(self, user_id: str) -> AuthSession:
        """Stamp the terms acceptance (once) and return the refreshed session"""
        with database.get_session() as session:
            user = session.get(User, user_id)
            if not user:
                raise NotFoundError("Usuário não encontrado.")

            if user.terms_accepted_at is None:
                user.terms_accepted_at = utc_now()
                session.add(user)
                session.commit()
                session.refresh(user)
                logger.info("terms_accepted", user_id=user.id)

            return to_session(user)

    async def upsert_admin(self, name: str, email: str, password: str) -> Dict[str, Any]:
        """
        Create or promote the administrator account.

        An existing account with the same email becomes an active admin with
        the new name and password; a new one is granted every permission.
        """
        with database.get_session() as session:
            user = self._find_by_email(session, email)

            if user:
                user.name = name
                user.role = Role.ADMIN.value
                user.status = UserStatus.ACTIVE.value
                user.password_hash = hash_password(password)
            else:
                user = User(
                    name=name,
                    email=email.strip().lower(),
                    role=Role.ADMIN.value,
                    status=UserStatus.ACTIVE.value,
                    permissions=list(AVAILABLE_PERMISSIONS),
                    password_hash=hash_password(password),
                )

            session.add(user)
            session.commit()
            session.refresh(user)
            logger.info("admin_upserted", user_id=user.id)
            return to_public_dict(user)

    async def reset_password(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Set a new password and re-activate the account; None if unknown"""
        with database.get_session() as session:
            user = self._find_by_email(session, email)
            if not user:
                return None

            user.password_hash = hash_password(password)
            user.status = UserStatus.ACTIVE.value
            user.last_access_at = utc_now()
            session.add(user)
            session.commit()
            session.refresh(user)
            logger.info("password_reset", user_id=user.id)
            return to_public_dict(user)


# Global user service instance
user_service = UserService()
