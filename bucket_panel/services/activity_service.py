"""Activity log service - append-only audit trail of side-effecting actions"""

from enum import Enum
from typing import Any, Dict, List, Optional
from sqlmodel import col, or_, select

from bucket_panel.config import settings
from bucket_panel.database import database
from bucket_panel.models.activity_log import ActivityLog
from bucket_panel.models.base import to_iso
from bucket_panel.services.token_service import AuthSession
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)


class ActivityAction(str, Enum):
    FILE_UPLOAD_PREPARED = "file_upload_prepared"
    FILE_DELETED = "file_deleted"
    FOLDER_CREATED = "folder_created"


LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Make ``%`` and ``_`` match literally in a LIKE pattern"""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _format_timestamp(entry: ActivityLog) -> str:
    return to_iso(entry.created_at)


class ActivityService:
    """Records and queries activity entries"""

    def normalize_limit(self, limit: Any) -> int:
        """Positive limits are floored and clamped; anything else uses the default"""
        try:
            value = float(limit)
        except (TypeError, ValueError):
            return settings.activity_default_limit

        if value != value or value <= 0 or value == float("inf"):
            return settings.activity_default_limit

        return min(int(value), settings.activity_max_limit) or settings.activity_default_limit

    async def record(
        self,
        actor: AuthSession,
        action: ActivityAction,
        target_key: Optional[str] = None,
        details: Optional[str] = None,
    ):
        """
        Persist an entry. Never raises: a failed insert is logged and the
        triggering operation carries on.
        """
        try:
            with database.get_session() as session:
                entry = ActivityLog(
                    user_id=actor.id,
                    user_name=actor.name,
                    user_email=actor.email,
                    action=ActivityAction(action).value,
                    target_key=target_key or None,
                    details=details or None,
                )
                session.add(entry)
                session.commit()
        except Exception as e:
            logger.error(f"Failed to persist activity log: {e}", action=getattr(action, "value", action), target_key=target_key)

    async def query(self, search: Optional[str] = None, limit: Any = None) -> List[Dict[str, Any]]:
        """
        Entries newest first.

        Args:
            search: Case-insensitive substring over action, user name/email,
                target key and details
            limit: Maximum entries (default 200, at most 500)
        """
        statement = select(ActivityLog)

        term = (search or "").strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            statement = statement.where(
                or_(
                    col(ActivityLog.action).ilike(pattern, escape=LIKE_ESCAPE),
                    col(ActivityLog.user_name).ilike(pattern, escape=LIKE_ESCAPE),
                    col(ActivityLog.user_email).ilike(pattern, escape=LIKE_ESCAPE),
                    col(ActivityLog.target_key).ilike(pattern, escape=LIKE_ESCAPE),
                    col(ActivityLog.details).ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        statement = statement.order_by(
            col(ActivityLog.created_at).desc(), col(ActivityLog.id).desc()
        ).limit(self.normalize_limit(limit))

        with database.get_session() as session:
            entries = session.exec(statement).all()

            return [
                {
                    "id": str(entry.id),
                    "userId": entry.user_id,
                    "userName": entry.user_name,
                    "userEmail": entry.user_email,
                    "action": entry.action,
                    "targetKey": entry.target_key,
                    "details": entry.details,
                    "createdAt": _format_timestamp(entry),
                }
                for entry in entries
            ]


# Global activity service instance
activity_service = ActivityService()
