"""Activity log model"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import Index

from bucket_panel.models.base import timestamp_type, utc_now


class ActivityLog(SQLModel, table=True):
    """Append-only audit entry for side-effecting operations"""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("idx_activity_created_action", "created_at", "action"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    user_name: str
    user_email: str
    action: str = Field(index=True)  # file_upload_prepared, file_deleted, folder_created
    target_key: Optional[str] = Field(default=None)
    details: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, sa_type=timestamp_type(), nullable=False, index=True)
