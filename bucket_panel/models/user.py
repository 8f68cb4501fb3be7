"""User account model"""

from typing import List, Optional
from datetime import datetime
from uuid import uuid4
from sqlmodel import SQLModel, Field, Column, JSON

from bucket_panel.models.base import timestamp_type, utc_now


class User(SQLModel, table=True):
    """Panel account with coarse role and fine-grained permissions"""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)  # stored lowercase
    role: str = Field(default="editor", index=True)  # admin, editor, viewer
    status: str = Field(default="invited", index=True)  # active, invited, blocked
    permissions: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    password_hash: str
    terms_accepted_at: Optional[datetime] = Field(default=None, sa_type=timestamp_type())
    created_at: datetime = Field(default_factory=utc_now, sa_type=timestamp_type(), nullable=False)
    last_access_at: Optional[datetime] = Field(default=None, sa_type=timestamp_type())
