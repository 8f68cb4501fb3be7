"""Singleton settings rows: storage credentials and onboarding state"""

from typing import ClassVar, Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from bucket_panel.models.base import timestamp_type, utc_now


class AppSettings(SQLModel, table=True):
    """Storage credentials and public app host (single row)"""

    __tablename__ = "app_settings"

    SINGLETON_ID: ClassVar[str] = "app-settings"

    id: str = Field(default="app-settings", primary_key=True)
    app_host: Optional[str] = Field(default=None)
    bucket_name: Optional[str] = Field(default=None)
    region: Optional[str] = Field(default=None)
    cdn_host: Optional[str] = Field(default=None)
    access_key: Optional[str] = Field(default=None)
    secret_key: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, sa_type=timestamp_type(), nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=timestamp_type(), nullable=False)


class OnboardingState(SQLModel, table=True):
    """First-run setup completion marker (single row)"""

    __tablename__ = "onboarding_state"

    SINGLETON_ID: ClassVar[str] = "onboarding-state"

    id: str = Field(default="onboarding-state", primary_key=True)
    completed_at: Optional[datetime] = Field(default=None, sa_type=timestamp_type())
