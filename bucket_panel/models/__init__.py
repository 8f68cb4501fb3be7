"""Models module"""

from bucket_panel.models.user import User
from bucket_panel.models.app_settings import AppSettings, OnboardingState
from bucket_panel.models.activity_log import ActivityLog

__all__ = ["User", "AppSettings", "OnboardingState", "ActivityLog"]
