"""Pytest configuration and shared fixtures"""

import os

# Settings are read on import; pin a non-production environment first
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "error"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("AUTH_SECRET", "test-secret-key-with-enough-entropy-0123456789")

import pytest
from typing import Generator, List, Optional

from bucket_panel.database import database
from bucket_panel.services.token_service import AuthSession, token_service


@pytest.fixture(autouse=True)
def reset_env_vars() -> Generator[None, None, None]:
    """Reset environment variables before each test"""
    # Store original env vars
    original_env = os.environ.copy()

    # Clear threshold overrides so each test sees the defaults
    threshold_vars = [
        "UPLOAD_THRESHOLD_IMAGE_MB",
        "UPLOAD_THRESHOLD_VIDEO_MB",
        "UPLOAD_THRESHOLD_AUDIO_MB",
        "UPLOAD_THRESHOLD_PDF_MB",
        "UPLOAD_THRESHOLD_TEXT_MB",
        "UPLOAD_THRESHOLD_OTHER_MB",
    ]

    for var in threshold_vars:
        os.environ.pop(var, None)

    yield

    # Restore original env vars
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def db():
    """Fresh in-memory database for one test"""
    database.initialize("sqlite://")
    yield database
    database.close()


def make_session(
    role: str = "admin",
    permissions: Optional[List[str]] = None,
    user_id: str = "user-1",
    email: str = "ana@example.com",
    name: str = "Ana",
) -> AuthSession:
    return AuthSession(
        id=user_id,
        email=email,
        name=name,
        role=role,
        permissions=list(permissions if permissions is not None else ["upload", "delete", "visualizar", "compartilhar"]),
    )


def session_token(session: AuthSession) -> str:
    return token_service.issue_for_session(session)


@pytest.fixture
def session_factory():
    """Build AuthSession objects"""
    return make_session


@pytest.fixture
def token_factory():
    """Issue a session token for an AuthSession"""
    return session_token
