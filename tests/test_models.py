"""Tests for model timestamps"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import DateTime
from sqlmodel import select

from bucket_panel.models import ActivityLog, AppSettings, OnboardingState, User
from bucket_panel.models.base import to_iso, utc_now
from bucket_panel.services.user_service import UserService


class TestTimestampColumns:
    def test_defaults_are_timezone_aware(self):
        user = User(name="Ana", email="ana@example.com", password_hash="x")
        entry = ActivityLog(user_id="u1", user_name="Ana", user_email="ana@example.com", action="file_deleted")
        row = AppSettings()

        for value in (user.created_at, entry.created_at, row.created_at, row.updated_at):
            assert value.tzinfo is not None
            assert value.utcoffset() == timedelta(0)

    @pytest.mark.parametrize(
        "column",
        [
            User.__table__.c.created_at,
            User.__table__.c.terms_accepted_at,
            User.__table__.c.last_access_at,
            AppSettings.__table__.c.created_at,
            AppSettings.__table__.c.updated_at,
            OnboardingState.__table__.c.completed_at,
            ActivityLog.__table__.c.created_at,
        ],
    )
    def test_columns_keep_timezone(self, column):
        assert isinstance(column.type, DateTime)
        assert column.type.timezone is True


class TestToIso:
    def test_none(self):
        assert to_iso(None) is None

    def test_naive_is_read_as_utc(self):
        assert to_iso(datetime(2024, 10, 1, 12, 30)) == "2024-10-01T12:30:00.000Z"

    def test_offset_is_converted_to_utc(self):
        value = datetime(2024, 10, 1, 9, 30, tzinfo=timezone(timedelta(hours=-3)))

        assert to_iso(value) == "2024-10-01T12:30:00.000Z"

    def test_utc_now(self):
        assert utc_now().tzinfo is timezone.utc


@pytest.mark.asyncio
async def test_timestamps_survive_a_round_trip(db):
    service = UserService()
    user, password = await service.create_user(name="Camila", email="camila@example.com")

    before = utc_now() - timedelta(seconds=5)
    session = await service.authenticate("camila@example.com", password)
    await service.accept_terms(session.id)

    with db.get_session() as db_session:
        stored = db_session.exec(select(User).where(User.id == user["id"])).one()
        for value in (stored.created_at, stored.last_access_at, stored.terms_accepted_at):
            assert value is not None
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            assert value >= before

    assert user["createdAt"].endswith("Z")
