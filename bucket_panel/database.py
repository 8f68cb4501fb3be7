"""Database setup and configuration using SQLModel"""

from typing import Dict, Any, Optional
from sqlmodel import SQLModel, create_engine, Session, select
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
import os

from bucket_panel.config import settings
from bucket_panel.utils.logger import get_logger
from bucket_panel.models.user import User
from bucket_panel.models.app_settings import AppSettings, OnboardingState
from bucket_panel.models.activity_log import ActivityLog

logger = get_logger(__name__)


class DatabaseService:
    """Database service for managing SQLModel database"""

    def __init__(self):
        self.engine: Optional[Engine] = None

    def _normalize_url(self, database_url: str) -> str:
        """Accept Prisma-style ``file:`` URLs and create SQLite directories"""
        if database_url.startswith("file:"):
            database_url = "sqlite:///" + database_url.replace("file:", "")

        if database_url.startswith("sqlite:///"):
            path = database_url.replace("sqlite:///", "")
            if path.startswith("./"):
                path = path[2:]
            if path and path != ":memory:":
                db_dir = os.path.dirname(path)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
                    logger.debug(f"Created database directory: {db_dir}")
                database_url = f"sqlite:///{path.replace(os.sep, '/')}"

        return database_url

    def initialize(self, database_url: Optional[str] = None):
        """Initialize database connection and create tables"""
        try:
            database_url = self._normalize_url(database_url or settings.database_url)
            logger.debug(f"Connecting to database: {database_url.split('/')[-1]}")

            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # A single shared connection keeps the in-memory schema alive
                self.engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                    echo=False,
                )
            elif database_url.startswith("sqlite:///"):
                self.engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                    echo=False,
                    pool_pre_ping=True,
                    pool_recycle=3600,
                )
                with self.engine.connect() as conn:
                    # Enable WAL mode
                    conn.exec_driver_sql("PRAGMA journal_mode=WAL")
                    conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
                    conn.exec_driver_sql("PRAGMA temp_store=MEMORY")
                    conn.commit()
            else:
                self.engine = create_engine(
                    database_url,
                    echo=False,
                    pool_pre_ping=True,
                    pool_size=5,
                    max_overflow=10,
                    pool_recycle=3600,
                )

            SQLModel.metadata.create_all(self.engine)
            logger.debug("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    def get_session(self) -> Session:
        """Get database session"""
        if not self.engine:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return Session(self.engine)

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            with self.get_session() as session:
                session.exec(select(1)).first()
                return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def get_stats(self) -> Dict[str, Any]:
        """Get database statistics"""
        try:
            with self.get_session() as session:
                users = session.exec(select(User)).all()
                activity = session.exec(select(ActivityLog.id)).all()
                settings_row = session.get(AppSettings, AppSettings.SINGLETON_ID)
                onboarding = session.get(OnboardingState, OnboardingState.SINGLETON_ID)

                return {
                    "database": {
                        "total_users": len(users),
                        "active_users": len([u for u in users if u.status == "active"]),
                        "activity_entries": len(activity),
                        "storage_configured": bool(settings_row and settings_row.bucket_name),
                        "onboarding_completed": bool(onboarding and onboarding.completed_at),
                    }
                }
        except Exception as e:
            logger.error(f"Failed to get database stats: {e}")
            return {"database": {}}

    def close(self):
        """Close database connection"""
        if self.engine:
            self.engine.dispose()
            self.engine = None
            logger.debug("Database connection closed")


# Global database instance
database = DatabaseService()
