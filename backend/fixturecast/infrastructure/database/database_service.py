import os
import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///./fixturecast.db"


class DatabaseService:
    """
    Service for managing database connections and sessions.
    """

    def __init__(self, db_url: Optional[str] = None):
        # Priority: db_url param -> DATABASE_URL env -> sqlite fallback
        self.db_url = db_url or os.getenv("DATABASE_URL")

        if not self.db_url:
            self.db_url = DEFAULT_DATABASE_URL
            logger.warning(f"DATABASE_URL not found. Falling back to SQLite: {self.db_url}")

        # Old Heroku/Render URLs use the postgres:// scheme
        if self.db_url.startswith("postgres://"):
            self.db_url = self.db_url.replace("postgres://", "postgresql://", 1)

        engine_kwargs = {"pool_pre_ping": True}
        if self.db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            # An in-memory database lives only as long as its single connection
            if ":memory:" in self.db_url or self.db_url in ("sqlite://", "sqlite:///"):
                engine_kwargs["poolclass"] = StaticPool

        try:
            self.engine = create_engine(self.db_url, **engine_kwargs)
            self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
            logger.info(
                f"DatabaseService initialized with {self.db_url.split('@')[-1] if '@' in self.db_url else 'local DB'}"
            )
        except Exception as e:
            logger.error(f"Failed to initialize DatabaseService: {e}")
            raise

    def create_tables(self):
        """Create all tables defined in Base."""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()


# Singleton instance access
_db_instance = None


def get_database_service() -> DatabaseService:
    """Get the singleton database service instance."""
    global _db_instance
    if _db_instance is None:
        _db_instance = DatabaseService()
    return _db_instance
