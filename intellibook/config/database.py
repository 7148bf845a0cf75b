"""Database configuration and connection setup"""
import logging
import os
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from intellibook.config.settings import Settings, get_settings
from intellibook.core.locks import BookingLock, lock_for_dialect

logger = logging.getLogger(__name__)


def _enable_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> Engine:
    """Create an engine for the configured backend"""
    url = make_url(settings.DATABASE_URL)

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            directory = os.path.dirname(os.path.abspath(url.database))
            os.makedirs(directory, exist_ok=True)
        engine = create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=settings.DB_ECHO,
        )
        event.listen(engine, "connect", _enable_sqlite_pragmas)
        return engine

    # Create database engine with connection pooling
    return create_engine(
        settings.DATABASE_URL,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=settings.DB_ECHO,
    )


class Database:
    """
    Owns the engine, the session factory and the booking lock for one
    deployment. Built once at startup and torn down with dispose().
    """

    def __init__(self, settings: Optional[Settings] = None, engine: Optional[Engine] = None):
        self.settings = settings or get_settings()
        self.engine = engine or build_engine(self.settings)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.booking_lock: BookingLock = lock_for_dialect(self.engine.dialect.name)
        logger.info(
            f"Database ready (dialect={self.engine.dialect.name}, lock={self.booking_lock.name})"
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> Session:
        return self.SessionLocal()

    def create_tables(self):
        """Create any missing tables"""
        from intellibook.models import Base

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False
        return True

    def dispose(self):
        self.engine.dispose()
