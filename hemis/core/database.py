"""
Database connection and session management
"""
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from hemis.core.config import settings


def build_engine(url: str):
    """Create engine with pool and timeout settings suited to the backend."""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        connect_args={
            "connect_timeout": 10,  # 10 second connection timeout
            "options": "-c statement_timeout=30000"  # 30 second query timeout (PostgreSQL)
        },
        pool_recycle=3600,  # Recycle connections after 1 hour
    )


engine = build_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.
    Use in FastAPI route dependencies.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def read_only_session(session_factory=SessionLocal):
    """
    Session scope for read paths.
    Always rolls back on exit so nothing leaks from a reader.
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
