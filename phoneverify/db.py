"""
Database configuration with lazy initialization.

The engine is created on first access so that importing the application
never opens a connection.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .core.config import settings

logger = logging.getLogger(__name__)

# Global engine instance (lazily initialized)
_engine = None
_SessionLocal = None

Base = declarative_base()


def get_engine():
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        # Log database URL safely (only scheme and first few chars, not full connection string)
        db_url_safe = settings.database_url[:30] + "..." if len(settings.database_url) > 30 else settings.database_url
        logger.info(f"[DB] Creating database engine for: {db_url_safe}")

        if settings.database_url.startswith("sqlite"):
            # SQLite: minimal pooling for dev
            _engine = create_engine(
                settings.database_url,
                connect_args={"check_same_thread": False}
            )
        else:
            _engine = create_engine(
                settings.database_url,
                pool_size=10,
                max_overflow=5,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
    return _engine


def get_session_local():
    """Get or create the SessionLocal class."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def init_db():
    """Create tables for all registered models."""
    from . import models  # noqa: F401  (registers models on Base)

    Base.metadata.create_all(bind=get_engine())
    logger.info("[DB] Schema ensured")


def get_db():
    """
    Dependency that provides a database session.
    Used by FastAPI's dependency injection.
    """
    session_class = get_session_local()
    db = session_class()
    try:
        yield db
    finally:
        db.close()
