"""
Database initialization and session management
Provides engine creation and session lifecycle management
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from wellness_booking.config import get_config

# Register tables on SQLModel.metadata
from wellness_booking import db_models  # noqa: F401

logger = logging.getLogger(__name__)

# Global engine instance
_engine: Optional[Engine] = None


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine for the given URL"""
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)  # Needed for SQLite
        kwargs["connect_args"] = connect_args

    engine = create_engine(database_url, echo=False, **kwargs)
    logger.info(f"Database engine created: {engine.url.render_as_string(hide_password=True)}")
    return engine


def get_engine() -> Engine:
    """Get or create the global database engine"""
    global _engine
    if _engine is None:
        _engine = create_db_engine(get_config().get_database_url())
    return _engine


def init_database(engine: Optional[Engine] = None) -> None:
    """
    Initialize database tables
    Creates all tables if they don't exist
    """
    engine = engine or get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables initialized")


@contextmanager
def get_session(engine: Optional[Engine] = None) -> Generator[Session, None, None]:
    """
    Get a database session with automatic commit/rollback

    Usage:
        with get_session(engine) as session:
            hold = session.get(Hold, hold_id)
            ...

    Yields:
        Session: SQLModel session
    """
    engine = engine or get_engine()
    session = Session(engine, expire_on_commit=False)

    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error, transaction rolled back: {e}")
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def close_database() -> None:
    """Close database connections"""
    global _engine
    if _engine:
        _engine.dispose()
        _engine = None
        logger.info("Database connections closed")
