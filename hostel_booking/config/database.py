"""
Database connection settings for the hostel booking engine.
Provides SQLAlchemy engine creation and session management.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from hostel_booking.config.settings import settings

logger = logging.getLogger(__name__)


def create_db_engine(url: Optional[str] = None, **overrides: Any) -> Engine:
    """
    Create an engine for the given URL.

    Server databases get the configured connection pool; SQLite gets a
    connection that may be shared across threads.
    """
    url = url or settings.DATABASE_URL
    options: Dict[str, Any] = {
        "echo": settings.DB_ECHO,
        "pool_pre_ping": True,
    }

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
        connect_args.update(settings.DB_CONNECT_ARGS)
        options["connect_args"] = connect_args
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_OVERFLOW,
            pool_recycle=3600,
            connect_args=settings.DB_CONNECT_ARGS,
        )

    options.update(overrides)
    return create_engine(url, **options)


def build_session_factory(bind: Engine) -> sessionmaker:
    """Create the session factory used by units of work"""
    return sessionmaker(
        bind=bind,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


engine = create_db_engine()
SessionLocal = build_session_factory(engine)


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - start timer"""
    conn.info.setdefault('query_start_time', []).append(time.perf_counter())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - stop timer and log if slow query"""
    total_time = time.perf_counter() - conn.info['query_start_time'].pop()

    if total_time > settings.SLOW_QUERY_SECONDS:
        logger.warning(
            f"Slow query detected ({total_time:.4f}s): {statement[:100]}..."
        )


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database sessions"""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"Database context error: {str(e)}")
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables known to the model registry"""
    # Import models so that they register with the metadata
    from hostel_booking.models import Base  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema initialized")
