"""
Database connection and session management using SQLAlchemy
"""
import os
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from exam_backend.core.config import DATABASE_DIR, DATABASE_URL, SQL_ECHO
from exam_backend.core.logger import get_audit_logger

logger = get_audit_logger()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def create_db_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    """
    Build an engine. SQLite file databases get WAL mode, a lock timeout and
    foreign keys; in-memory ones only get foreign keys.
    """
    if _is_sqlite(url):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        if ":memory:" not in url:
            connect_args.setdefault("timeout", 30.0)
        kwargs["connect_args"] = connect_args

    engine = create_engine(url, echo=SQL_ECHO, pool_pre_ping=True, **kwargs)

    if _is_sqlite(url):
        file_backed = ":memory:" not in url

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            if file_backed:
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA busy_timeout=30000")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


if _is_sqlite(DATABASE_URL) and ":memory:" not in DATABASE_URL:
    os.makedirs(DATABASE_DIR, exist_ok=True)

engine = create_db_engine()

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def init_db(bind: Engine = None):
    """Initialize database by creating all tables"""
    # Import all models to ensure they're registered
    from exam_backend.core import db_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database initialized at: %s", (bind or engine).url)


def get_db() -> Session:
    """
    Dependency function for FastAPI to get database session
    Usage: db: Session = Depends(get_db)
    Note: the unit of work commits; anything left uncommitted is rolled back on close
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session():
    """
    Context manager for database sessions
    Usage:
        with get_db_session() as db:
            # use db session
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
