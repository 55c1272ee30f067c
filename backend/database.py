import logging
import os
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

SQLITE_FILE_PREFIX = "sqlite:///"


def _engine_args(url: str) -> dict:
    if url.startswith("sqlite"):
        # Request handlers and background tasks share the file across threads
        return {"connect_args": {"check_same_thread": False}}
    # Supabase pooler drops idle connections after 30 minutes
    return {
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


try:
    engine = create_engine(DATABASE_URL, echo=False, **_engine_args(DATABASE_URL))
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
except Exception as e:
    logger.error(f"Failed to create engine: {e}")
    raise

Base = declarative_base()


def get_db():
    """FastAPI dependency — one session per request, closed after the response."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope():
    """Session for work outside a request (background tasks, jobs)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the SQLite file's directory when needed, then any missing tables."""
    if DATABASE_URL.startswith(SQLITE_FILE_PREFIX):
        db_dir = os.path.dirname(DATABASE_URL[len(SQLITE_FILE_PREFIX):])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    import models  # noqa: F401  registers every table on Base.metadata

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Pact tables ready on %s", engine.url.render_as_string(hide_password=True))
    except Exception as e:
        # Supabase roles without CREATE privileges still serve requests
        logger.error(f"Error during database initialization: {e}")
