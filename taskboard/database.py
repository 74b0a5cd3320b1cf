import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from taskboard.config import settings

logger = logging.getLogger(__name__)

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
SQLITE_FALLBACK_PATH = os.path.join(os.path.dirname(PACKAGE_DIR), "taskboard.db")


def _sqlite_engine(url: str) -> Engine:
    return create_engine(url, connect_args={"check_same_thread": False})


def _build_engine() -> Engine:
    """Engine for DATABASE_URL, or a local taskboard.db when it is unset or unusable."""
    database_url = settings.DATABASE_URL
    if not database_url:
        return _sqlite_engine(f"sqlite:///{SQLITE_FALLBACK_PATH}")

    if database_url.startswith("sqlite"):
        return _sqlite_engine(database_url)

    try:
        engine = create_engine(database_url)
        with engine.connect():
            pass
        return engine
    except ModuleNotFoundError as exc:
        logger.warning("database_driver_missing", extra={"error": str(exc)})
    except Exception as exc:
        logger.warning("database_unreachable", extra={"error": str(exc)})

    logger.warning("database_sqlite_fallback", extra={"path": SQLITE_FALLBACK_PATH})
    return _sqlite_engine(f"sqlite:///{SQLITE_FALLBACK_PATH}")


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # pragma: no cover - SQLAlchemy callback
    """Turn on ``ON DELETE CASCADE`` handling for SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = _build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
