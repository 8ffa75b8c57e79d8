"""
Database engine and session factory.
"""
import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from workout_calendar.constants import DB_DIR, DB_FILE

logger = logging.getLogger("workout_calendar.database")

# Fall back to the working directory when the data directory is not writable
try:
    Path(DB_DIR).mkdir(parents=True, exist_ok=True)
    DB_PATH = Path(DB_DIR) / DB_FILE
except PermissionError:
    logger.warning(f"No permission for {DB_DIR}, using local {DB_FILE}")
    DB_PATH = Path(".") / DB_FILE

SQLALCHEMY_DATABASE_URL = f"sqlite:///{DB_PATH}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a session that is always closed"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
