"""
Key-value repository - Data access layer for the local string store.

Repositories expose the same three operations:
    get(key) -> Optional[str]
    set(key, value) -> None
    remove(key) -> None
Failures surface as StorageException.
"""
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workout_calendar.exceptions import StorageException
from workout_calendar.models import KeyValueEntry


class KeyValueRepository:
    """SQLite-backed string store"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        """Get value for key, or None if absent"""
        try:
            entry = self.db.query(KeyValueEntry).filter(KeyValueEntry.key == key).first()
        except SQLAlchemyError as e:
            raise StorageException("read", str(e)) from e
        return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        """Create or replace value for key"""
        try:
            entry = self.db.query(KeyValueEntry).filter(KeyValueEntry.key == key).first()
            if entry:
                entry.value = value
            else:
                self.db.add(KeyValueEntry(key=key, value=value))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("write", str(e)) from e

    def remove(self, key: str) -> None:
        """Delete key if present"""
        try:
            entry = self.db.query(KeyValueEntry).filter(KeyValueEntry.key == key).first()
            if entry:
                self.db.delete(entry)
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("remove", str(e)) from e
