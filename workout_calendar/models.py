from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime
from workout_calendar.database import Base


class KeyValueEntry(Base):
    __tablename__ = "key_value_store"

    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=False)  # Opaque string, usually a JSON blob
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
