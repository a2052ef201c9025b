"""SQLAlchemy database models for the card cache"""
import datetime

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()

def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form every backend stores and compares"""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)

class CacheEntry(Base):
    """
    One cached value, a serialized profile or track/artist collection.
    A refresh replaces the whole row. A NULL expires_at never expires.
    """
    __tablename__ = 'cache_entries'

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=True, index=True)

    def is_expired(self, now: datetime.datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now
