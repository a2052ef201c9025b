"""Database-backed cache store for card data"""
import datetime
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from listening_card.db import Database
from listening_card.exceptions import CacheError
from listening_card.models.db import CacheEntry, utcnow
from listening_card.services.cache import CacheStore

logger = logging.getLogger(__name__)

class DatabaseCacheStore(CacheStore):
    """Stores cache entries as rows of the cache_entries table"""

    name = 'database'

    def __init__(self, database: Database):
        self.database = database

    def _get(self, key: str) -> Optional[str]:
        """Return the live value for key; expired rows are deleted and read as a miss"""
        try:
            with self.database.session() as session:
                entry: Optional[CacheEntry] = session.get(CacheEntry, key)
                if entry is None:
                    return None
                if entry.is_expired(utcnow()):
                    logger.debug(f"Cache entry {key} expired at {entry.expires_at}, removing")
                    session.delete(entry)
                    return None
                return entry.value
        except (SQLAlchemyError, RuntimeError) as e:
            raise CacheError(f"Database error reading cache key {key}: {e}") from e

    def _set(self, key: str, value: str, ttl: Optional[int]) -> None:
        """Replace the row for key with a fresh entry"""
        now = utcnow()
        expires_at = now + datetime.timedelta(seconds=ttl) if ttl is not None else None
        try:
            with self.database.session() as session:
                session.merge(CacheEntry(key=key, value=value, created_at=now, expires_at=expires_at))
        except (SQLAlchemyError, RuntimeError) as e:
            raise CacheError(f"Database error writing cache key {key}: {e}") from e

    def purge_expired(self) -> int:
        """Delete every expired row, returning how many were removed"""
        try:
            with self.database.session() as session:
                removed = (
                    session.query(CacheEntry)
                    .filter(CacheEntry.expires_at.isnot(None), CacheEntry.expires_at <= utcnow())
                    .delete(synchronize_session=False)
                )
            logger.info(f"Purged {removed} expired cache entries")
            return removed
        except (SQLAlchemyError, RuntimeError) as e:
            logger.warning(f"Could not purge expired cache entries: {e}")
            return 0

    def close(self) -> None:
        self.database.dispose()
