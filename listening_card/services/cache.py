"""Key-value cache stores shared by every cached data class.

The cache is an optimization only. Every store fails open: a backend error on
read is logged and reported as a miss, and a backend error on write is logged
and dropped, so callers always fall back to the Spotify API instead of failing.
"""
import json
import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

import redis
from sqlalchemy.exc import SQLAlchemyError

from listening_card.config import Settings, settings as default_settings
from listening_card.exceptions import CacheError
from listening_card.models.card import UserProfile, Track, Artist
from listening_card.utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class Codec(Generic[T]):
    """Serialization pair for one cached value shape"""
    name: str
    encode: Callable[[T], str]
    decode: Callable[[str], T]


PROFILE_CODEC: Codec[UserProfile] = Codec(
    name='profile',
    encode=json_dumps,
    decode=lambda raw: UserProfile.from_dict(json.loads(raw))
)

TRACKS_CODEC: Codec[List[Track]] = Codec(
    name='tracks',
    encode=json_dumps,
    decode=lambda raw: [Track.from_dict(item) for item in json.loads(raw)]
)

ARTISTS_CODEC: Codec[List[Artist]] = Codec(
    name='artists',
    encode=json_dumps,
    decode=lambda raw: [Artist.from_dict(item) for item in json.loads(raw)]
)


class CacheStore:
    """Fail-open key-value store with per-entry expiry.

    Backends implement ``_get``/``_set`` and raise ``CacheError`` on failure.
    """

    name = 'cache'

    def _get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _set(self, key: str, value: str, ttl: Optional[int]) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None on a miss or any backend failure"""
        try:
            return self._get(key)
        except CacheError as e:
            logger.warning(f"Cache read failed for {key} ({self.name}), treating as miss: {e}")
            return None

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store value under key, expiring after ttl seconds (None: no expiry). Best effort."""
        if ttl is not None and ttl <= 0:
            logger.warning(f"Not caching {key}: ttl must be positive or None, got {ttl}")
            return
        try:
            self._set(key, value, ttl)
        except CacheError as e:
            logger.warning(f"Cache write failed for {key} ({self.name}), skipping: {e}")

    def get_value(self, key: str, codec: Codec[T]) -> Optional[T]:
        """Read and decode a value; an undecodable entry counts as a miss"""
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return codec.decode(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding undecodable {codec.name} entry for {key}: {e}")
            return None

    def set_value(self, key: str, value: T, codec: Codec[T], ttl: Optional[int] = None) -> None:
        """Encode and store a value"""
        self.set(key, codec.encode(value), ttl)

    def purge_expired(self) -> int:
        """Remove expired entries the backend does not expire by itself; returns how many"""
        return 0

    def close(self) -> None:
        pass


class NullCacheStore(CacheStore):
    """Cache disabled: every read misses and every write is discarded"""

    name = 'none'

    def _get(self, key: str) -> Optional[str]:
        return None

    def _set(self, key: str, value: str, ttl: Optional[int]) -> None:
        return None


class RedisCacheStore(CacheStore):
    """Cache store backed by Redis string keys"""

    name = 'redis'

    def __init__(self, client: 'redis.Redis'):
        self.client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float) -> 'RedisCacheStore':
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout
        )
        return cls(client)

    def _get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            raise CacheError(str(e)) from e
        if isinstance(value, bytes):
            value = value.decode('utf-8')
        return value

    def _set(self, key: str, value: str, ttl: Optional[int]) -> None:
        try:
            self.client.set(key, value, ex=ttl)
        except redis.RedisError as e:
            raise CacheError(str(e)) from e

    def close(self) -> None:
        self.client.close()


def create_cache_store(config: Optional[Settings] = None) -> CacheStore:
    """Build the store named by CACHE_BACKEND, falling back to no cache if it cannot start"""
    config = config or default_settings
    backend = config.CACHE_BACKEND
    try:
        if backend == 'redis':
            redis_settings = config.redis_settings
            logger.info(f"Using Redis cache store at {redis_settings.url}")
            return RedisCacheStore.from_url(redis_settings.url, redis_settings.socket_timeout)
        if backend == 'database':
            # storage subclasses CacheStore, so it cannot be imported at module level
            from listening_card.db import db
            from listening_card.db_config import DatabaseManager
            from listening_card.services.storage import DatabaseCacheStore
            if not db.initialized:
                db.init(DatabaseManager.initialize_from_env(config))
            logger.info("Using database cache store")
            return DatabaseCacheStore(db)
    except (ValueError, ImportError, redis.RedisError, SQLAlchemyError) as e:
        # ImportError: the DBAPI driver for the database URL is not installed
        logger.error(f"Could not initialize {backend} cache store, caching disabled: {e}")
        return NullCacheStore()
    logger.info("Caching disabled (CACHE_BACKEND=none)")
    return NullCacheStore()
